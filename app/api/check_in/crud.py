from typing import Optional

from app.api.check_in import resolver
from app.api.participants.schemas import Participant
from app.core.exceptions.check_in_exceptions import (
    InvalidPayload,
    NotFound,
    ParticipantNotFound,
)
from app.core.logger import logger
from app.core.store.base import Collection, RecordStore

from . import schemas
from .timeline import current_status, is_effective_check_in


class CRUDCheckIn:
    collection = Collection.CHECK_EVENTS

    async def _get_participant(
        self, store: RecordStore, participant_id: str
    ) -> Optional[Participant]:
        return await store.find_one(Collection.PARTICIPANTS, {'id': participant_id})

    async def get_events(self, store: RecordStore, participant_id: str) -> list:
        return await store.find_many(
            self.collection, {'participant_id': participant_id}, order_by='at'
        )

    async def current_status(
        self, store: RecordStore, participant_id: str
    ) -> Optional[schemas.CheckEventKind]:
        return current_status(await self.get_events(store, participant_id))

    async def get_status(
        self, store: RecordStore, participant_id: str
    ) -> schemas.ParticipantStatus:
        if not await self._get_participant(store, participant_id):
            logger.error('Participant %s not found', participant_id)
            raise ParticipantNotFound(participant_id)

        events = await self.get_events(store, participant_id)
        latest = events[-1] if events else None
        return schemas.ParticipantStatus(
            participant_id=participant_id,
            checked_in=current_status(events) == schemas.CheckEventKind.CHECK_IN,
            latest_event=latest,
        )

    async def _check_volunteer(self, store: RecordStore, volunteer_id: str) -> None:
        volunteer = await store.find_one(
            Collection.VOLUNTEERS, {'volunteer_id': volunteer_id}
        )
        if not volunteer:
            logger.warning('Volunteer %s is not registered', volunteer_id)

    def _new_event(
        self, participant_id: str, volunteer_id: str, kind: schemas.CheckEventKind
    ) -> dict:
        return {
            'participant_id': participant_id,
            'volunteer_id': volunteer_id,
            'kind': kind,
        }

    async def _append_check_in(
        self, store: RecordStore, participant_id: str, volunteer_id: str
    ) -> Optional[str]:
        """Append a check-in unless one is already active. Returns the event id."""
        record = self._new_event(
            participant_id, volunteer_id, schemas.CheckEventKind.CHECK_IN
        )
        if store.supports_compare_and_append:
            return await store.compare_and_append(
                self.collection,
                record,
                scope={'participant_id': participant_id},
                field='kind',
                unless=schemas.CheckEventKind.CHECK_IN,
            )

        # Without compare-and-append: check, append, then verify that no
        # concurrent writer got its check-in in first.
        status = await self.current_status(store, participant_id)
        if status == schemas.CheckEventKind.CHECK_IN:
            return None

        event_id = await store.insert(self.collection, record)
        events = await self.get_events(store, participant_id)
        if not is_effective_check_in(events, event_id):
            logger.warning(
                'Lost check-in race for participant %s, event %s superseded',
                participant_id,
                event_id,
            )
            return None
        return event_id

    async def check_in(
        self, store: RecordStore, participant_id: str, volunteer_id: str
    ) -> schemas.CheckInResult:
        participant = await self._get_participant(store, participant_id)
        if not participant:
            logger.error('Participant %s not found', participant_id)
            return schemas.CheckInResult(
                status=schemas.CheckInStatus.PARTICIPANT_NOT_FOUND,
                detail=f'Participant not found: {participant_id}',
            )

        await self._check_volunteer(store, volunteer_id)
        event_id = await self._append_check_in(store, participant_id, volunteer_id)
        if event_id is None:
            logger.info('Participant %s is already checked in', participant_id)
            return schemas.CheckInResult(
                status=schemas.CheckInStatus.ALREADY_CHECKED_IN,
                participant=participant,
                detail='This participant has already been checked in.',
            )

        event = await store.find_one(self.collection, {'id': event_id})
        logger.info(
            'Participant %s checked in by volunteer %s', participant_id, volunteer_id
        )
        return schemas.CheckInResult(
            status=schemas.CheckInStatus.OK, participant=participant, event=event
        )

    async def check_out(
        self, store: RecordStore, participant_id: str, volunteer_id: str
    ) -> schemas.CheckInResult:
        """Record a check-out. Allowed whatever the current status is."""
        participant = await self._get_participant(store, participant_id)
        if not participant:
            logger.error('Participant %s not found', participant_id)
            return schemas.CheckInResult(
                status=schemas.CheckInStatus.PARTICIPANT_NOT_FOUND,
                detail=f'Participant not found: {participant_id}',
            )

        await self._check_volunteer(store, volunteer_id)
        if await self.current_status(store, participant_id) is None:
            logger.warning(
                'Checking out participant %s who was never checked in', participant_id
            )

        record = self._new_event(
            participant_id, volunteer_id, schemas.CheckEventKind.CHECK_OUT
        )
        event_id = await store.insert(self.collection, record)
        event = await store.find_one(self.collection, {'id': event_id})
        logger.info(
            'Participant %s checked out by volunteer %s', participant_id, volunteer_id
        )
        return schemas.CheckInResult(
            status=schemas.CheckInStatus.OK, participant=participant, event=event
        )

    async def _resolve(
        self, store: RecordStore, payload: str
    ) -> tuple[Optional[Participant], Optional[schemas.CheckInResult]]:
        try:
            return await resolver.resolve(store, payload), None
        except InvalidPayload as e:
            return None, schemas.CheckInResult(
                status=schemas.CheckInStatus.INVALID_PAYLOAD, detail=e.detail
            )
        except NotFound as e:
            return None, schemas.CheckInResult(
                status=schemas.CheckInStatus.NOT_FOUND, detail=e.detail
            )

    async def resolve_and_check_in(
        self, store: RecordStore, payload: str, volunteer_id: str
    ) -> schemas.CheckInResult:
        participant, failure = await self._resolve(store, payload)
        if failure:
            return failure
        return await self.check_in(store, participant.id, volunteer_id)

    async def resolve_and_check_out(
        self, store: RecordStore, payload: str, volunteer_id: str
    ) -> schemas.CheckInResult:
        participant, failure = await self._resolve(store, payload)
        if failure:
            return failure
        return await self.check_out(store, participant.id, volunteer_id)


check_in = CRUDCheckIn()

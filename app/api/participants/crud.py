from typing import List, Optional

from app.api.base_crud import CRUDBase
from app.api.check_in.schemas import CheckEvent, CheckEventKind
from app.api.check_in.timeline import effective_check_ins, latest_events
from app.core.exceptions.check_in_exceptions import DuplicateRegistration
from app.core.logger import logger
from app.core.store.base import Collection, RecordStore
from app.core.utils import generate_id

from . import schemas
from .qr import generate_qr_data_url


def with_status(
    participant: schemas.Participant, events: List[CheckEvent]
) -> schemas.ParticipantWithStatus:
    """Attach the check-in status derived from ``events`` to a participant."""
    latest = latest_events(events).get(participant.id)
    check_ins = [e for e in effective_check_ins(events) if e.participant_id == participant.id]
    return schemas.ParticipantWithStatus(
        **participant.model_dump(),
        checked_in=bool(latest and latest.kind == CheckEventKind.CHECK_IN),
        checked_in_at=check_ins[-1].at if check_ins else None,
    )


class CRUDParticipants(CRUDBase[schemas.Participant, schemas.ParticipantCreate]):
    async def get_by_email(
        self, store: RecordStore, email: str
    ) -> Optional[schemas.Participant]:
        return await store.find_one(self.collection, {'email': email.lower().strip()})

    async def get_by_college_id(
        self, store: RecordStore, college_id: str
    ) -> Optional[schemas.Participant]:
        return await store.find_one(self.collection, {'college_id': college_id.strip()})

    async def register(
        self, store: RecordStore, obj: schemas.ParticipantCreate
    ) -> schemas.ParticipantRegistered:
        if await self.get_by_email(store, obj.email):
            logger.error('Participant with email %s already registered', obj.email)
            raise DuplicateRegistration('Participant', 'email')
        if await self.get_by_college_id(store, obj.college_id):
            logger.error(
                'Participant with college id %s already registered', obj.college_id
            )
            raise DuplicateRegistration('Participant', 'college_id')

        # The QR code encodes the participant id, so both are set in one write
        participant_id = generate_id()
        record = obj.model_dump()
        record['id'] = participant_id
        record['qr_code_payload'] = participant_id

        participant = await self.create(store, record)
        logger.info('Registered participant %s (%s)', participant.id, participant.email)
        return schemas.ParticipantRegistered(
            **participant.model_dump(),
            qr_code=generate_qr_data_url(participant.qr_code_payload),
        )

    async def get_with_status(
        self, store: RecordStore, id: str
    ) -> schemas.ParticipantWithStatus:
        participant = await self.get(store, id)
        events = await store.find_many(
            Collection.CHECK_EVENTS, {'participant_id': participant.id}, order_by='at'
        )
        return with_status(participant, events)

    async def find_with_status(
        self,
        store: RecordStore,
        filters: Optional[schemas.ParticipantFilter] = None,
        limit: Optional[int] = None,
    ) -> List[schemas.ParticipantWithStatus]:
        participants = await self.find(store, filters=filters, limit=limit)
        events = await store.find_many(
            Collection.CHECK_EVENTS,
            {'participant_id_in': [p.id for p in participants]},
            order_by='at',
        )
        return [with_status(p, events) for p in participants]


participant = CRUDParticipants(Collection.PARTICIPANTS, schemas.Participant)

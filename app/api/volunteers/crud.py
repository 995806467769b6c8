from typing import Optional

from app.api.base_crud import CRUDBase
from app.core.exceptions.check_in_exceptions import (
    DuplicateRegistration,
    VolunteerNotFound,
)
from app.core.logger import logger
from app.core.store.base import Collection, RecordStore
from app.core.utils import generate_id

from . import schemas


class CRUDVolunteers(CRUDBase[schemas.Volunteer, schemas.VolunteerCreate]):
    async def get_by_email(
        self, store: RecordStore, email: str
    ) -> Optional[schemas.Volunteer]:
        return await store.find_one(self.collection, {'email': email.lower().strip()})

    async def get_by_email_or_raise(
        self, store: RecordStore, email: str
    ) -> schemas.Volunteer:
        volunteer = await self.get_by_email(store, email)
        if not volunteer:
            logger.error('Volunteer with email %s not found', email)
            raise VolunteerNotFound(email)
        return volunteer

    async def register(
        self, store: RecordStore, obj: schemas.VolunteerCreate
    ) -> schemas.Volunteer:
        if await self.get_by_email(store, obj.email):
            logger.error('Volunteer with email %s already registered', obj.email)
            raise DuplicateRegistration('Volunteer', 'email')

        volunteer_id = generate_id()
        record = obj.model_dump()
        record['id'] = volunteer_id
        record['volunteer_id'] = obj.volunteer_id or volunteer_id

        volunteer = await self.create(store, record)
        logger.info('Registered volunteer %s (%s)', volunteer.id, volunteer.email)
        return volunteer


volunteer = CRUDVolunteers(Collection.VOLUNTEERS, schemas.Volunteer)

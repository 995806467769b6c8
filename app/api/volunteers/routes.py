from fastapi import APIRouter, Depends, Header, HTTPException

from app.api.volunteers import schemas
from app.api.volunteers.crud import volunteer as volunteer_crud
from app.core.config import settings
from app.core.store.base import RecordStore
from app.core.store.factory import get_store

router = APIRouter()


@router.post('/', response_model=schemas.Volunteer)
async def register_volunteer(
    volunteer: schemas.VolunteerCreate,
    store: RecordStore = Depends(get_store),
):
    return await volunteer_crud.register(store=store, obj=volunteer)


@router.get('/', response_model=list[schemas.Volunteer])
async def get_volunteers(
    x_api_key: str = Header(...),
    store: RecordStore = Depends(get_store),
):
    if x_api_key != settings.ADMIN_API_KEY:
        raise HTTPException(status_code=403, detail='Invalid API key')
    return await volunteer_crud.find(store=store)


@router.get('/email/{email}', response_model=schemas.Volunteer)
async def get_volunteer_by_email(
    email: str,
    store: RecordStore = Depends(get_store),
):
    return await volunteer_crud.get_by_email_or_raise(store=store, email=email)

from fastapi import APIRouter, Depends, Header, HTTPException, Response

from app.api.check_in.schemas import CheckEvent
from app.api.exports import crud as exports_crud
from app.api.participants.schemas import ParticipantWithStatus
from app.api.volunteers.schemas import Volunteer
from app.core.config import settings
from app.core.logger import logger
from app.core.store.base import RecordStore
from app.core.store.factory import get_store
from app.core.utils import current_time


def verify_admin_api_key(x_api_key: str = Header(...)):
    if x_api_key != settings.ADMIN_API_KEY:
        raise HTTPException(status_code=403, detail='Invalid API key')


router = APIRouter(dependencies=[Depends(verify_admin_api_key)])


def _csv_response(content: str, name: str) -> Response:
    filename = f'{name}_{current_time().date().isoformat()}.csv'
    logger.info('Exporting %s', filename)
    return Response(
        content=content,
        media_type='text/csv',
        headers={'Content-Disposition': f'attachment; filename="{filename}"'},
    )


@router.get('/participants', response_model=list[ParticipantWithStatus])
async def export_participants(store: RecordStore = Depends(get_store)):
    return await exports_crud.get_all_participants(store)


@router.get('/volunteers', response_model=list[Volunteer])
async def export_volunteers(store: RecordStore = Depends(get_store)):
    return await exports_crud.get_all_volunteers(store)


@router.get('/check-events', response_model=list[CheckEvent])
async def export_check_events(store: RecordStore = Depends(get_store)):
    return await exports_crud.get_all_check_events(store)


@router.get('/participants.csv')
async def export_participants_csv(store: RecordStore = Depends(get_store)):
    return _csv_response(await exports_crud.participants_csv(store), 'participants')


@router.get('/volunteers.csv')
async def export_volunteers_csv(store: RecordStore = Depends(get_store)):
    return _csv_response(await exports_crud.volunteers_csv(store), 'volunteers')

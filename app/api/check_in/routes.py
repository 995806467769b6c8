from fastapi import APIRouter, Depends, Header, HTTPException

from app.api.check_in import schemas
from app.api.check_in.crud import check_in as check_in_crud
from app.core.config import settings
from app.core.store.base import RecordStore
from app.core.store.factory import get_store

router = APIRouter()


def verify_check_in_api_key(x_api_key: str = Header(...)):
    if x_api_key != settings.CHECK_IN_API_KEY:
        raise HTTPException(status_code=403, detail='Invalid API key')


@router.post(
    '/scan',
    response_model=schemas.CheckInResult,
    dependencies=[Depends(verify_check_in_api_key)],
)
async def scan_check_in(
    scan: schemas.NewScan,
    store: RecordStore = Depends(get_store),
):
    return await check_in_crud.resolve_and_check_in(
        store=store,
        payload=scan.payload,
        volunteer_id=scan.volunteer_id,
    )


@router.post(
    '/scan/check-out',
    response_model=schemas.CheckInResult,
    dependencies=[Depends(verify_check_in_api_key)],
)
async def scan_check_out(
    scan: schemas.NewScan,
    store: RecordStore = Depends(get_store),
):
    return await check_in_crud.resolve_and_check_out(
        store=store,
        payload=scan.payload,
        volunteer_id=scan.volunteer_id,
    )


@router.post(
    '/participants/{participant_id}',
    response_model=schemas.CheckInResult,
    dependencies=[Depends(verify_check_in_api_key)],
)
async def check_in_participant(
    participant_id: str,
    action: schemas.NewParticipantAction,
    store: RecordStore = Depends(get_store),
):
    return await check_in_crud.check_in(
        store=store,
        participant_id=participant_id,
        volunteer_id=action.volunteer_id,
    )


@router.post(
    '/participants/{participant_id}/check-out',
    response_model=schemas.CheckInResult,
    dependencies=[Depends(verify_check_in_api_key)],
)
async def check_out_participant(
    participant_id: str,
    action: schemas.NewParticipantAction,
    store: RecordStore = Depends(get_store),
):
    return await check_in_crud.check_out(
        store=store,
        participant_id=participant_id,
        volunteer_id=action.volunteer_id,
    )


@router.get(
    '/participants/{participant_id}/status',
    response_model=schemas.ParticipantStatus,
    dependencies=[Depends(verify_check_in_api_key)],
)
async def get_participant_status(
    participant_id: str,
    store: RecordStore = Depends(get_store),
):
    return await check_in_crud.get_status(store=store, participant_id=participant_id)

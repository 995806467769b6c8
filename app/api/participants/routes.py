from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Response

from app.api.participants import schemas
from app.api.participants.crud import participant as participant_crud
from app.api.participants.qr import generate_qr_png
from app.core.config import settings
from app.core.store.base import RecordStore
from app.core.store.factory import get_store

router = APIRouter()


@router.post('/', response_model=schemas.ParticipantRegistered)
async def register_participant(
    participant: schemas.ParticipantCreate,
    store: RecordStore = Depends(get_store),
):
    return await participant_crud.register(store=store, obj=participant)


# Get all participants
@router.get('/', response_model=list[schemas.ParticipantWithStatus])
async def get_participants(
    filters: schemas.ParticipantFilter = Depends(),
    limit: Optional[int] = Query(default=None, ge=1),
    x_api_key: str = Header(...),
    store: RecordStore = Depends(get_store),
):
    if x_api_key != settings.ADMIN_API_KEY:
        raise HTTPException(status_code=403, detail='Invalid API key')
    return await participant_crud.find_with_status(
        store=store, filters=filters, limit=limit
    )


@router.get('/{participant_id}', response_model=schemas.ParticipantWithStatus)
async def get_participant(
    participant_id: str,
    store: RecordStore = Depends(get_store),
):
    return await participant_crud.get_with_status(store=store, id=participant_id)


@router.get('/{participant_id}/qr')
async def get_participant_qr(
    participant_id: str,
    store: RecordStore = Depends(get_store),
):
    participant = await participant_crud.get(store=store, id=participant_id)
    return Response(
        content=generate_qr_png(participant.qr_code_payload),
        media_type='image/png',
        headers={
            'Content-Disposition': f'inline; filename="{participant.id}-qr-code.png"'
        },
    )

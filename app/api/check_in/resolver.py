"""
Maps a decoded QR payload to a participant.

The payload format has changed over time: older codes carry the bare
participant id, some carry a separate QR value, others a JSON object with an
``id`` key. Each format has a matcher; they are tried in order and the first
hit wins. New formats are supported by appending a matcher to ``MATCHERS``.
"""

import json
from typing import Awaitable, Callable, List, Optional

from app.api.participants.schemas import Participant
from app.core.exceptions.check_in_exceptions import InvalidPayload, NotFound
from app.core.logger import logger
from app.core.store.base import Collection, RecordStore

Matcher = Callable[[RecordStore, str], Awaitable[Optional[Participant]]]


async def match_id(store: RecordStore, payload: str) -> Optional[Participant]:
    return await store.find_one(Collection.PARTICIPANTS, {'id': payload})


async def match_qr_code_payload(
    store: RecordStore, payload: str
) -> Optional[Participant]:
    return await store.find_one(Collection.PARTICIPANTS, {'qr_code_payload': payload})


async def match_structured_id(
    store: RecordStore, payload: str
) -> Optional[Participant]:
    try:
        data = json.loads(payload)
    except (ValueError, RecursionError):
        # Not JSON, or nested deeper than the parser allows
        return None
    if not isinstance(data, dict) or data.get('id') in (None, ''):
        return None
    return await store.find_one(Collection.PARTICIPANTS, {'id': str(data['id']).strip()})


MATCHERS: List[Matcher] = [
    match_id,
    match_qr_code_payload,
    match_structured_id,
]


async def resolve(
    store: RecordStore, payload: Optional[str], matchers: List[Matcher] = MATCHERS
) -> Participant:
    cleaned = (payload or '').strip()
    if not cleaned:
        logger.error('Empty QR payload')
        raise InvalidPayload(payload or '')

    for matcher in matchers:
        participant = await matcher(store, cleaned)
        if participant:
            logger.info(
                'QR payload resolved to participant %s by %s',
                participant.id,
                matcher.__name__,
            )
            return participant

    logger.error('No participant matches QR payload %s', cleaned)
    raise NotFound(cleaned)

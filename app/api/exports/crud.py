import csv
from io import StringIO
from typing import List

from app.api.check_in.schemas import CheckEvent
from app.api.participants.crud import participant as participant_crud
from app.api.participants.schemas import ParticipantWithStatus
from app.api.volunteers.crud import volunteer as volunteer_crud
from app.api.volunteers.schemas import Volunteer
from app.core.store.base import Collection, RecordStore

PARTICIPANT_COLUMNS = [
    'Participant ID',
    'Name',
    'Email',
    'College',
    'College ID',
    'Phone',
    'Registered At',
    'Checked In',
    'Check-in Time',
]

VOLUNTEER_COLUMNS = ['Volunteer ID', 'Name', 'Email', 'Registered At']


async def get_all_participants(store: RecordStore) -> List[ParticipantWithStatus]:
    return await participant_crud.find_with_status(store)


async def get_all_volunteers(store: RecordStore) -> List[Volunteer]:
    return await volunteer_crud.find(store)


async def get_all_check_events(store: RecordStore) -> List[CheckEvent]:
    return await store.find_many(Collection.CHECK_EVENTS, order_by='at')


def _format_time(value) -> str:
    return value.isoformat(sep=' ', timespec='seconds') if value else 'N/A'


def _to_csv(columns: List[str], rows: List[list]) -> str:
    buffer = StringIO()
    writer = csv.writer(buffer)
    writer.writerow(columns)
    writer.writerows(rows)
    return buffer.getvalue()


async def participants_csv(store: RecordStore) -> str:
    participants = await get_all_participants(store)
    rows = [
        [
            p.id,
            p.name,
            p.email,
            p.college,
            p.college_id,
            p.phone,
            _format_time(p.registered_at),
            'Yes' if p.checked_in else 'No',
            _format_time(p.checked_in_at),
        ]
        for p in participants
    ]
    return _to_csv(PARTICIPANT_COLUMNS, rows)


async def volunteers_csv(store: RecordStore) -> str:
    volunteers = await get_all_volunteers(store)
    rows = [
        [v.volunteer_id, v.name, v.email, _format_time(v.registered_at)]
        for v in volunteers
    ]
    return _to_csv(VOLUNTEER_COLUMNS, rows)

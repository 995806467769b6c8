import asyncio
import csv
import os
import sys

from app.api.participants import schemas as participant_schemas
from app.api.participants.crud import participant as participant_crud
from app.api.volunteers import schemas as volunteer_schemas
from app.api.volunteers.crud import volunteer as volunteer_crud
from app.core.config import StoreBackend, settings
from app.core.database import create_db
from app.core.store.base import Collection, RecordStore
from app.core.store.demo import demo_data
from app.core.store.factory import create_store


def read_participants_csv(csv_path: str):
    """Read participant rows (name, email, college_id, college, phone) from CSV."""
    with open(csv_path, newline='') as csvfile:
        reader = csv.DictReader(csvfile)
        return list(reader)


async def get_or_create_participant(store: RecordStore, row: dict):
    participant = await participant_crud.get_by_email(store, row['email'])
    if participant:
        print(f'Participant already exists: {participant.email}')
        return participant
    participant_schema = participant_schemas.ParticipantCreate(
        name=row['name'],
        email=row['email'],
        college_id=row['college_id'],
        college=row['college'],
        phone=row['phone'],
    )
    participant = await participant_crud.register(store, participant_schema)
    print(f'Participant created: {participant.id} - {participant.email}')
    return participant


async def get_or_create_volunteer(store: RecordStore, row: dict):
    volunteer = await volunteer_crud.get_by_email(store, row['email'])
    if volunteer:
        print(f'Volunteer already exists: {volunteer.email}')
        return volunteer
    volunteer_schema = volunteer_schemas.VolunteerCreate(
        name=row['name'],
        email=row['email'],
        volunteer_id=row.get('volunteer_id'),
    )
    volunteer = await volunteer_crud.register(store, volunteer_schema)
    print(f'Volunteer created: {volunteer.id} - {volunteer.email}')
    return volunteer


async def main():
    if settings.STORE_BACKEND != StoreBackend.SQL:
        sys.exit(
            'STORE_BACKEND is not sql. The in-memory store lives only inside the '
            'API process and is seeded there on startup (SEED_DEMO_DATA).'
        )

    create_db()
    store = create_store()

    csv_path = os.path.join(os.path.dirname(__file__), 'participants.csv')
    if os.path.exists(csv_path):
        participants = read_participants_csv(csv_path)
    else:
        participants = demo_data()[Collection.PARTICIPANTS]

    print('Populating participants...')
    for row in participants:
        await get_or_create_participant(store, row)

    print('Populating volunteers...')
    for row in demo_data()[Collection.VOLUNTEERS]:
        await get_or_create_volunteer(store, row)

    print('Done!')


if __name__ == '__main__':
    asyncio.run(main())

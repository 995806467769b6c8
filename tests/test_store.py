import threading
from datetime import datetime, timedelta

import pytest
from sqlalchemy.orm import sessionmaker

from app.api.check_in.schemas import CheckEvent, CheckEventKind
from app.core.exceptions.check_in_exceptions import DuplicateRegistration
from app.core.store.base import Collection
from app.core.store.memory import InMemoryStore
from app.core.store.sql import SQLStore
from app.core.utils import current_time


def event(participant_id: str, kind: str = 'check-in', volunteer_id: str = 'V1'):
    return {'participant_id': participant_id, 'volunteer_id': volunteer_id, 'kind': kind}


@pytest.mark.asyncio
async def test_insert_assigns_id_and_timestamp(store, insert_participant):
    await insert_participant('P1')
    before = current_time()
    event_id = await store.insert(Collection.CHECK_EVENTS, event('P1'))

    stored = await store.find_one(Collection.CHECK_EVENTS, {'id': event_id})
    assert isinstance(stored, CheckEvent)
    assert stored.id == event_id
    assert stored.kind == CheckEventKind.CHECK_IN
    assert stored.at >= before
    assert stored.seq is not None


@pytest.mark.asyncio
async def test_client_supplied_timestamp_is_ignored(store, insert_participant):
    await insert_participant('P1')
    record = {**event('P1'), 'at': datetime(2000, 1, 1)}
    event_id = await store.insert(Collection.CHECK_EVENTS, record)

    stored = await store.find_one(Collection.CHECK_EVENTS, {'id': event_id})
    assert stored.at.year != 2000


@pytest.mark.asyncio
async def test_event_timestamps_never_decrease(store, insert_participant):
    await insert_participant('P1')
    for kind in ['check-in', 'check-out', 'check-in', 'check-out']:
        await store.insert(Collection.CHECK_EVENTS, event('P1', kind))

    events = await store.find_many(Collection.CHECK_EVENTS, order_by='seq')
    timestamps = [e.at for e in events]
    assert timestamps == sorted(timestamps)


@pytest.mark.asyncio
async def test_find_many_filters_orders_and_limits(store, insert_participant):
    await insert_participant('P1', 1)
    await insert_participant('P2', 2)
    await insert_participant('P3', 3)

    newest_first = await store.find_many(Collection.PARTICIPANTS, order_by='-registered_at')
    assert [p.id for p in newest_first] == ['P3', 'P2', 'P1']

    limited = await store.find_many(Collection.PARTICIPANTS, order_by='registered_at', limit=2)
    assert [p.id for p in limited] == ['P1', 'P2']

    subset = await store.find_many(Collection.PARTICIPANTS, {'id_in': ['P1', 'P3']})
    assert {p.id for p in subset} == {'P1', 'P3'}

    assert await store.find_one(Collection.PARTICIPANTS, {'email': 'nobody@example.com'}) is None


@pytest.mark.asyncio
async def test_unique_fields_are_enforced(store, insert_participant):
    await insert_participant('P1', 1)
    with pytest.raises(DuplicateRegistration) as exc:
        await insert_participant('P2', 2, email='participant1@example.com')
    assert exc.value.status_code == 409
    assert len(await store.find_many(Collection.PARTICIPANTS)) == 1


@pytest.mark.asyncio
async def test_subscribe_delivers_initial_and_updates(store, insert_participant):
    await insert_participant('P1', 1)
    deliveries = []

    unsubscribe = await store.subscribe(
        Collection.PARTICIPANTS, deliveries.append, order_by='registered_at'
    )
    assert [[p.id for p in d] for d in deliveries] == [['P1']]

    await insert_participant('P2', 2)
    assert [p.id for p in deliveries[-1]] == ['P1', 'P2']

    # Writes to other collections do not fire this feed
    await store.insert(Collection.CHECK_EVENTS, event('P1'))
    assert len(deliveries) == 2

    unsubscribe()
    unsubscribe()
    await insert_participant('P3', 3)
    assert len(deliveries) == 2


@pytest.mark.asyncio
async def test_subscribe_with_predicate_and_limit(store, insert_participant):
    await insert_participant('P1')
    deliveries = []
    await store.subscribe(
        Collection.CHECK_EVENTS,
        deliveries.append,
        predicate={'kind': 'check-in'},
        order_by='-at',
        limit=2,
    )
    assert deliveries == [[]]

    first = await store.insert(Collection.CHECK_EVENTS, event('P1'))
    await store.insert(Collection.CHECK_EVENTS, event('P1', 'check-out'))
    second = await store.insert(Collection.CHECK_EVENTS, event('P1'))
    third = await store.insert(Collection.CHECK_EVENTS, event('P1'))

    assert [e.id for e in deliveries[-1]] == [third, second]
    assert first not in [e.id for e in deliveries[-1]]


@pytest.mark.asyncio
async def test_failing_subscriber_does_not_break_writes(store, insert_participant):
    def broken(records):
        if records:
            raise RuntimeError('listener failure')

    await store.subscribe(Collection.PARTICIPANTS, broken)
    participant = await insert_participant('P1')
    assert participant.id == 'P1'


@pytest.mark.asyncio
async def test_compare_and_append(store, insert_participant):
    await insert_participant('P1')
    scope = {'participant_id': 'P1'}

    first = await store.compare_and_append(
        Collection.CHECK_EVENTS, event('P1'), scope=scope, field='kind', unless=CheckEventKind.CHECK_IN
    )
    second = await store.compare_and_append(
        Collection.CHECK_EVENTS, event('P1'), scope=scope, field='kind', unless=CheckEventKind.CHECK_IN
    )
    await store.insert(Collection.CHECK_EVENTS, event('P1', 'check-out'))
    third = await store.compare_and_append(
        Collection.CHECK_EVENTS, event('P1'), scope=scope, field='kind', unless=CheckEventKind.CHECK_IN
    )

    assert store.supports_compare_and_append is True
    assert first is not None
    assert second is None
    assert third is not None
    events = await store.find_many(Collection.CHECK_EVENTS, order_by='seq')
    assert [e.kind.value for e in events] == ['check-in', 'check-out', 'check-in']


@pytest.mark.asyncio
async def test_sql_store_runs_sessions_off_the_event_loop(sql_engines):
    session_threads = []
    TestingSessionLocal = sessionmaker(bind=sql_engines())

    def session_factory():
        session_threads.append(threading.get_ident())
        return TestingSessionLocal()

    store = SQLStore(session_factory)
    deliveries = []
    await store.subscribe(Collection.CHECK_EVENTS, deliveries.append)
    await store.insert(Collection.CHECK_EVENTS, event('P1'))
    await store.find_many(Collection.CHECK_EVENTS)

    assert len(deliveries) == 2
    assert session_threads
    assert threading.get_ident() not in session_threads


@pytest.mark.asyncio
async def test_memory_store_loads_mixed_timestamp_shapes():
    at = datetime(2025, 3, 1, 12, 0, 0)
    store = InMemoryStore(
        initial_data={
            Collection.CHECK_EVENTS: [
                {**event('P1'), 'id': 'e1', 'at': at.isoformat()},
                {**event('P2'), 'id': 'e2', 'at': {'seconds': 1740830460}},
                {**event('P3'), 'id': 'e3', 'at': at + timedelta(minutes=2)},
            ]
        }
    )

    events = await store.find_many(Collection.CHECK_EVENTS, order_by='at')
    assert [e.id for e in events] == ['e1', 'e2', 'e3']
    assert all(isinstance(e.at, datetime) and e.at.tzinfo is None for e in events)
    assert events[1].at == datetime(2025, 3, 1, 12, 1, 0)

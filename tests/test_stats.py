import pytest
from starlette.websockets import WebSocketDisconnect

from app.api.check_in.crud import check_in as check_in_crud
from app.api.stats.aggregator import (
    LiveAggregator,
    StatsSubscription,
    SubscriptionState,
    snapshot,
)
from app.api.volunteers.crud import volunteer as volunteer_crud
from app.api.volunteers.schemas import VolunteerCreate
from tests.conftest import ADMIN_HEADERS, CHECK_IN_HEADERS, participant_data


@pytest.mark.asyncio
async def test_initial_snapshot_without_data(store):
    received = []
    unsubscribe = await LiveAggregator(store).subscribe(received.append)

    assert len(received) == 1
    stats = received[0]
    assert stats.total_registrations == 0
    assert stats.total_checked_in == 0
    assert stats.total_volunteers == 0
    assert stats.check_in_rate == 0
    assert stats.recent_check_ins == []
    unsubscribe()


@pytest.mark.asyncio
async def test_check_in_updates_live_stats(store, insert_participant):
    received = []
    unsubscribe = await LiveAggregator(store).subscribe(received.append)

    participant = await insert_participant('P1')
    await insert_participant('P2', n=2)
    result = await check_in_crud.check_in(store, participant.id, 'V1')

    stats = received[-1]
    assert stats.total_registrations == 2
    assert stats.total_checked_in == 1
    assert stats.check_in_rate == 50
    assert [e.id for e in stats.recent_check_ins] == [result.event.id]
    unsubscribe()


@pytest.mark.asyncio
async def test_every_change_delivers_a_snapshot(store, insert_participant):
    received = []
    unsubscribe = await LiveAggregator(store).subscribe(received.append)

    await insert_participant('P1')
    await volunteer_crud.register(
        store, VolunteerCreate(name='Volunteer', email='v@example.com')
    )
    await check_in_crud.check_in(store, 'P1', 'V1')

    assert len(received) == 4
    assert [s.total_registrations for s in received] == [0, 1, 1, 1]
    assert [s.total_volunteers for s in received] == [0, 0, 1, 1]
    assert [s.total_checked_in for s in received] == [0, 0, 0, 1]
    unsubscribe()


@pytest.mark.asyncio
async def test_checked_in_never_exceeds_registrations(store, insert_participant):
    received = []
    unsubscribe = await LiveAggregator(store).subscribe(received.append)

    for n in range(1, 4):
        await insert_participant(f'P{n}', n=n)
        await check_in_crud.check_in(store, f'P{n}', 'V1')
    await check_in_crud.check_out(store, 'P2', 'V1')

    for stats in received:
        assert 0 <= stats.total_checked_in <= stats.total_registrations
    assert received[-1].total_checked_in == 2
    assert received[-1].check_in_rate == 67
    unsubscribe()


@pytest.mark.asyncio
async def test_recent_check_ins_are_newest_first_and_limited(store, insert_participant):
    for n in range(1, 5):
        await insert_participant(f'P{n}', n=n)
        await check_in_crud.check_in(store, f'P{n}', 'V1')

    stats = await snapshot(store, recent_limit=3)

    assert [e.participant_id for e in stats.recent_check_ins] == ['P4', 'P3', 'P2']
    assert stats.total_checked_in == 4


@pytest.mark.asyncio
async def test_unsubscribe_stops_delivery_and_is_idempotent(store, insert_participant):
    received = []
    unsubscribe = await LiveAggregator(store).subscribe(received.append)

    unsubscribe()
    unsubscribe()
    await insert_participant('P1')

    assert len(received) == 1


@pytest.mark.asyncio
async def test_resubscribe_starts_with_fresh_snapshot(store, insert_participant):
    aggregator = LiveAggregator(store)
    first = []
    unsubscribe = await aggregator.subscribe(first.append)
    await insert_participant('P1')
    unsubscribe()

    second = []
    unsubscribe = await aggregator.subscribe(second.append)

    assert len(second) == 1
    assert second[0].total_registrations == 1
    unsubscribe()


@pytest.mark.asyncio
async def test_subscription_closes_when_listener_fails(memory_store):
    def failing_listener(stats):
        raise RuntimeError('listener failed')

    subscription = StatsSubscription(memory_store, failing_listener, recent_limit=10)

    with pytest.raises(RuntimeError):
        await subscription.start()

    assert subscription.state == SubscriptionState.CLOSED
    assert all(not subs for subs in memory_store._subscriptions.values())


def test_get_stats(client):
    participant = client.post('/participants/', json=participant_data(1)).json()
    client.post('/participants/', json=participant_data(2))
    client.post(
        f'/check-in/participants/{participant["id"]}',
        json={'volunteer_id': 'V1'},
        headers=CHECK_IN_HEADERS,
    )

    response = client.get('/stats/', headers=ADMIN_HEADERS)

    assert response.status_code == 200
    data = response.json()
    assert data['total_registrations'] == 2
    assert data['total_checked_in'] == 1
    assert data['check_in_rate'] == 50
    assert data['recent_check_ins'][0]['participant_id'] == participant['id']


def test_get_stats_invalid_api_key(client):
    response = client.get('/stats/', headers={'x-api-key': 'invalid_api_key'})
    assert response.status_code == 403


def test_live_stats_websocket(client):
    with client.websocket_connect('/stats/live?api_key=test_admin_api_key') as websocket:
        initial = websocket.receive_json()
        assert initial['total_registrations'] == 0
        assert initial['recent_check_ins'] == []

        client.post('/participants/', json=participant_data(1))
        update = websocket.receive_json()
        assert update['total_registrations'] == 1


def test_live_stats_websocket_rejects_invalid_key(client):
    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect('/stats/live?api_key=wrong') as websocket:
            websocket.receive_json()

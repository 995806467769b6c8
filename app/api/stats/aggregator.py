"""
Live dashboard statistics.

A stats subscription holds one store feed per collection and caches the
last result set of each. Whenever a feed fires, the whole ``DashboardStats``
is recomputed from the caches in memory and pushed to the listener; the
store is never re-read to build a snapshot.

Feeds are independent, so a snapshot may combine states from slightly
different instants (for example a new check event seen before a new
participant). The stats never depend on a cross-collection write, so this
only delays, never corrupts, the numbers.
"""

from enum import Enum
from typing import Callable, Dict, List, Optional

from app.api.check_in.schemas import CheckEvent, CheckEventKind
from app.api.check_in.timeline import effective_check_ins, event_order, latest_events
from app.api.participants.schemas import Participant
from app.api.volunteers.schemas import Volunteer
from app.core.config import settings
from app.core.logger import logger
from app.core.store.base import Collection, RecordStore

from .schemas import DashboardStats

StatsListener = Callable[[DashboardStats], None]


def compute_stats(
    participants: List[Participant],
    volunteers: List[Volunteer],
    events: List[CheckEvent],
    recent_limit: int = settings.RECENT_CHECK_INS_LIMIT,
) -> DashboardStats:
    registered = {p.id for p in participants}
    checked_in = {
        participant_id
        for participant_id, event in latest_events(events).items()
        if event.kind == CheckEventKind.CHECK_IN and participant_id in registered
    }
    recent = sorted(effective_check_ins(events), key=event_order, reverse=True)

    total_registrations = len(participants)
    rate = round(len(checked_in) * 100 / total_registrations) if total_registrations else 0
    return DashboardStats(
        total_registrations=total_registrations,
        total_checked_in=len(checked_in),
        total_volunteers=len(volunteers),
        check_in_rate=rate,
        recent_check_ins=recent[:recent_limit],
    )


async def snapshot(
    store: RecordStore, recent_limit: int = settings.RECENT_CHECK_INS_LIMIT
) -> DashboardStats:
    """One-shot stats read straight from the store."""
    participants = await store.find_many(Collection.PARTICIPANTS)
    volunteers = await store.find_many(Collection.VOLUNTEERS)
    events = await store.find_many(Collection.CHECK_EVENTS, order_by='at')
    return compute_stats(participants, volunteers, events, recent_limit)


class SubscriptionState(str, Enum):
    UNSUBSCRIBED = 'unsubscribed'
    SUBSCRIBED = 'subscribed'
    CLOSED = 'closed'


class StatsSubscription:
    def __init__(self, store: RecordStore, listener: StatsListener, recent_limit: int):
        self.store = store
        self.listener = listener
        self.recent_limit = recent_limit
        self.state = SubscriptionState.UNSUBSCRIBED
        self._cache: Dict[Collection, Optional[list]] = {c: None for c in Collection}
        self._unsubscribers: List[Callable[[], None]] = []

    def _on_change(self, collection: Collection) -> Callable[[list], None]:
        def handler(records: list) -> None:
            self._cache[collection] = records
            if self.state == SubscriptionState.SUBSCRIBED:
                self._publish()

        return handler

    def _publish(self) -> None:
        stats = compute_stats(
            self._cache[Collection.PARTICIPANTS] or [],
            self._cache[Collection.VOLUNTEERS] or [],
            self._cache[Collection.CHECK_EVENTS] or [],
            self.recent_limit,
        )
        self.listener(stats)

    async def start(self) -> Callable[[], None]:
        try:
            for collection in Collection:
                order_by = 'at' if collection == Collection.CHECK_EVENTS else None
                unsubscribe = await self.store.subscribe(
                    collection, self._on_change(collection), order_by=order_by
                )
                self._unsubscribers.append(unsubscribe)
        except Exception:
            self.unsubscribe()
            raise

        self.state = SubscriptionState.SUBSCRIBED
        logger.info('Stats subscription started')
        try:
            self._publish()
        except Exception:
            self.unsubscribe()
            raise
        return self.unsubscribe

    def unsubscribe(self) -> None:
        if self.state == SubscriptionState.CLOSED:
            return
        self.state = SubscriptionState.CLOSED
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()
        logger.info('Stats subscription closed')


class LiveAggregator:
    def __init__(
        self, store: RecordStore, recent_limit: int = settings.RECENT_CHECK_INS_LIMIT
    ):
        self.store = store
        self.recent_limit = recent_limit

    async def subscribe(self, listener: StatsListener) -> Callable[[], None]:
        """
        Deliver the current stats to ``listener`` now and again after every
        change to participants, volunteers or check events.

        Returns an idempotent unsubscribe function. Every call starts an
        independent subscription with its own initial snapshot.
        """
        subscription = StatsSubscription(self.store, listener, self.recent_limit)
        return await subscription.start()

"""
Record store contract shared by the in-memory (demo) store and the
SQLAlchemy store.

Records cross the store boundary as plain dicts on the way in and as the
collection's pydantic schema on the way out. Every stored row carries a
store-assigned ``seq`` that breaks ordering ties in insertion order.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Union

from pydantic import BaseModel

from app.api.check_in.schemas import CheckEvent
from app.api.participants.schemas import Participant
from app.api.volunteers.schemas import Volunteer
from app.core.logger import logger
from app.core.utils import current_time, generate_id, normalize_timestamp


class Collection(str, Enum):
    PARTICIPANTS = 'participants'
    VOLUNTEERS = 'volunteers'
    CHECK_EVENTS = 'check_events'


RECORD_SCHEMAS = {
    Collection.PARTICIPANTS: Participant,
    Collection.VOLUNTEERS: Volunteer,
    Collection.CHECK_EVENTS: CheckEvent,
}

# Field holding the server-assigned write time of each collection
TIMESTAMP_FIELDS = {
    Collection.PARTICIPANTS: 'registered_at',
    Collection.VOLUNTEERS: 'registered_at',
    Collection.CHECK_EVENTS: 'at',
}

UNIQUE_FIELDS = {
    Collection.PARTICIPANTS: ('id', 'email', 'college_id'),
    Collection.VOLUNTEERS: ('id', 'email'),
    Collection.CHECK_EVENTS: ('id',),
}

Predicate = Dict[str, Any]
OnChange = Callable[[List[BaseModel]], None]


def matches(row: dict, predicate: Optional[Predicate]) -> bool:
    if not predicate:
        return True
    for field, value in predicate.items():
        if field.endswith('_in') and isinstance(value, (list, tuple, set)):
            if row.get(field[:-3]) not in value:
                return False
        elif row.get(field) != value:
            return False
    return True


def parse_order_by(order_by: Optional[str]) -> tuple:
    """Split ``'-at'`` into ``('at', True)``."""
    if not order_by:
        return 'seq', False
    if order_by.startswith('-'):
        return order_by[1:], True
    return order_by, False


def sort_rows(rows: List[dict], order_by: Optional[str]) -> List[dict]:
    field, descending = parse_order_by(order_by)
    return sorted(rows, key=lambda r: (r[field], r['seq']), reverse=descending)


@dataclass
class Subscription:
    collection: Collection
    on_change: OnChange
    predicate: Optional[Predicate] = None
    order_by: Optional[str] = None
    limit: Optional[int] = None
    active: bool = True


class RecordStore(ABC):
    """
    Collection-oriented record store with push-based change notification.

    Subscribers receive the full matching result set right away and again
    after every write to the subscribed collection, in write order. There is
    no ordering guarantee across collections.
    """

    supports_compare_and_append = False

    def __init__(self):
        self._subscriptions: Dict[Collection, List[Subscription]] = {
            collection: [] for collection in Collection
        }

    @abstractmethod
    def _write(self, collection: Collection, row: dict) -> None:
        """Stamp and persist a prepared row (id already set)."""

    @abstractmethod
    def _query(
        self,
        collection: Collection,
        predicate: Optional[Predicate] = None,
        order_by: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[dict]:
        """Return matching rows as dicts, sorted and truncated."""

    async def _run(self, func: Callable, *args):
        """Run a blocking store operation. Runs inline unless a store overrides it."""
        return func(*args)

    def _prepare(self, collection: Collection, record: Union[dict, BaseModel]) -> dict:
        if isinstance(record, BaseModel):
            record = record.model_dump()
        row = {
            key: value.value if isinstance(value, Enum) else value
            for key, value in record.items()
        }
        row['id'] = row.get('id') or generate_id()
        row.pop('seq', None)
        row.pop(TIMESTAMP_FIELDS[collection], None)
        return row

    def _stamp(self, collection: Collection, row: dict, latest: Any) -> None:
        """
        Set the write time of ``row``. Write times are assigned by the store,
        never taken from the caller, and never go backwards within a
        collection. Stores call this in the same critical section as the write.
        """
        field = TIMESTAMP_FIELDS[collection]
        now = current_time()
        row[field] = max(now, normalize_timestamp(latest)) if latest else now

    def _to_records(self, collection: Collection, rows: List[dict]) -> List[BaseModel]:
        schema = RECORD_SCHEMAS[collection]
        return [schema.model_validate(row) for row in rows]

    async def _notify(self, collection: Collection) -> None:
        for subscription in list(self._subscriptions[collection]):
            if subscription.active:
                await self._deliver(subscription)

    async def _deliver(self, subscription: Subscription) -> None:
        rows = await self._run(
            self._query,
            subscription.collection,
            subscription.predicate,
            subscription.order_by,
            subscription.limit,
        )
        records = self._to_records(subscription.collection, rows)
        # The listener may have unsubscribed while the query ran
        if not subscription.active:
            return
        try:
            subscription.on_change(records)
        except Exception as e:
            logger.error(
                'Subscriber of %s failed: %s', subscription.collection.value, str(e)
            )

    async def insert(self, collection: Collection, record: Union[dict, BaseModel]) -> str:
        row = self._prepare(collection, record)
        await self._run(self._write, collection, row)
        logger.debug('Inserted %s into %s', row['id'], collection.value)
        await self._notify(collection)
        return row['id']

    async def find_one(
        self, collection: Collection, predicate: Predicate
    ) -> Optional[BaseModel]:
        rows = await self._run(self._query, collection, predicate, None, 1)
        return self._to_records(collection, rows)[0] if rows else None

    async def find_many(
        self,
        collection: Collection,
        predicate: Optional[Predicate] = None,
        order_by: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[BaseModel]:
        rows = await self._run(self._query, collection, predicate, order_by, limit)
        return self._to_records(collection, rows)

    async def subscribe(
        self,
        collection: Collection,
        on_change: OnChange,
        predicate: Optional[Predicate] = None,
        order_by: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> Callable[[], None]:
        subscription = Subscription(collection, on_change, predicate, order_by, limit)
        self._subscriptions[collection].append(subscription)
        try:
            await self._deliver(subscription)
        except Exception:
            self._subscriptions[collection].remove(subscription)
            raise

        def unsubscribe() -> None:
            if not subscription.active:
                return
            subscription.active = False
            self._subscriptions[collection].remove(subscription)

        return unsubscribe

    async def compare_and_append(
        self,
        collection: Collection,
        record: Union[dict, BaseModel],
        *,
        scope: Predicate,
        field: str,
        unless: Any,
    ) -> Optional[str]:
        """
        Append ``record`` unless the latest record matching ``scope`` has
        ``field == unless``, as one atomic step. Returns the new id, or None
        when nothing was written. Only available when
        ``supports_compare_and_append`` is set.
        """
        raise NotImplementedError(
            f'{type(self).__name__} does not support compare-and-append'
        )

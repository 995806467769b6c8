import itertools
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel

from app.core.exceptions.check_in_exceptions import DuplicateRegistration
from app.core.logger import logger
from app.core.store.base import (
    RECORD_SCHEMAS,
    TIMESTAMP_FIELDS,
    UNIQUE_FIELDS,
    Collection,
    Predicate,
    RecordStore,
    matches,
    sort_rows,
)
from app.core.utils import generate_id, normalize_timestamp


class InMemoryStore(RecordStore):
    """
    Process-local store used in demo mode and in tests.

    A write never suspends, so a read followed by an append inside one
    coroutine step is atomic with respect to other coroutines.
    """

    supports_compare_and_append = True

    def __init__(self, initial_data: Optional[Dict[Collection, List[dict]]] = None):
        super().__init__()
        self._rows: Dict[Collection, List[dict]] = {c: [] for c in Collection}
        self._seq = itertools.count(1)
        for collection, records in (initial_data or {}).items():
            self.load(Collection(collection), records)

    def load(self, collection: Collection, records: List[dict]) -> None:
        """Import existing records, keeping their own timestamps."""
        field = TIMESTAMP_FIELDS[collection]
        for record in records:
            row = dict(record)
            row['id'] = row.get('id') or generate_id()
            row[field] = normalize_timestamp(row[field])
            self._append(collection, row)
        logger.info('Loaded %s records into %s', len(records), collection.value)

    def _append(self, collection: Collection, row: dict) -> None:
        for field in UNIQUE_FIELDS[collection]:
            value = row.get(field)
            if any(r.get(field) == value for r in self._rows[collection]):
                resource = RECORD_SCHEMAS[collection].__name__
                logger.error('Duplicate %s for %s: %s', field, resource, value)
                raise DuplicateRegistration(resource, field)
        row['seq'] = next(self._seq)
        self._rows[collection].append(row)

    def _write(self, collection: Collection, row: dict) -> None:
        field = TIMESTAMP_FIELDS[collection]
        latest = self._query(collection, order_by=f'-{field}', limit=1)
        self._stamp(collection, row, latest[0][field] if latest else None)
        self._append(collection, row)

    def _query(
        self,
        collection: Collection,
        predicate: Optional[Predicate] = None,
        order_by: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[dict]:
        rows = [r for r in self._rows[collection] if matches(r, predicate)]
        rows = sort_rows(rows, order_by)
        if limit is not None:
            rows = rows[:limit]
        return [dict(r) for r in rows]

    async def compare_and_append(
        self,
        collection: Collection,
        record: Union[dict, BaseModel],
        *,
        scope: Predicate,
        field: str,
        unless: Any,
    ) -> Optional[str]:
        order_by = f'-{TIMESTAMP_FIELDS[collection]}'
        latest = self._query(collection, scope, order_by, limit=1)
        if latest and latest[0][field] == getattr(unless, 'value', unless):
            return None
        return await self.insert(collection, record)


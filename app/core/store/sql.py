from typing import Any, Callable, List, Optional, Tuple, Union

import psycopg2.errors
from pydantic import BaseModel
from sqlalchemy import func, select, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Query, Session
from starlette.concurrency import run_in_threadpool

from app.core import models
from app.core.exceptions.check_in_exceptions import DuplicateRegistration
from app.core.exceptions.store_exceptions import StoreUnavailable
from app.core.logger import logger
from app.core.store.base import (
    RECORD_SCHEMAS,
    TIMESTAMP_FIELDS,
    Collection,
    Predicate,
    RecordStore,
    parse_order_by,
)

MODELS = {
    Collection.PARTICIPANTS: models.Participant,
    Collection.VOLUNTEERS: models.Volunteer,
    Collection.CHECK_EVENTS: models.CheckEvent,
}


def _duplicate_field(e: IntegrityError) -> str:
    orig = str(e.orig)
    if isinstance(e.orig, psycopg2.errors.UniqueViolation) and 'DETAIL' in orig:
        error_detail = orig.split('DETAIL: ')[1].split('\n')[0].strip()
        if '(' in error_detail and ')' in error_detail:
            return error_detail.split('(')[1].split(')')[0]
    if 'UNIQUE constraint failed:' in orig:
        # sqlite: "UNIQUE constraint failed: participants.email"
        return orig.split('UNIQUE constraint failed:')[1].strip().split('.')[-1]
    return 'unique field'


class SQLStore(RecordStore):
    """
    Record store backed by the SQLAlchemy models.

    Session work runs in the threadpool so the event loop never waits on the
    database. Every write locks the rows it references (the participant of a
    check event) and takes its write time inside that transaction, so writes
    for one participant are serialized and their ``at`` follows ``seq``.
    """

    supports_compare_and_append = True

    def __init__(self, session_factory: Callable[[], Session]):
        super().__init__()
        self._session_factory = session_factory

    async def _run(self, func: Callable, *args):
        return await run_in_threadpool(func, *args)

    def _apply_filters(self, query: Query, model, predicate: Optional[Predicate]) -> Query:
        if not predicate:
            return query

        for field, value in predicate.items():
            op = 'eq'
            if field.endswith('_in') and isinstance(value, (list, tuple, set)):
                field = field[:-3]
                op = 'in_'
            if not hasattr(model, field):
                raise ValueError(f'Invalid filter field: {field}')
            if op == 'in_':
                query = query.filter(getattr(model, field).in_(list(value)))
            else:
                query = query.filter(getattr(model, field) == value)
        return query

    def _to_row(self, db_obj) -> dict:
        return {
            column: getattr(db_obj, column)
            for column in db_obj.__table__.columns.keys()
        }

    def _lock(self, db: Session, model, row: dict) -> None:
        if db.get_bind().dialect.name == 'sqlite':
            # sqlite has no row locks; take the database write lock up front
            db.execute(text('BEGIN IMMEDIATE'))
            return

        for column in model.__table__.columns:
            value = row.get(column.name)
            if value is None:
                continue
            for foreign_key in column.foreign_keys:
                target = foreign_key.column
                db.execute(select(target).where(target == value).with_for_update())

    def _is_blocked(self, db: Session, model, collection: Collection, condition) -> bool:
        scope, field, unless = condition
        order_by = TIMESTAMP_FIELDS[collection]
        latest = (
            self._apply_filters(db.query(model), model, scope)
            .order_by(getattr(model, order_by).desc(), model.seq.desc())
            .first()
        )
        return latest is not None and getattr(latest, field) == unless

    def _write(
        self,
        collection: Collection,
        row: dict,
        condition: Optional[Tuple[Predicate, str, Any]] = None,
    ) -> bool:
        model = MODELS[collection]
        timestamp = getattr(model, TIMESTAMP_FIELDS[collection])
        with self._session_factory() as db:
            try:
                self._lock(db, model, row)
                if condition and self._is_blocked(db, model, collection, condition):
                    db.rollback()
                    return False
                self._stamp(collection, row, db.query(func.max(timestamp)).scalar())
                db.add(model(**row))
                db.commit()
                return True
            except IntegrityError as e:
                logger.error('Error creating %s: %s', model.__name__, str(e))
                db.rollback()
                raise DuplicateRegistration(
                    RECORD_SCHEMAS[collection].__name__, _duplicate_field(e)
                )
            except SQLAlchemyError as e:
                logger.error('SQL error creating %s: %s', model.__name__, str(e))
                db.rollback()
                raise StoreUnavailable('write', str(e))

    def _query(
        self,
        collection: Collection,
        predicate: Optional[Predicate] = None,
        order_by: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[dict]:
        model = MODELS[collection]
        field, descending = parse_order_by(order_by)
        if not hasattr(model, field):
            raise ValueError(f'Invalid sort field: {field}')

        order_columns = [getattr(model, field), model.seq]
        if descending:
            order_columns = [column.desc() for column in order_columns]

        with self._session_factory() as db:
            try:
                query = self._apply_filters(db.query(model), model, predicate)
                query = query.order_by(*order_columns)
                if limit is not None:
                    query = query.limit(limit)
                return [self._to_row(db_obj) for db_obj in query.all()]
            except SQLAlchemyError as e:
                logger.error('SQL error reading %s: %s', model.__name__, str(e))
                raise StoreUnavailable('read', str(e))

    async def compare_and_append(
        self,
        collection: Collection,
        record: Union[dict, BaseModel],
        *,
        scope: Predicate,
        field: str,
        unless: Any,
    ) -> Optional[str]:
        row = self._prepare(collection, record)
        condition = (scope, field, getattr(unless, 'value', unless))
        if not await self._run(self._write, collection, row, condition):
            return None
        logger.debug('Inserted %s into %s', row['id'], collection.value)
        await self._notify(collection)
        return row['id']

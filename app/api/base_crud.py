from typing import Generic, List, Optional, Type, TypeVar, Union

from fastapi import HTTPException
from pydantic import BaseModel

from app.core.logger import logger
from app.core.store.base import Collection, RecordStore

RecordType = TypeVar('RecordType', bound=BaseModel)
CreateSchemaType = TypeVar('CreateSchemaType', bound=BaseModel)


class CRUDBase(Generic[RecordType, CreateSchemaType]):
    def __init__(self, collection: Collection, schema: Type[RecordType]):
        self.collection = collection
        self.schema = schema

    def _build_predicate(self, filters: Optional[BaseModel] = None) -> dict:
        """Override this method to implement filter logic"""
        if not filters:
            return {}
        return filters.model_dump(exclude_none=True)

    async def create(
        self, store: RecordStore, obj: Union[CreateSchemaType, dict]
    ) -> RecordType:
        """Create a new record."""
        record_id = await store.insert(self.collection, obj)
        return await self.get(store, record_id)

    async def get(self, store: RecordStore, id: str) -> RecordType:
        """Get a single record by id."""
        obj = await store.find_one(self.collection, {'id': id})
        if not obj:
            logger.error('%s %s not found', self.schema.__name__, id)
            raise HTTPException(
                status_code=404, detail=f'{self.schema.__name__} not found'
            )
        return obj

    async def find(
        self,
        store: RecordStore,
        filters: Optional[BaseModel] = None,
        limit: Optional[int] = None,
        sort_by: str = 'registered_at',
        sort_order: str = 'desc',
    ) -> List[RecordType]:
        """Get multiple records with filters and sorting."""
        if sort_by not in self.schema.model_fields:
            raise HTTPException(
                status_code=400, detail=f'Invalid sort field: {sort_by}'
            )

        order_by = f'-{sort_by}' if sort_order == 'desc' else sort_by
        return await store.find_many(
            self.collection,
            self._build_predicate(filters),
            order_by=order_by,
            limit=limit,
        )

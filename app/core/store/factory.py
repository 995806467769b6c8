from fastapi.requests import HTTPConnection

from app.core.config import StoreBackend, settings
from app.core.logger import logger
from app.core.store.base import RecordStore
from app.core.store.demo import create_demo_store
from app.core.store.memory import InMemoryStore


def create_store() -> RecordStore:
    """Build the single store instance of this process."""
    if settings.STORE_BACKEND == StoreBackend.SQL:
        from app.core.database import SessionLocal
        from app.core.store.sql import SQLStore

        logger.info('Using SQL record store')
        return SQLStore(SessionLocal)

    if settings.SEED_DEMO_DATA:
        logger.info('No database configured. Running in demo mode with sample data')
        return create_demo_store()

    logger.info('No database configured. Running on an empty in-memory store')
    return InMemoryStore()


# Dependency for getting the process-wide store
def get_store(connection: HTTPConnection) -> RecordStore:
    return connection.app.state.store

import os
from enum import Enum

from dotenv import load_dotenv

load_dotenv()


class Environment(str, Enum):
    TEST = 'test'
    PRODUCTION = 'production'
    DEVELOP = 'develop'


class StoreBackend(str, Enum):
    MEMORY = 'memory'
    SQL = 'sql'


class Settings:
    ENVIRONMENT: Environment = Environment(os.getenv('ENVIRONMENT') or Environment.TEST)
    DB_USERNAME: str = os.getenv('DB_USERNAME')
    DB_PASSWORD: str = os.getenv('DB_PASSWORD')
    DB_HOST: str = os.getenv('DB_HOST')
    DB_PORT: str = os.getenv('DB_PORT')
    DB_NAME: str = os.getenv('DB_NAME')

    SQLALCHEMY_TEST_DATABASE_URL = 'sqlite:///:memory:'
    DATABASE_URL: str = (
        f'postgresql://{DB_USERNAME}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}'
        if ENVIRONMENT != Environment.TEST and DB_HOST
        else SQLALCHEMY_TEST_DATABASE_URL
    )

    # Demo mode: without a configured database the app runs on a seeded
    # in-memory store.
    STORE_BACKEND: StoreBackend = StoreBackend(
        os.getenv('STORE_BACKEND')
        or (StoreBackend.SQL if DB_HOST else StoreBackend.MEMORY)
    )
    SEED_DEMO_DATA: bool = os.getenv('SEED_DEMO_DATA', 'true').lower() == 'true'

    RECENT_CHECK_INS_LIMIT: int = int(os.getenv('RECENT_CHECK_INS_LIMIT', '10'))
    LOG_LEVEL: str = (os.getenv('LOG_LEVEL') or 'DEBUG').upper()

    CHECK_IN_API_KEY: str = os.getenv('CHECK_IN_API_KEY')
    ADMIN_API_KEY: str = os.getenv('ADMIN_API_KEY')


settings = Settings()

from contextlib import asynccontextmanager

from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware

from app.api.check_in.routes import router as check_in_router
from app.api.exports.routes import router as exports_router
from app.api.participants.routes import router as participants_router
from app.api.stats.routes import router as stats_router
from app.api.volunteers.routes import router as volunteers_router
from app.core.config import Environment, StoreBackend, settings
from app.core.database import create_db
from app.core.store.factory import create_store


@asynccontextmanager
async def lifespan(app: FastAPI):
    if (
        settings.ENVIRONMENT != Environment.TEST
        and settings.STORE_BACKEND == StoreBackend.SQL
    ):
        create_db()
    app.state.store = create_store()
    yield


app = FastAPI(lifespan=lifespan)

# Include routers
app.include_router(check_in_router, prefix='/check-in', tags=['Check In'])
app.include_router(exports_router, prefix='/exports', tags=['Exports'])
app.include_router(participants_router, prefix='/participants', tags=['Participants'])
app.include_router(stats_router, prefix='/stats', tags=['Stats'])
app.include_router(volunteers_router, prefix='/volunteers', tags=['Volunteers'])

origins = ['*']
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)


@app.get('/', include_in_schema=False)
def ping():
    return Response(status_code=200)

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from printshop.api.v1.api import api_router
from printshop.core.config import settings
from printshop.core.errors import ConcurrencyConflict, LedgerError, NotFoundError, StoreError, ValidationError
from printshop.core.logging import get_logger, setup_logging
from printshop.db.mongo import close_mongo_connection, connect_to_mongo, get_db
from printshop.db.store import MongoRecordStore
from printshop.services.notification_service import NotificationService

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)
    await connect_to_mongo()
    app.state.notifier = NotificationService(MongoRecordStore(get_db()))
    try:
        yield
    finally:
        await app.state.notifier.drain()
        await close_mongo_connection()


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.PROJECT_VERSION,
    description=settings.DESCRIPTION,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


STATUS_CODES = (
    (ConcurrencyConflict, 409),
    (StoreError, 502),
    (NotFoundError, 404),
    (ValidationError, 400),
)


def status_code_for(exc: LedgerError) -> int:
    for error_type, code in STATUS_CODES:
        if isinstance(exc, error_type):
            return code
    return 500


@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError):
    code = status_code_for(exc)
    if code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=code, content=exc.to_dict())


@app.get("/")
async def root():
    return {"message": f"Welcome to {settings.PROJECT_NAME}"}


app.include_router(api_router, prefix=settings.API_V1_STR)

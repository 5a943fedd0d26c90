# carelink/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from carelink.core.config import settings
from carelink.db.sql import init_db
from carelink.routers import appointments, doctors, health, prescriptions, reminders, slots

if settings.is_production:
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format='{"time": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s"}',
    )
else:
    logging.basicConfig(
        level=logging.DEBUG if settings.DEBUG else settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Create missing tables on startup.
    """
    await init_db()
    logger.info(
        "CareLink API ready (env=%s, slots %02d:00-%02d:00)",
        settings.APP_ENV, settings.SLOT_FIRST_HOUR, settings.SLOT_LAST_HOUR,
    )
    yield


app = FastAPI(
    title="CareLink Booking API",
    lifespan=lifespan,
)

# Routing
app.include_router(health.router, prefix=settings.API_PREFIX, tags=["health"])
app.include_router(slots.router, prefix=settings.API_PREFIX, tags=["slots"])
app.include_router(doctors.router, prefix=settings.API_PREFIX, tags=["doctors"])
app.include_router(appointments.router, prefix=settings.API_PREFIX, tags=["appointments"])
app.include_router(prescriptions.router, prefix=settings.API_PREFIX, tags=["prescriptions"])
app.include_router(reminders.router, prefix=settings.API_PREFIX, tags=["reminders"])


@app.exception_handler(SQLAlchemyError)
async def storage_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("Storage failure on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": "storage_error"})


@app.get("/")
def root():
    return {"message": "CareLink API running successfully"}

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from redis import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from .config import settings
from .database import engine
from .errors import SchedulingError
from .redis_client import redis_client
from .routers import (
    availability_exceptions,
    availability_rules,
    bookings,
    scheduling_settings,
    session_types,
    slots,
)

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Buildslots API")

app.include_router(session_types.router)
app.include_router(availability_rules.router)
app.include_router(availability_exceptions.router)
app.include_router(scheduling_settings.router)
app.include_router(slots.router)
app.include_router(bookings.router)


@app.exception_handler(SchedulingError)
def scheduling_error_handler(request: Request, exc: SchedulingError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.get("/health")
def health():
    try:
        redis_ok = bool(redis_client.ping())
    except RedisError:
        redis_ok = False

    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        db_ok = True
    except SQLAlchemyError:
        db_ok = False

    return {"redis": redis_ok, "db": db_ok}

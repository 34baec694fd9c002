from typing import NoReturn

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError

from tarot_scheduling.database import SessionLocal, ensure_scheduling_schema
from tarot_scheduling.services.collaborators import Clock, system_clock
from tarot_scheduling.services.errors import (
    ConflictFailure,
    NotFound,
    SchedulingError,
    StateFailure,
    ValidationFailure,
)

DATABASE_UNAVAILABLE_DETAIL = 'Database unavailable. Verify DATABASE_URL and database credentials.'

_STATUS_BY_FAILURE = (
    (ValidationFailure, status.HTTP_400_BAD_REQUEST),
    (StateFailure, status.HTTP_400_BAD_REQUEST),
    (NotFound, status.HTTP_404_NOT_FOUND),
    (ConflictFailure, status.HTTP_409_CONFLICT),
)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_clock() -> Clock:
    return system_clock


def ensure_database_ready() -> None:
    try:
        ensure_scheduling_schema()
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


def database_unavailable() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=DATABASE_UNAVAILABLE_DETAIL,
    )


def raise_http_error(exc: SchedulingError) -> NoReturn:
    for failure_type, status_code in _STATUS_BY_FAILURE:
        if isinstance(exc, failure_type):
            raise HTTPException(status_code=status_code, detail=exc.message) from exc

    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.message) from exc

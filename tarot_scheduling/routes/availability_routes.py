from datetime import date, time

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tarot_scheduling.models.availability import SATURDAY, SUNDAY
from tarot_scheduling.models.exception import ExceptionType
from tarot_scheduling.routes.dependencies import (
    database_unavailable,
    ensure_database_ready,
    get_clock,
    get_db,
    raise_http_error,
)
from tarot_scheduling.services import availability_store, exception_store
from tarot_scheduling.services.collaborators import Clock
from tarot_scheduling.services.errors import SchedulingError
from tarot_scheduling.services.slot_projection import project_slots

router = APIRouter(tags=['availability'])

SESSION_DURATIONS = (30, 60, 90)
MAX_SLOT_RANGE_DAYS = 31
MAX_REASON_LENGTH = 500


class SetWeeklyAvailabilityRequest(BaseModel):
    day_of_week: int = Field(ge=SUNDAY, le=SATURDAY)
    start_time: time
    end_time: time

    @field_validator('start_time', 'end_time')
    @classmethod
    def truncate_seconds(cls, value: time) -> time:
        return value.replace(second=0, microsecond=0)


class WeeklyAvailabilityResponse(BaseModel):
    id: int
    day_of_week: int
    start_time: time
    end_time: time
    is_active: bool

    class Config:
        from_attributes = True


class AddExceptionRequest(BaseModel):
    exception_date: date
    exception_type: ExceptionType
    start_time: time | None = None
    end_time: time | None = None
    reason: str | None = None

    @field_validator('reason')
    @classmethod
    def validate_reason(cls, value: str | None) -> str | None:
        if value is None:
            return None

        normalized = value.strip()
        if not normalized:
            return None

        if len(normalized) > MAX_REASON_LENGTH:
            raise ValueError(f'Reason must be {MAX_REASON_LENGTH} characters or fewer.')

        return normalized


class AvailabilityExceptionResponse(BaseModel):
    id: int
    exception_date: date
    exception_type: str
    start_time: time | None = None
    end_time: time | None = None
    reason: str | None = None

    class Config:
        from_attributes = True


class AvailableSlotResponse(BaseModel):
    date: date
    time: time
    duration_minutes: int
    available: bool

    class Config:
        from_attributes = True


@router.get('/weekly', response_model=list[WeeklyAvailabilityResponse])
def list_weekly_availability(
    provider_id: int = Query(...),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return availability_store.get_weekly_availability(db, provider_id)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.post('/weekly', response_model=WeeklyAvailabilityResponse, status_code=status.HTTP_201_CREATED)
def set_weekly_availability(
    data: SetWeeklyAvailabilityRequest,
    provider_id: int = Query(...),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return availability_store.set_weekly_availability(
            db,
            provider_id,
            data.day_of_week,
            data.start_time,
            data.end_time,
        )
    except SchedulingError as exc:
        raise_http_error(exc)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.delete('/weekly/{availability_id}', status_code=status.HTTP_204_NO_CONTENT)
def remove_weekly_availability(
    availability_id: int,
    provider_id: int = Query(...),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        availability_store.remove_weekly_availability(db, provider_id, availability_id)
    except SchedulingError as exc:
        raise_http_error(exc)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.get('/exceptions', response_model=list[AvailabilityExceptionResponse])
def list_upcoming_exceptions(
    provider_id: int = Query(...),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    ensure_database_ready()

    try:
        return exception_store.get_upcoming_exceptions(db, provider_id, clock=clock)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.post('/exceptions', response_model=AvailabilityExceptionResponse, status_code=status.HTTP_201_CREATED)
def add_exception(
    data: AddExceptionRequest,
    provider_id: int = Query(...),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    ensure_database_ready()

    try:
        return exception_store.add_exception(
            db,
            provider_id,
            data.exception_date,
            data.exception_type,
            start_time=data.start_time,
            end_time=data.end_time,
            reason=data.reason,
            clock=clock,
        )
    except SchedulingError as exc:
        raise_http_error(exc)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.delete('/exceptions/{exception_id}', status_code=status.HTTP_204_NO_CONTENT)
def remove_exception(
    exception_id: int,
    provider_id: int = Query(...),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        exception_store.remove_exception(db, provider_id, exception_id)
    except SchedulingError as exc:
        raise_http_error(exc)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.get('/slots', response_model=list[AvailableSlotResponse])
def list_available_slots(
    provider_id: int = Query(...),
    start_date: date = Query(...),
    end_date: date = Query(...),
    duration_minutes: int = Query(default=60),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    if duration_minutes not in SESSION_DURATIONS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='Session duration must be 30, 60 or 90 minutes.',
        )

    if end_date < start_date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='end_date must not be before start_date.',
        )

    if (end_date - start_date).days >= MAX_SLOT_RANGE_DAYS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f'Slots can be requested for at most {MAX_SLOT_RANGE_DAYS} days at a time.',
        )

    ensure_database_ready()

    try:
        return project_slots(db, provider_id, start_date, end_date, duration_minutes, clock=clock)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc

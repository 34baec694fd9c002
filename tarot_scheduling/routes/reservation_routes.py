from datetime import date, datetime, time
from decimal import Decimal

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tarot_scheduling.models.reservation import ReservationStatus, ServiceType
from tarot_scheduling.routes.availability_routes import SESSION_DURATIONS
from tarot_scheduling.routes.dependencies import (
    database_unavailable,
    ensure_database_ready,
    get_clock,
    get_db,
    raise_http_error,
)
from tarot_scheduling.services import lifecycle, reservation_store
from tarot_scheduling.services.booking import BookingRequest, book_session
from tarot_scheduling.services.collaborators import Clock
from tarot_scheduling.services.errors import SchedulingError

router = APIRouter(tags=['reservations'])

MAX_NOTES_LENGTH = 600


def normalize_optional_text(value: str | None) -> str | None:
    if value is None:
        return None

    normalized = value.strip()
    if not normalized:
        return None

    if len(normalized) > MAX_NOTES_LENGTH:
        raise ValueError(f'Notes must be {MAX_NOTES_LENGTH} characters or fewer.')

    return normalized


class BookSessionRequest(BaseModel):
    provider_id: int
    session_date: date
    session_time: time
    duration_minutes: int
    service_type: ServiceType
    client_email: str
    notes: str | None = None

    @field_validator('client_email')
    @classmethod
    def validate_client_email(cls, value: str) -> str:
        normalized = value.strip().lower()
        if not normalized:
            raise ValueError('Client email is required.')
        return normalized

    @field_validator('duration_minutes')
    @classmethod
    def validate_duration(cls, value: int) -> int:
        if value not in SESSION_DURATIONS:
            raise ValueError('Session duration must be 30, 60 or 90 minutes.')
        return value

    @field_validator('session_time')
    @classmethod
    def truncate_seconds(cls, value: time) -> time:
        return value.replace(second=0, microsecond=0)

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, value: str | None) -> str | None:
        return normalize_optional_text(value)


class ProviderNotesRequest(BaseModel):
    notes: str | None = None

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, value: str | None) -> str | None:
        return normalize_optional_text(value)


class CancelReservationRequest(BaseModel):
    reason: str

    @field_validator('reason')
    @classmethod
    def validate_reason(cls, value: str) -> str:
        normalized = normalize_optional_text(value)
        if normalized is None:
            raise ValueError('A cancellation reason is required.')
        return normalized


class ReservationResponse(BaseModel):
    id: int
    provider_id: int
    client_id: int
    client_email: str
    session_date: date
    session_time: time
    duration_minutes: int
    service_type: str
    status: str
    price_amount: Decimal
    payment_status: str
    meeting_link: str
    client_notes: str | None = None
    provider_notes: str | None = None
    cancellation_reason: str | None = None
    created_at: datetime | None = None
    confirmed_at: datetime | None = None
    cancelled_at: datetime | None = None
    completed_at: datetime | None = None

    class Config:
        from_attributes = True


@router.post('/book', response_model=ReservationResponse, status_code=status.HTTP_201_CREATED)
def book_reservation(
    data: BookSessionRequest,
    client_id: int = Query(...),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    ensure_database_ready()

    request = BookingRequest(
        provider_id=data.provider_id,
        session_date=data.session_date,
        session_time=data.session_time,
        duration_minutes=data.duration_minutes,
        service_type=data.service_type,
        notes=data.notes,
    )

    try:
        return book_session(db, client_id, data.client_email, request, clock=clock)
    except SchedulingError as exc:
        raise_http_error(exc)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.get('/mine', response_model=list[ReservationResponse])
def list_my_reservations(
    client_id: int = Query(...),
    reservation_status: ReservationStatus | None = Query(default=None, alias='status'),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return reservation_store.list_for_client(db, client_id, status=reservation_status)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.get('/mine/{reservation_id}', response_model=ReservationResponse)
def get_my_reservation(
    reservation_id: int,
    client_id: int = Query(...),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return reservation_store.get_for_client(db, reservation_id, client_id)
    except SchedulingError as exc:
        raise_http_error(exc)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.post('/mine/{reservation_id}/cancel', response_model=ReservationResponse)
def cancel_my_reservation(
    reservation_id: int,
    data: CancelReservationRequest,
    client_id: int = Query(...),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    ensure_database_ready()

    try:
        return lifecycle.cancel(db, reservation_id, client_id, data.reason, clock=clock)
    except SchedulingError as exc:
        raise_http_error(exc)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.get('/provider', response_model=list[ReservationResponse])
def list_provider_reservations(
    provider_id: int = Query(...),
    session_date: date | None = Query(default=None),
    reservation_status: ReservationStatus | None = Query(default=None, alias='status'),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return reservation_store.list_for_provider(
            db,
            provider_id,
            session_date=session_date,
            status=reservation_status,
        )
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.post('/provider/{reservation_id}/confirm', response_model=ReservationResponse)
def confirm_reservation(
    reservation_id: int,
    data: ProviderNotesRequest,
    provider_id: int = Query(...),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    ensure_database_ready()

    try:
        return lifecycle.confirm(db, reservation_id, provider_id, notes=data.notes, clock=clock)
    except SchedulingError as exc:
        raise_http_error(exc)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.post('/provider/{reservation_id}/complete', response_model=ReservationResponse)
def complete_reservation(
    reservation_id: int,
    data: ProviderNotesRequest,
    provider_id: int = Query(...),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    ensure_database_ready()

    try:
        return lifecycle.complete(db, reservation_id, provider_id, notes=data.notes, clock=clock)
    except SchedulingError as exc:
        raise_http_error(exc)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.post('/provider/{reservation_id}/cancel', response_model=ReservationResponse)
def cancel_reservation_as_provider(
    reservation_id: int,
    data: CancelReservationRequest,
    provider_id: int = Query(...),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    ensure_database_ready()

    try:
        return lifecycle.cancel_by_provider(db, reservation_id, provider_id, data.reason, clock=clock)
    except SchedulingError as exc:
        raise_http_error(exc)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc

"""
Reservation Store

Queries over reservations and the status-guarded update used by every
life-cycle transition. Reservations are never deleted.
"""

from datetime import date, time
from typing import Any

from sqlalchemy.orm import Session

from tarot_scheduling.models.reservation import LIVE_STATUSES, Reservation, ReservationStatus
from tarot_scheduling.services.errors import NotFound


def get_for_provider(db: Session, reservation_id: int, provider_id: int) -> Reservation:
    reservation = db.query(Reservation).filter(
        Reservation.id == reservation_id,
        Reservation.provider_id == provider_id,
    ).first()
    if not reservation:
        raise NotFound('Reservation not found.')
    return reservation


def get_for_client(db: Session, reservation_id: int, client_id: int) -> Reservation:
    reservation = db.query(Reservation).filter(
        Reservation.id == reservation_id,
        Reservation.client_id == client_id,
    ).first()
    if not reservation:
        raise NotFound('Reservation not found.')
    return reservation


def find_live_at(db: Session, provider_id: int, session_date: date, session_time: time) -> Reservation | None:
    return db.query(Reservation).filter(
        Reservation.provider_id == provider_id,
        Reservation.session_date == session_date,
        Reservation.session_time == session_time,
        Reservation.status.in_(LIVE_STATUSES),
    ).first()


def find_pending_for_client(db: Session, client_id: int, provider_id: int) -> Reservation | None:
    return db.query(Reservation).filter(
        Reservation.client_id == client_id,
        Reservation.provider_id == provider_id,
        Reservation.status == ReservationStatus.PENDING.value,
    ).first()


def live_in_range(db: Session, provider_id: int, start_date: date, end_date: date) -> list[Reservation]:
    return db.query(Reservation).filter(
        Reservation.provider_id == provider_id,
        Reservation.session_date >= start_date,
        Reservation.session_date <= end_date,
        Reservation.status.in_(LIVE_STATUSES),
    ).all()


def list_for_client(db: Session, client_id: int, status: ReservationStatus | None = None) -> list[Reservation]:
    query = db.query(Reservation).filter(Reservation.client_id == client_id)
    if status is not None:
        query = query.filter(Reservation.status == ReservationStatus(status).value)

    return query.order_by(Reservation.session_date.desc(), Reservation.session_time.desc()).all()


def list_for_provider(
    db: Session,
    provider_id: int,
    session_date: date | None = None,
    status: ReservationStatus | None = None,
) -> list[Reservation]:
    query = db.query(Reservation).filter(Reservation.provider_id == provider_id)
    if session_date is not None:
        query = query.filter(Reservation.session_date == session_date)
    if status is not None:
        query = query.filter(Reservation.status == ReservationStatus(status).value)

    return query.order_by(Reservation.session_date.asc(), Reservation.session_time.asc()).all()


def update_if_status(db: Session, reservation: Reservation, expected_status: str, values: dict[str, Any]) -> bool:
    """Apply ``values`` only while the row still has ``expected_status``.

    Commits on success. Returns False, leaving the row untouched, when a
    concurrent writer moved the reservation first.
    """
    try:
        updated_rows = db.query(Reservation).filter(
            Reservation.id == reservation.id,
            Reservation.status == expected_status,
        ).update(values, synchronize_session=False)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(reservation)
    return updated_rows == 1

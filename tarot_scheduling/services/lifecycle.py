"""
Reservation Lifecycle

PENDING -> CONFIRMED -> COMPLETED, plus the cancellation edges. COMPLETED
and both cancelled states are terminal. Each transition is applied with a
status-guarded UPDATE; if another writer got there first the transition is
re-evaluated against the fresh row and fails.
"""

import logging
from datetime import datetime, timedelta
from typing import Callable

from sqlalchemy.orm import Session

from tarot_scheduling.core import config
from tarot_scheduling.models.reservation import Reservation, ReservationStatus
from tarot_scheduling.services import reservation_store
from tarot_scheduling.services.collaborators import Clock, system_clock
from tarot_scheduling.services.errors import AlreadyFinalized, CancellationWindowViolation, InvalidTransition

logger = logging.getLogger(__name__)


def _apply(
    db: Session,
    reservation: Reservation,
    check: Callable[[Reservation], None],
    values: dict,
) -> Reservation:
    check(reservation)
    if not reservation_store.update_if_status(db, reservation, reservation.status, values):
        # Lost a race; the refreshed row decides the error.
        check(reservation)
        raise InvalidTransition()

    logger.info('Reservation %s moved to %s', reservation.id, reservation.status)
    return reservation


def session_start(reservation: Reservation) -> datetime:
    return datetime.combine(reservation.session_date, reservation.session_time)


def confirm(
    db: Session,
    reservation_id: int,
    provider_id: int,
    notes: str | None = None,
    clock: Clock = system_clock,
) -> Reservation:
    reservation = reservation_store.get_for_provider(db, reservation_id, provider_id)

    def check(current: Reservation) -> None:
        if current.status != ReservationStatus.PENDING.value:
            raise InvalidTransition('Only pending reservations can be confirmed.')

    values = {'status': ReservationStatus.CONFIRMED.value, 'confirmed_at': clock()}
    if notes:
        values['provider_notes'] = notes
    return _apply(db, reservation, check, values)


def cancel(
    db: Session,
    reservation_id: int,
    client_id: int,
    reason: str,
    clock: Clock = system_clock,
) -> Reservation:
    reservation = reservation_store.get_for_client(db, reservation_id, client_id)
    now = clock()

    def check(current: Reservation) -> None:
        if current.is_terminal:
            raise AlreadyFinalized()
        if session_start(current) - now < timedelta(hours=config.CANCELLATION_WINDOW_HOURS):
            raise CancellationWindowViolation(
                f'Reservations can only be cancelled at least {config.CANCELLATION_WINDOW_HOURS} hours in advance.'
            )

    values = {
        'status': ReservationStatus.CANCELLED_BY_CLIENT.value,
        'cancelled_at': now,
        'cancellation_reason': reason,
    }
    return _apply(db, reservation, check, values)


def cancel_by_provider(
    db: Session,
    reservation_id: int,
    provider_id: int,
    reason: str,
    clock: Clock = system_clock,
) -> Reservation:
    reservation = reservation_store.get_for_provider(db, reservation_id, provider_id)

    def check(current: Reservation) -> None:
        if current.is_terminal:
            raise AlreadyFinalized()

    values = {
        'status': ReservationStatus.CANCELLED_BY_PROVIDER.value,
        'cancelled_at': clock(),
        'cancellation_reason': reason,
    }
    return _apply(db, reservation, check, values)


def complete(
    db: Session,
    reservation_id: int,
    provider_id: int,
    notes: str | None = None,
    clock: Clock = system_clock,
) -> Reservation:
    reservation = reservation_store.get_for_provider(db, reservation_id, provider_id)

    def check(current: Reservation) -> None:
        if current.status != ReservationStatus.CONFIRMED.value:
            raise InvalidTransition('Only confirmed reservations can be completed.')

    values = {'status': ReservationStatus.COMPLETED.value, 'completed_at': clock()}
    if notes:
        values['provider_notes'] = notes
    return _apply(db, reservation, check, values)

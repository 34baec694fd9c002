"""
Booking Orchestrator

Converts a slot selection into a PENDING reservation. The availability
re-check, the exact-slot existence check and the insert all run in the
session's transaction; the partial unique index on live reservations makes
the last step safe when two requests race past the checks together.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from tarot_scheduling.core import config
from tarot_scheduling.models.reservation import PaymentStatus, Reservation, ReservationStatus, ServiceType
from tarot_scheduling.services import reservation_store
from tarot_scheduling.services.collaborators import (
    Clock,
    MeetingReferenceFactory,
    PriceLookup,
    new_meeting_reference,
    price_for,
    system_clock,
)
from tarot_scheduling.services.errors import ExistingPendingReservation, LeadTimeViolation, SlotUnavailable
from tarot_scheduling.services.slot_projection import project_slots

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BookingRequest:
    provider_id: int
    session_date: date
    session_time: time
    duration_minutes: int
    service_type: ServiceType
    notes: str | None = None


def has_pending_reservation(db: Session, client_id: int, provider_id: int) -> bool:
    """One outstanding request per client and provider."""
    return reservation_store.find_pending_for_client(db, client_id, provider_id) is not None


def is_slot_offered(
    db: Session,
    request: BookingRequest,
    clock: Clock,
) -> bool:
    slots = project_slots(
        db,
        request.provider_id,
        request.session_date,
        request.session_date,
        request.duration_minutes,
        clock=clock,
    )
    return any(
        slot.date == request.session_date and slot.time == request.session_time and slot.available
        for slot in slots
    )


def book_session(
    db: Session,
    client_id: int,
    client_email: str,
    request: BookingRequest,
    clock: Clock = system_clock,
    price_lookup: PriceLookup = price_for,
    meeting_reference: MeetingReferenceFactory = new_meeting_reference,
) -> Reservation:
    # A start exactly at the boundary passes here and is then refused by the
    # projection re-check, which only offers slots strictly later.
    session_start = datetime.combine(request.session_date, request.session_time)
    if session_start < clock() + timedelta(hours=config.MIN_LEAD_TIME_HOURS):
        raise LeadTimeViolation(
            f'Reservations must be booked at least {config.MIN_LEAD_TIME_HOURS} hours in advance.'
        )

    if has_pending_reservation(db, client_id, request.provider_id):
        raise ExistingPendingReservation()

    service_type = ServiceType(request.service_type)

    try:
        if not is_slot_offered(db, request, clock):
            raise SlotUnavailable()

        if reservation_store.find_live_at(db, request.provider_id, request.session_date, request.session_time):
            raise SlotUnavailable('This slot was just booked by someone else. Please choose another time.')

        reservation = Reservation(
            provider_id=request.provider_id,
            client_id=client_id,
            client_email=client_email,
            session_date=request.session_date,
            session_time=request.session_time,
            duration_minutes=request.duration_minutes,
            service_type=service_type.value,
            status=ReservationStatus.PENDING.value,
            price_amount=price_lookup(service_type.value, request.duration_minutes),
            payment_status=PaymentStatus.PENDING.value,
            meeting_link=meeting_reference(),
            client_notes=request.notes,
        )
        db.add(reservation)
        db.flush()
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        logger.warning(
            'Lost booking race for provider %s on %s %s',
            request.provider_id,
            request.session_date,
            request.session_time,
        )
        raise SlotUnavailable('This slot was just booked by someone else. Please choose another time.') from exc
    except SlotUnavailable:
        db.rollback()
        logger.info(
            'Slot %s %s unavailable for provider %s',
            request.session_date,
            request.session_time,
            request.provider_id,
        )
        raise
    except Exception:
        db.rollback()
        raise

    db.refresh(reservation)
    logger.info(
        'Client %s booked reservation %s with provider %s on %s %s',
        client_id,
        reservation.id,
        request.provider_id,
        request.session_date,
        request.session_time,
    )
    return reservation

"""
Slot Projection

Turns a provider's weekly template, the exceptions in a date range and the
live reservations in that range into bookable slots. ``compute_slots`` is
a pure function over already-loaded rows; ``project_slots`` loads those
rows from one session and calls it.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Iterable

from sqlalchemy.orm import Session

from tarot_scheduling.core import config
from tarot_scheduling.models.availability import WeeklyAvailability
from tarot_scheduling.models.exception import AvailabilityException, ExceptionType
from tarot_scheduling.models.reservation import Reservation
from tarot_scheduling.services import availability_store, exception_store, reservation_store
from tarot_scheduling.services.collaborators import Clock, system_clock

MINUTES_PER_DAY = 24 * 60


@dataclass(frozen=True)
class Slot:
    date: date
    time: time
    duration_minutes: int
    available: bool = True


@dataclass(frozen=True)
class Blocked:
    pass


@dataclass(frozen=True)
class CustomWindow:
    start_time: time
    end_time: time


@dataclass(frozen=True)
class TemplateWindow:
    start_time: time
    end_time: time


@dataclass(frozen=True)
class NoAvailability:
    pass


DayResolution = Blocked | CustomWindow | TemplateWindow | NoAvailability


def day_of_week(day: date) -> int:
    """Day index with Sunday as 0, the numbering stored in weekly_availability."""
    return (day.weekday() + 1) % 7


def to_minutes(value: time) -> int:
    return value.hour * 60 + value.minute


def from_minutes(minutes: int) -> time:
    return time(minutes // 60, minutes % 60)


def meets_lead_time(start: datetime, now: datetime) -> bool:
    return start > now + timedelta(hours=config.MIN_LEAD_TIME_HOURS)


def overlaps(start_a: int, length_a: int, start_b: int, length_b: int) -> bool:
    return start_a < start_b + length_b and start_b < start_a + length_a


def resolve_day(
    day: date,
    templates_by_day: dict[int, WeeklyAvailability],
    exceptions_by_date: dict[date, AvailabilityException],
) -> DayResolution:
    exception = exceptions_by_date.get(day)
    if exception is not None:
        if exception.is_blocked:
            return Blocked()
        if exception.exception_type == ExceptionType.CUSTOM_HOURS.value:
            return CustomWindow(exception.start_time, exception.end_time)

    template = templates_by_day.get(day_of_week(day))
    if template is None:
        return NoAvailability()
    return TemplateWindow(template.start_time, template.end_time)


def generate_time_slots(start_time: time, end_time: time, interval_minutes: int) -> list[time]:
    # Candidates only need to start before the window end; a long session
    # may run past it.
    slots: list[time] = []
    current = to_minutes(start_time)
    end = to_minutes(end_time)

    while current < end and current < MINUTES_PER_DAY:
        slots.append(from_minutes(current))
        current += interval_minutes

    return slots


def is_slot_occupied(slot_time: time, duration_minutes: int, reservations: Iterable[Reservation]) -> bool:
    slot_start = to_minutes(slot_time)
    for reservation in reservations:
        if overlaps(slot_start, duration_minutes, to_minutes(reservation.session_time), reservation.duration_minutes):
            return True
    return False


def compute_slots(
    start_date: date,
    end_date: date,
    duration_minutes: int,
    weekly_availability: list[WeeklyAvailability],
    exceptions: list[AvailabilityException],
    reservations: list[Reservation],
    now: datetime,
) -> list[Slot]:
    if not weekly_availability:
        return []

    templates_by_day = {availability.day_of_week: availability for availability in weekly_availability}
    exceptions_by_date = {exception.exception_date: exception for exception in exceptions}
    reservations_by_date: dict[date, list[Reservation]] = {}
    for reservation in reservations:
        reservations_by_date.setdefault(reservation.session_date, []).append(reservation)

    slots: list[Slot] = []
    current_day = start_date

    while current_day <= end_date:
        resolution = resolve_day(current_day, templates_by_day, exceptions_by_date)

        if isinstance(resolution, (CustomWindow, TemplateWindow)):
            day_reservations = reservations_by_date.get(current_day, [])
            for slot_time in generate_time_slots(
                resolution.start_time,
                resolution.end_time,
                config.SLOT_INTERVAL_MINUTES,
            ):
                if not meets_lead_time(datetime.combine(current_day, slot_time), now):
                    continue
                if is_slot_occupied(slot_time, duration_minutes, day_reservations):
                    continue
                slots.append(Slot(date=current_day, time=slot_time, duration_minutes=duration_minutes))

        current_day += timedelta(days=1)

    return slots


def project_slots(
    db: Session,
    provider_id: int,
    start_date: date,
    end_date: date,
    duration_minutes: int,
    clock: Clock = system_clock,
) -> list[Slot]:
    weekly_availability = availability_store.get_weekly_availability(db, provider_id)
    if not weekly_availability:
        return []

    exceptions = exception_store.get_exceptions_in_range(db, provider_id, start_date, end_date)
    reservations = reservation_store.live_in_range(db, provider_id, start_date, end_date)

    return compute_slots(
        start_date=start_date,
        end_date=end_date,
        duration_minutes=duration_minutes,
        weekly_availability=weekly_availability,
        exceptions=exceptions,
        reservations=reservations,
        now=clock(),
    )

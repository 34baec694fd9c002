from datetime import date, time

import pytest

from tarot_scheduling.models.exception import AvailabilityException, ExceptionType
from tarot_scheduling.services.errors import DuplicateException, InvalidRange, NotFound, PastDate
from tarot_scheduling.services.exception_store import (
    add_exception,
    get_exceptions_in_range,
    get_upcoming_exceptions,
    remove_exception,
)

from sample_data import MONDAY, OTHER_PROVIDER_ID, PROVIDER_ID, SUNDAY


def test_add_exception_blocks_a_day_and_drops_hours(scheduling_db, clock) -> None:
    exception = add_exception(
        scheduling_db,
        PROVIDER_ID,
        MONDAY,
        ExceptionType.BLOCKED,
        start_time=time(9, 0),
        end_time=time(10, 0),
        reason='Retreat',
        clock=clock,
    )

    assert exception.exception_type == 'blocked'
    assert exception.start_time is None
    assert exception.end_time is None
    assert exception.reason == 'Retreat'


def test_add_exception_stores_custom_hours(scheduling_db, clock) -> None:
    exception = add_exception(
        scheduling_db,
        PROVIDER_ID,
        MONDAY,
        ExceptionType.CUSTOM_HOURS,
        start_time=time(15, 0),
        end_time=time(18, 0),
        clock=clock,
    )

    assert exception.exception_type == 'custom_hours'
    assert (exception.start_time, exception.end_time) == (time(15, 0), time(18, 0))


def test_add_exception_allows_today(scheduling_db, clock) -> None:
    exception = add_exception(scheduling_db, PROVIDER_ID, SUNDAY, ExceptionType.BLOCKED, clock=clock)

    assert exception.exception_date == SUNDAY


def test_add_exception_rejects_past_date_before_checking_hours(scheduling_db, clock) -> None:
    with pytest.raises(PastDate):
        add_exception(
            scheduling_db,
            PROVIDER_ID,
            date(2026, 1, 3),
            ExceptionType.CUSTOM_HOURS,
            start_time=time(18, 0),
            end_time=time(9, 0),
            clock=clock,
        )


@pytest.mark.parametrize(
    ('start', 'end'),
    [(time(18, 0), time(9, 0)), (time(9, 0), time(9, 0)), (None, time(9, 0)), (time(9, 0), None)],
)
def test_add_exception_rejects_invalid_custom_window(scheduling_db, clock, start, end) -> None:
    with pytest.raises(InvalidRange):
        add_exception(
            scheduling_db,
            PROVIDER_ID,
            MONDAY,
            ExceptionType.CUSTOM_HOURS,
            start_time=start,
            end_time=end,
            clock=clock,
        )

    assert scheduling_db.query(AvailabilityException).count() == 0


def test_add_exception_rejects_second_exception_for_date(scheduling_db, clock) -> None:
    add_exception(scheduling_db, PROVIDER_ID, MONDAY, ExceptionType.BLOCKED, clock=clock)

    with pytest.raises(DuplicateException):
        add_exception(
            scheduling_db,
            PROVIDER_ID,
            MONDAY,
            ExceptionType.CUSTOM_HOURS,
            start_time=time(9, 0),
            end_time=time(10, 0),
            clock=clock,
        )


def test_add_exception_same_date_for_other_provider_is_allowed(scheduling_db, clock) -> None:
    add_exception(scheduling_db, PROVIDER_ID, MONDAY, ExceptionType.BLOCKED, clock=clock)
    other = add_exception(scheduling_db, OTHER_PROVIDER_ID, MONDAY, ExceptionType.BLOCKED, clock=clock)

    assert other.provider_id == OTHER_PROVIDER_ID


def test_get_exceptions_in_range_is_inclusive_and_ordered(scheduling_db, clock) -> None:
    for day in (date(2026, 1, 9), MONDAY, date(2026, 1, 7), date(2026, 1, 12)):
        add_exception(scheduling_db, PROVIDER_ID, day, ExceptionType.BLOCKED, clock=clock)
    add_exception(scheduling_db, OTHER_PROVIDER_ID, date(2026, 1, 6), ExceptionType.BLOCKED, clock=clock)

    exceptions = get_exceptions_in_range(scheduling_db, PROVIDER_ID, MONDAY, date(2026, 1, 9))

    assert [exception.exception_date for exception in exceptions] == [MONDAY, date(2026, 1, 7), date(2026, 1, 9)]


def test_get_upcoming_exceptions_skips_past_dates(scheduling_db, clock) -> None:
    scheduling_db.add(
        AvailabilityException(provider_id=PROVIDER_ID, exception_date=date(2026, 1, 2), exception_type='blocked')
    )
    scheduling_db.commit()
    add_exception(scheduling_db, PROVIDER_ID, MONDAY, ExceptionType.BLOCKED, clock=clock)

    exceptions = get_upcoming_exceptions(scheduling_db, PROVIDER_ID, clock=clock)

    assert [exception.exception_date for exception in exceptions] == [MONDAY]


def test_remove_exception_deletes_row(scheduling_db, clock) -> None:
    exception = add_exception(scheduling_db, PROVIDER_ID, MONDAY, ExceptionType.BLOCKED, clock=clock)

    remove_exception(scheduling_db, PROVIDER_ID, exception.id)

    assert scheduling_db.query(AvailabilityException).count() == 0


def test_remove_exception_reports_not_found_for_other_provider(scheduling_db, clock) -> None:
    exception = add_exception(scheduling_db, OTHER_PROVIDER_ID, MONDAY, ExceptionType.BLOCKED, clock=clock)

    with pytest.raises(NotFound):
        remove_exception(scheduling_db, PROVIDER_ID, exception.id)

    with pytest.raises(NotFound):
        remove_exception(scheduling_db, PROVIDER_ID, 999)

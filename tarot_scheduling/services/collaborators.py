"""Default implementations of the engine's injected collaborators."""

import secrets
import string
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable

from tarot_scheduling.core import config
from tarot_scheduling.models.reservation import ServiceType

Clock = Callable[[], datetime]
PriceLookup = Callable[[str, int], Decimal]
MeetingReferenceFactory = Callable[[], str]

# Price per minute of session.
RATES_PER_MINUTE = {
    ServiceType.TAROT_READING.value: Decimal("0.83"),
    ServiceType.ENERGY_CLEANING.value: Decimal("1.00"),
    ServiceType.HEBREW_PENDULUM.value: Decimal("0.67"),
    ServiceType.CONSULTATION.value: Decimal("0.50"),
}
FALLBACK_RATE_PER_MINUTE = Decimal("0.50")
CENT = Decimal("0.01")

_MEETING_CODE_GROUPS = (3, 4, 3)


def system_clock() -> datetime:
    return datetime.now()


def price_for(service_type: str, duration_minutes: int) -> Decimal:
    rate = RATES_PER_MINUTE.get(service_type, FALLBACK_RATE_PER_MINUTE)
    return (rate * duration_minutes).quantize(CENT, rounding=ROUND_HALF_UP)


def new_meeting_reference() -> str:
    code = '-'.join(
        ''.join(secrets.choice(string.ascii_lowercase) for _ in range(group_length))
        for group_length in _MEETING_CODE_GROUPS
    )
    return f"{config.MEETING_BASE_URL.rstrip('/')}/{code}"

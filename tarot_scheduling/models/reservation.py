"""Reservation model definitions."""

import enum

from sqlalchemy import Column, Date, DateTime, Index, Integer, Numeric, String, Text, Time, func

from tarot_scheduling.database import Base


class ReservationStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED_BY_CLIENT = "cancelled_by_client"
    CANCELLED_BY_PROVIDER = "cancelled_by_provider"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    REFUNDED = "refunded"


class ServiceType(str, enum.Enum):
    TAROT_READING = "tarot_reading"
    ENERGY_CLEANING = "energy_cleaning"
    HEBREW_PENDULUM = "hebrew_pendulum"
    CONSULTATION = "consultation"


# Statuses that occupy calendar space.
LIVE_STATUSES = (ReservationStatus.PENDING.value, ReservationStatus.CONFIRMED.value)

TERMINAL_STATUSES = (
    ReservationStatus.COMPLETED.value,
    ReservationStatus.CANCELLED_BY_CLIENT.value,
    ReservationStatus.CANCELLED_BY_PROVIDER.value,
)


class Reservation(Base):
    """A client's booked session with a provider."""
    __tablename__ = "reservations"

    id = Column(Integer, primary_key=True)
    provider_id = Column(Integer, nullable=False)
    client_id = Column(Integer, nullable=False)
    client_email = Column(String(255), nullable=False)
    session_date = Column(Date, nullable=False)
    session_time = Column(Time, nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    service_type = Column(String(50), nullable=False)
    status = Column(String(50), nullable=False, default=ReservationStatus.PENDING.value)
    price_amount = Column(Numeric(10, 2), nullable=False)
    payment_status = Column(String(50), nullable=False, default=PaymentStatus.PENDING.value)
    meeting_link = Column(String(255), nullable=False)
    client_notes = Column(Text, nullable=True)
    provider_notes = Column(Text, nullable=True)
    cancellation_reason = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
    confirmed_at = Column(DateTime, nullable=True)
    cancelled_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)

    @property
    def is_live(self) -> bool:
        return self.status in LIVE_STATUSES

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


Index(
    "idx_reservations_provider_date_time",
    Reservation.provider_id,
    Reservation.session_date,
    Reservation.session_time,
)
Index("idx_reservations_client_date", Reservation.client_id, Reservation.session_date)
Index("idx_reservations_status", Reservation.status)

# One live reservation per provider slot, enforced by the database so the
# guarantee holds across every service instance.
Index(
    "uq_reservations_live_slot",
    Reservation.provider_id,
    Reservation.session_date,
    Reservation.session_time,
    unique=True,
    postgresql_where=Reservation.status.in_(LIVE_STATUSES),
    sqlite_where=Reservation.status.in_(LIVE_STATUSES),
)

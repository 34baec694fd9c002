"""
Scheduling Errors

Typed failures raised by the scheduling engine. Every failure a caller can
cause with bad input or stale state is one of these; storage failures are
left as SQLAlchemyError.
"""


class SchedulingError(Exception):
    """Base class for recoverable scheduling failures."""

    default_message = "Scheduling operation failed."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationFailure(SchedulingError):
    """Input rejected before any store mutation."""


class ConflictFailure(SchedulingError):
    """Contention or stale client state; re-fetch before retrying."""


class StateFailure(SchedulingError):
    """A business rule forbids the operation in the current state."""


class NotFound(SchedulingError):
    """Identifier does not resolve within the caller's scope.

    Also used for ownership mismatches so other parties' records are not
    revealed.
    """

    default_message = "Not found."


class InvalidRange(ValidationFailure):
    default_message = "Start time must be earlier than end time."


class InvalidDayOfWeek(ValidationFailure):
    default_message = "Day of week must be between 0 (Sunday) and 6 (Saturday)."



class PastDate(ValidationFailure):
    default_message = "Exceptions cannot be added for past dates."


class DuplicateException(ConflictFailure):
    default_message = "An exception already exists for this date."


class SlotUnavailable(ConflictFailure):
    default_message = "The selected slot is not available. Please choose another time."


class ExistingPendingReservation(ConflictFailure):
    default_message = (
        "You already have a pending reservation with this tarotist. "
        "Complete or cancel it before booking another."
    )


class InvalidTransition(StateFailure):
    default_message = "This reservation cannot move to the requested status."


class AlreadyFinalized(StateFailure):
    default_message = "This reservation is already finalized."


class CancellationWindowViolation(StateFailure):
    default_message = "Reservations can only be cancelled at least 24 hours in advance."


class LeadTimeViolation(StateFailure):
    default_message = "Reservations must be booked at least 2 hours in advance."

from enum import Enum


class ErrorKind(str, Enum):
    missing_fields = "MissingFields"
    missing_player_id = "MissingPlayerId"
    capacity_exceeded = "CapacityExceeded"
    session_inactive = "SessionInactive"
    already_opened = "AlreadyOpened"
    store_unavailable = "StoreUnavailable"
    allocation_failed = "AllocationFailed"
    invariant_violation = "InvariantViolation"


class LixiError(Exception):
    """Base error of the lucky money server.

    Every error carries a stable `kind` so the routing layer can map it
    to a response without parsing the message.
    """

    kind: ErrorKind = ErrorKind.invariant_violation
    retryable: bool = False

    def __init__(self, message: str | None = None):
        self.message = message or self.kind.value
        super().__init__(self.message)

    def to_detail(self) -> dict:
        return {"error": self.kind.value, "message": self.message}


class ValidationError(LixiError):
    """Rejected input, raised before any state is read."""


class MissingFieldsError(ValidationError):
    kind = ErrorKind.missing_fields


class MissingPlayerIdError(ValidationError):
    kind = ErrorKind.missing_player_id


class StateConflictError(LixiError):
    """The request conflicts with the current session state."""


class CapacityExceededError(StateConflictError):
    kind = ErrorKind.capacity_exceeded


class SessionInactiveError(StateConflictError):
    kind = ErrorKind.session_inactive


class AlreadyOpenedError(StateConflictError):
    kind = ErrorKind.already_opened


class StoreUnavailableError(LixiError):
    kind = ErrorKind.store_unavailable
    retryable = True


class AllocationError(LixiError):
    kind = ErrorKind.allocation_failed


class InvariantViolationError(LixiError):
    kind = ErrorKind.invariant_violation

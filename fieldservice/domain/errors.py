"""Domain error taxonomy.

Every error carries a stable ``kind`` so callers (HTTP handlers, the scheduler,
tests) can branch on it without string-matching messages.
"""


class DomainError(Exception):
    kind = "DomainError"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(DomainError):
    """Malformed or missing input."""

    kind = "ValidationError"


class PermissionDeniedError(DomainError):
    """Role or ownership violation."""

    kind = "PermissionError"


class NotFoundError(DomainError):
    kind = "NotFoundError"


class InvalidStateError(DomainError):
    """The current status does not allow the requested move."""

    kind = "InvalidStateError"


class ConflictError(DomainError):
    """Lost a concurrent claim / assignment race, or a uniqueness clash."""

    kind = "ConflictError"


class DuplicateKeyError(ConflictError):
    """A generated unique key is already taken."""


class OutsideWindowError(DomainError):
    """Check-in attempted outside the allowed hours."""

    kind = "OutsideWindowError"

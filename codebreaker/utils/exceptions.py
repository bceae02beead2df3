"""Domain exceptions for the contest engine.

Every error carries a stable ``kind`` that the API layer maps to a status code,
plus a human-readable message.
"""


class GameError(RuntimeError):
    """Base class for engine errors."""

    kind = "internal"
    status_code = 500

    def __init__(self, message: str | None = None):
        super().__init__(message or self.__class__.__doc__ or self.kind)
        self.message = str(self)


class UnauthenticatedError(GameError):
    """No verified caller identity."""
    kind = "unauthenticated"
    status_code = 401


class PermissionDeniedError(GameError):
    """Caller is not allowed to perform this operation."""
    kind = "permission_denied"
    status_code = 403


class InvalidArgumentError(GameError):
    """Malformed request input."""
    kind = "invalid_argument"
    status_code = 400


class NotFoundError(GameError):
    """Referenced record does not exist."""
    kind = "not_found"
    status_code = 404


class FailedPreconditionError(GameError):
    """The system is not in a state that allows the operation."""
    kind = "failed_precondition"
    status_code = 409


class ResourceExhaustedError(GameError):
    """A rate limit or quota was hit."""
    kind = "resource_exhausted"
    status_code = 429

    def __init__(self, message: str | None = None, retry_after: int | None = None):
        super().__init__(message)
        self.retry_after = retry_after


class InternalError(GameError):
    """Unexpected store failure or invariant violation."""
    kind = "internal"
    status_code = 500


class RoundNotFoundError(NotFoundError):
    """Round not found."""


class PlayerNotFoundError(NotFoundError):
    """Player data not found."""


class PaymentNotFoundError(NotFoundError):
    """Payment record not found."""


class NoActiveRoundError(FailedPreconditionError):
    """No active round found."""


class RoundAlreadyEndedError(FailedPreconditionError):
    """Round is not active."""


class NoCodeAssignedError(FailedPreconditionError):
    """Player has no code assigned for the current round."""


class AlreadyWonError(FailedPreconditionError):
    """Player has already won in this round."""


class RoundFullError(FailedPreconditionError):
    """Round has already reached maximum winners."""


class NoDigitsLeftError(FailedPreconditionError):
    """All digits have already been revealed."""


class PaymentStateError(FailedPreconditionError):
    """Payment is not in the pending state."""


class RateLimitExceededError(ResourceExhaustedError):
    """Too many requests, wait before trying again."""


class HintsExhaustedError(ResourceExhaustedError):
    """Maximum number of hints for this round reached."""


class TransactionConflictError(InternalError):
    """Transaction kept conflicting with concurrent writers."""


class CodeGenerationError(InternalError):
    """Could not allocate a unique secret code."""

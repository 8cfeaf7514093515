"""Error taxonomy shared by every component.

Only ProviderError is ever retried, and only when it is flagged retryable.
Messages must never carry content or identifiers belonging to another tenant.
"""


class CoachingDataError(Exception):
    """Base class for all errors raised by the retrieval core."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(CoachingDataError):
    """Malformed or too-short input. Fixable by the caller."""


class AuthenticationError(CoachingDataError):
    """Missing, malformed, unknown, revoked or expired credential."""


class AuthorizationError(CoachingDataError):
    """Valid identity, but the operation is not permitted for it."""


class NotFoundError(CoachingDataError):
    """Referenced item or identity does not exist, or is not visible to the caller."""


class InvalidQueryError(CoachingDataError):
    """Malformed search parameters (e.g. query vector dimension mismatch)."""


class ProviderError(CoachingDataError):
    """Embedding backend failure.

    Attributes:
        retryable (bool): Whether the failure is transient (timeouts, 429, 5xx).
    """

    def __init__(self, message: str, retryable: bool = True) -> None:
        super().__init__(message)
        self.retryable = retryable

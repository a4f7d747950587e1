class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or required fields are missing."""


class SessionNotFound(DomainError):
    """Raised when a session id (optionally scoped by subject) does not resolve."""


class TokenInvalid(DomainError):
    """Raised when no session currently holds the presented token.

    Superseded or cleared tokens are indistinguishable from never-issued ones.
    """


class TokenExpired(DomainError):
    """Raised when the token is known but past its expiry."""


class NotEnrolled(DomainError):
    """Raised when the token is valid but the student is not enrolled in the subject."""


class TransientStorageError(Exception):
    """Lock contention or deadlock in the store; safe to retry the whole unit of work.

    Not part of the domain taxonomy: never surfaced to users as-is.
    """

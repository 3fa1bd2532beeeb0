"""
Error taxonomy for the identity service.

Every error carries a public ``message`` that is safe to hand to a caller and
an ``error_code`` for transports. Underlying storage or infrastructure detail
is logged where it happens and never placed in the message.
"""


class IdentityError(Exception):
    """Base class for all errors raised by the identity service."""

    error_code = "IDENTITY_ERROR"
    default_message = "Identity service error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(IdentityError):
    """Malformed input."""

    error_code = "VALIDATION_ERROR"
    default_message = "Invalid input"


class DuplicateAccountError(ValidationError):
    """Registration with an email that already belongs to an account."""

    error_code = "ACCOUNT_EXISTS"
    default_message = "An account with this email already exists"


class CredentialError(IdentityError):
    """Bad login or bad old password. Deliberately generic."""

    error_code = "INVALID_CREDENTIALS"
    default_message = "Invalid credentials"


class NotFoundError(IdentityError):
    """The operation requires an existing account."""

    error_code = "NOT_FOUND"
    default_message = "Account not found"


class ThrottledError(IdentityError):
    """A single-use token was re-requested inside the throttle window."""

    error_code = "THROTTLED"
    default_message = "Please wait before requesting another code"


class TokenInvalidError(IdentityError):
    """Unknown, expired, consumed or badly signed token."""

    error_code = "TOKEN_INVALID"
    default_message = "Invalid or expired token"


class DeliveryError(IdentityError):
    """The notifier could not deliver a message."""

    error_code = "DELIVERY_FAILED"
    default_message = "Message could not be delivered"


class GenericError(IdentityError):
    """Unclassified storage or infrastructure failure."""

    error_code = "GENERIC_ERROR"
    default_message = "Internal error"


class HashingError(GenericError):
    """Password hashing could not run (worker pool gone, memory exhausted)."""

    error_code = "HASHING_ERROR"
    default_message = "Unable to process password"

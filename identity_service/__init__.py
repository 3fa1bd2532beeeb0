"""Identity credential service: password login, signed access/refresh tokens,
and throttled single-use codes for email verification and password reset."""

__version__ = "1.0.0"

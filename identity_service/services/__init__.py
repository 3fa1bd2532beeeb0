"""
Service layer of the identity service.
"""

from .auth_service import AuthService

__all__ = ["AuthService"]

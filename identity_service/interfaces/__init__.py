"""
Interface definitions for the collaborators of the credential workflows.
These Protocol classes define contracts for dependency injection and testing.
"""

from .notifier_interface import INotifier
from .repository_interface import IAccountRepository
from .token_store_interface import CodeCollisionError, ISingleUseTokenStore

__all__ = [
    "CodeCollisionError",
    "IAccountRepository",
    "INotifier",
    "ISingleUseTokenStore",
]

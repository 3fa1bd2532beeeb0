"""
Test data factories.
"""

from .account_factory import DEFAULT_PASSWORD, AccountFactory, AccountFieldsFactory

__all__ = ["DEFAULT_PASSWORD", "AccountFactory", "AccountFieldsFactory"]

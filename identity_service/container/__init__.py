"""
Dependency injection container wiring the identity service from Settings.
"""

from .container import Container

__all__ = ["Container"]

"""Dependency injection configuration for the AI Lab test runner."""

from .container import get_configuration, get_injector, reset_injector

__all__ = ["get_configuration", "get_injector", "reset_injector"]

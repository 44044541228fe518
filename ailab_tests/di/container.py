"""Dependency injection container and module selection."""

import os
from typing import Dict, Optional, Type

from injector import Injector, Module

from ailab_tests.types.configuration import RunnerConfig
from .modules import CIConfigModule, LocalConfigModule, UnitTestConfigModule

ENVIRONMENT_MODULES: Dict[str, Type[Module]] = {
    "local": LocalConfigModule,
    "ci": CIConfigModule,
    "unit-test": UnitTestConfigModule,
}

_injector: Optional[Injector] = None


def current_environment() -> str:
    return os.getenv("AILAB_ENV_STAGE", "local").lower()


def get_module_for_environment(environment: Optional[str] = None) -> Type[Module]:
    """Get the appropriate configuration module based on environment.

    Args:
        environment: Environment name. If None, reads from AILAB_ENV_STAGE

    Raises:
        ValueError: If environment is not recognized
    """
    env = environment or current_environment()

    module_class = ENVIRONMENT_MODULES.get(env.lower())
    if not module_class:
        raise ValueError(
            f"Unknown environment: {env}. "
            f"Valid options: {', '.join(ENVIRONMENT_MODULES.keys())}"
        )

    return module_class


def create_injector(environment: Optional[str] = None) -> Injector:
    module_class = get_module_for_environment(environment)
    return Injector([module_class()])


def get_injector(environment: Optional[str] = None, force_new: bool = False) -> Injector:
    """Get the singleton injector instance.

    Args:
        environment: Environment name. If None, reads from AILAB_ENV_STAGE
        force_new: If True, creates a new injector instead of using cached one
    """
    global _injector

    if force_new or _injector is None:
        _injector = create_injector(environment)

    return _injector


def get_configuration(environment: Optional[str] = None, force_new: bool = False) -> RunnerConfig:
    """Convenience function to get the runner configuration."""
    return get_injector(environment, force_new).get(RunnerConfig)


def reset_injector() -> None:
    """Reset the global injector instance."""
    global _injector
    _injector = None

"""Configuration modules for dependency injection."""

import logging
import os

from injector import Module, provider, singleton

from ailab_tests.types.configuration import (
    AppConfig,
    ExtensionConfig,
    RunnerConfig,
    TimeoutConfig,
    env_flag,
)


class BaseConfigModule(Module):
    """Base configuration module with default providers.

    Environment-specific modules override single providers or the
    ``_get_*`` hooks.
    """

    @singleton
    @provider
    def provide_extension_config(self) -> ExtensionConfig:
        """Extension image and preinstalled flag from the environment."""
        return ExtensionConfig.from_env()

    @singleton
    @provider
    def provide_timeout_config(self) -> TimeoutConfig:
        return TimeoutConfig()

    @singleton
    @provider
    def provide_app_config(self) -> AppConfig:
        return AppConfig.from_env()

    @singleton
    @provider
    def provide_runner_config(
        self,
        extension: ExtensionConfig,
        timeouts: TimeoutConfig,
        app: AppConfig,
    ) -> RunnerConfig:
        """Provide the main runner configuration."""
        return RunnerConfig(
            extension=extension,
            timeouts=timeouts,
            app=app,
            is_ci=self._is_ci(),
            delete_models=env_flag("AILAB_DELETE_MODELS"),
            cleanup_services_on_teardown=self._cleanup_services(),
            log_level=self._get_log_level(),
            environment_stage=self._get_environment(),
        )

    def _get_environment(self) -> str:
        """Get environment name. Override in subclasses."""
        return "base"

    def _is_ci(self) -> bool:
        return env_flag("CI")

    def _cleanup_services(self) -> bool:
        return False

    def _get_log_level(self) -> int:
        return logging.INFO


class LocalConfigModule(BaseConfigModule):
    """Configuration for running against a developer's Podman Desktop."""

    def _get_environment(self) -> str:
        return "local"

    def _get_log_level(self) -> int:
        return logging.DEBUG if env_flag("AILAB_DEBUG") else logging.INFO


class CIConfigModule(BaseConfigModule):
    """Configuration for continuous integration runners."""

    def _get_environment(self) -> str:
        return "ci"

    def _is_ci(self) -> bool:
        return True

    def _cleanup_services(self) -> bool:
        return True

    @singleton
    @provider
    def provide_timeout_config(self) -> TimeoutConfig:
        """CI machines start slower."""
        return TimeoutConfig(
            machine_startup=float(os.getenv("AILAB_MACHINE_STARTUP_TIMEOUT", "300")),
        )


class UnitTestConfigModule(BaseConfigModule):
    """Configuration with millisecond deadlines for unit tests."""

    def _get_environment(self) -> str:
        return "unit-test"

    def _is_ci(self) -> bool:
        return False

    def _get_log_level(self) -> int:
        return logging.WARNING

    @singleton
    @provider
    def provide_extension_config(self) -> ExtensionConfig:
        return ExtensionConfig()

    @singleton
    @provider
    def provide_app_config(self) -> AppConfig:
        return AppConfig()

    @singleton
    @provider
    def provide_timeout_config(self) -> TimeoutConfig:
        return TimeoutConfig(
            download=0.05,
            download_interval=0.005,
            service_creation=0.05,
            health_check=0.05,
            service_deletion=0.05,
            app_present=0.05,
            app_status=0.05,
            app_removal=0.05,
            model_removal=0.05,
            model_removal_interval=0.005,
            extension_install=0.05,
            machine_startup=0.05,
            services_cleanup=0.05,
            text_assertion=0.05,
            page_load=0.05,
        )

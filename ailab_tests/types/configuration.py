from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass, field
from typing import Optional


def env_flag(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() == "true"


@dataclass
class ExtensionConfig:
    """Identity of the extension under test and where to install it from."""

    oci_image: str = "ghcr.io/containers/podman-desktop-extension-ai-lab:1.7.1"
    preinstalled: bool = False
    extension_name: str = "Podman AI Lab"
    extension_label: str = "redhat.ai-lab"
    active_status: str = "ACTIVE"

    @classmethod
    def from_env(cls) -> "ExtensionConfig":
        return cls(
            oci_image=os.environ.get("EXTENSION_OCI_IMAGE", cls.oci_image),
            preinstalled=env_flag("EXTENSION_PREINSTALLED"),
        )


@dataclass
class TimeoutConfig:
    """Phase deadlines in seconds."""

    download: float = 300.0
    download_interval: float = 5.0
    service_creation: float = 310.0
    health_check: float = 30.0
    service_deletion: float = 120.0
    app_present: float = 10.0
    app_status: float = 60.0
    app_removal: float = 60.0
    model_removal: float = 160.0
    model_removal_interval: float = 2.5
    extension_install: float = 30.0
    machine_startup: float = 120.0
    services_cleanup: float = 60.0
    text_assertion: float = 5.0
    page_load: float = 30.0


@dataclass
class AppConfig:
    """How to launch and attach to the Podman Desktop application."""

    binary: Optional[str] = None
    cdp_port: int = 9222
    startup_timeout: float = 60.0
    viewport_width: int = 1050
    viewport_height: int = 700
    user_data_dir: Optional[str] = None

    @classmethod
    def from_env(cls) -> "AppConfig":
        return cls(
            binary=os.environ.get("PODMAN_DESKTOP_BINARY"),
            cdp_port=int(os.environ.get("PODMAN_DESKTOP_CDP_PORT", "9222")),
            user_data_dir=os.environ.get("PODMAN_DESKTOP_HOME"),
        )


@dataclass
class RunnerConfig:
    extension: ExtensionConfig = field(default_factory=ExtensionConfig)
    timeouts: TimeoutConfig = field(default_factory=TimeoutConfig)
    app: AppConfig = field(default_factory=AppConfig)

    is_ci: bool = False
    is_windows: bool = sys.platform.startswith("win")
    delete_models: bool = False
    cleanup_services_on_teardown: bool = False

    log_level: int = logging.INFO
    environment_stage: str = "default"

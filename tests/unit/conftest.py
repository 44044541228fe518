"""
In-memory fakes of the application driver and page objects.

FakeApplication keeps the state a real Podman Desktop would hold (downloaded
models, services, running apps) and records every call in ``calls`` so
tests can assert on the exact sequence of UI actions.
"""

from typing import Dict, List, Optional, Set

import pytest

from ailab_tests.di.container import create_injector
from ailab_tests.driver.base import (
    AILabNavigation,
    ApplicationDriver,
    CatalogPage,
    DashboardPage,
    ExtensionCard,
    ExtensionsPage,
    RecipeAppPage,
    RecipesCatalogPage,
    RunningAppsPage,
    ServiceCreationPage,
    ServiceDetailsPage,
    ServicesPage,
)
from ailab_tests.errors import NotFoundError
from ailab_tests.types.configuration import RunnerConfig


class FakePage:
    def __init__(self, app: "FakeApplication"):
        self.app = app

    def wait_for_load(self, timeout: Optional[float] = None) -> None:
        self.app.record("wait_for_load", type(self).__name__)


class FakeDashboardPage(FakePage, DashboardPage):

    def machine_status(self) -> Optional[str]:
        return self.app.machine_status


class FakeExtensionCard(ExtensionCard):

    def __init__(self, app: "FakeApplication"):
        self.app = app

    def status(self) -> str:
        return self.app.extension_status


class FakeExtensionsPage(FakePage, ExtensionsPage):

    def extension_is_installed(self, label: str) -> bool:
        return self.app.extension_installed

    def install_extension_from_oci_image(self, image: str) -> None:
        self.app.record("install_extension_from_oci_image", image)
        self.app.extension_installed = True

    def get_installed_extension(self, name: str, label: str) -> ExtensionCard:
        if not self.app.extension_installed:
            raise NotFoundError(name)
        return FakeExtensionCard(self.app)


class FakeServicesPage(FakePage, ServicesPage):

    def is_heading_visible(self) -> bool:
        return self.app.services_heading_visible

    def delete_all_current_models(self) -> None:
        self.app.record("delete_all_current_models")
        self.app.service_count = 0

    def get_current_model_count(self) -> int:
        return self.app.service_count


class FakeServiceDetailsPage(FakePage, ServiceDetailsPage):

    def __init__(self, app: "FakeApplication", model: str):
        super().__init__(app)
        self.model = model

    def model_name(self) -> str:
        return self.app.service_model_name or self.model

    def inference_server_type(self) -> str:
        return self.app.inference_server_type

    def get_inference_server_port(self) -> int:
        self.app.record("get_inference_server_port")
        return self.app.service_port

    def delete_service(self) -> ServicesPage:
        self.app.record("delete_service", self.model)
        self.app.service_count = max(0, self.app.service_count - 1)
        return FakeServicesPage(self.app)


class FakeServiceCreationPage(FakePage, ServiceCreationPage):

    def __init__(self, app: "FakeApplication", model: str):
        super().__init__(app)
        self.model = model

    def create_service(self) -> ServiceDetailsPage:
        self.app.record("create_service", self.model)
        self.app.service_count += 1
        return FakeServiceDetailsPage(self.app, self.model)


class FakeCatalogPage(FakePage, CatalogPage):

    def is_model_downloaded(self, name: str) -> bool:
        self.app.record("is_model_downloaded", name)
        if name in self.app.pending_downloads:
            remaining = self.app.pending_downloads[name]
            if remaining <= 0:
                del self.app.pending_downloads[name]
                self.app.downloaded.add(name)
            else:
                self.app.pending_downloads[name] = remaining - 1
        return name in self.app.downloaded

    def download_model(self, name: str) -> None:
        self.app.record("download_model", name)
        if self.app.download_never_completes:
            return
        self.app.pending_downloads[name] = self.app.download_polls

    def create_model_service(self, name: str) -> ServiceCreationPage:
        self.app.record("create_model_service", name)
        if name not in self.app.downloaded:
            raise NotFoundError(f"{name} is not downloaded")
        return FakeServiceCreationPage(self.app, name)

    def delete_model(self, name: str) -> None:
        self.app.record("delete_model", name)
        self.app.downloaded.discard(name)


class FakeRecipeAppPage(FakePage, RecipeAppPage):

    def __init__(self, app: "FakeApplication", name: str):
        super().__init__(app)
        self.name = name

    def start_new_deployment(self) -> None:
        self.app.record("start_new_deployment", self.name)
        self.app.apps[self.name] = "RUNNING"


class FakeRecipesCatalogPage(FakePage, RecipesCatalogPage):

    def open_recipes_catalog_app(self, name: str) -> RecipeAppPage:
        if name not in self.app.recipes:
            raise NotFoundError(f"Recipe {name!r} is not listed in the recipe catalog")
        return FakeRecipeAppPage(self.app, name)


class FakeRunningAppsPage(FakePage, RunningAppsPage):

    def app_exists(self, name: str) -> bool:
        return name in self.app.apps

    def get_current_status_for_app(self, name: str) -> Optional[str]:
        script = self.app.status_script.get(name)
        if script:
            status = script.pop(0) if len(script) > 1 else script[0]
        else:
            status = self.app.apps.get(name)
        self.app.observed_statuses.append((name, status))
        return status

    def stop_app(self, name: str) -> None:
        self.app.record("stop_app", name)
        if name not in self.app.stuck_apps:
            self.app.apps[name] = "UNKNOWN"

    def delete_ai_app(self, name: str) -> None:
        self.app.record("delete_ai_app", name)
        self.app.apps.pop(name, None)


class FakeNavigation(FakePage, AILabNavigation):

    def open_catalog(self) -> CatalogPage:
        return FakeCatalogPage(self.app)

    def open_recipes_catalog(self) -> RecipesCatalogPage:
        return FakeRecipesCatalogPage(self.app)

    def open_running_apps(self) -> RunningAppsPage:
        return FakeRunningAppsPage(self.app)

    def open_services(self) -> ServicesPage:
        return FakeServicesPage(self.app)


class FakeApplication(ApplicationDriver):
    """Stand-in for a running Podman Desktop with AI Lab."""

    def __init__(self):
        self.calls: List[tuple] = []
        self.observed_statuses: List[tuple] = []

        self.machine_status = "RUNNING"
        self.extension_installed = True
        self.extension_status = "ACTIVE"
        self.webview_available = True

        self.downloaded: Set[str] = set()
        self.pending_downloads: Dict[str, int] = {}
        self.download_polls = 1
        self.download_never_completes = False

        self.service_count = 0
        self.service_port = 35000
        self.service_model_name: Optional[str] = None
        self.inference_server_type = "Inference Server (llamacpp)"
        self.services_heading_visible = True

        self.recipes: Set[str] = {
            "Audio to Text", "Object Detection", "ChatBot", "Summarizer",
        }
        self.apps: Dict[str, str] = {}
        self.status_script: Dict[str, List[Optional[str]]] = {}
        self.stuck_apps: Set[str] = set()
        self.closed = False

    def record(self, name: str, *args) -> None:
        self.calls.append((name,) + args)

    def call_names(self) -> List[str]:
        return [call[0] for call in self.calls if call[0] != "wait_for_load"]

    def set_viewport_size(self, width: int, height: int) -> None:
        self.record("set_viewport_size", width, height)

    def handle_welcome_page(self) -> None:
        self.record("handle_welcome_page")

    def open_dashboard(self) -> DashboardPage:
        self.record("open_dashboard")
        return FakeDashboardPage(self)

    def open_extensions(self) -> ExtensionsPage:
        self.record("open_extensions")
        return FakeExtensionsPage(self)

    def open_ai_lab(self) -> AILabNavigation:
        self.record("open_ai_lab")
        if not self.webview_available:
            raise NotFoundError("AI Lab webview did not appear")
        return FakeNavigation(self)

    def close(self) -> None:
        self.record("close")
        self.closed = True


@pytest.fixture
def fake_app() -> FakeApplication:
    return FakeApplication()


@pytest.fixture
def runner_config() -> RunnerConfig:
    """Fresh unit-test configuration with millisecond deadlines."""
    return create_injector("unit-test").get(RunnerConfig)

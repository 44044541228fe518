"""
Base interfaces for the application driver and its page objects.

The workflow runner only talks to these interfaces. The Playwright
implementation lives in ``ailab_tests.driver.playwright_driver``; unit tests use
in-memory fakes.
"""

from abc import ABC, abstractmethod
from typing import Optional


class BasePage(ABC):
    """A view of the application that can report when it has loaded."""

    @abstractmethod
    def wait_for_load(self, timeout: Optional[float] = None) -> None:
        """Block until the view is rendered, raising on timeout."""
        pass


class ExtensionCard(ABC):
    """Card of an installed extension on the Extensions page."""

    @abstractmethod
    def status(self) -> str:
        """Current status label, e.g. ``ACTIVE``."""
        pass


class ExtensionsPage(BasePage):
    """Podman Desktop extensions page."""

    @abstractmethod
    def extension_is_installed(self, label: str) -> bool:
        pass

    @abstractmethod
    def install_extension_from_oci_image(self, image: str) -> None:
        pass

    @abstractmethod
    def get_installed_extension(self, name: str, label: str) -> ExtensionCard:
        pass


class DashboardPage(BasePage):
    """Podman Desktop dashboard."""

    @abstractmethod
    def machine_status(self) -> Optional[str]:
        """Status of the default Podman machine, e.g. ``RUNNING``."""
        pass


class ServicesPage(BasePage):
    """AI Lab list of model services."""

    @abstractmethod
    def is_heading_visible(self) -> bool:
        pass

    @abstractmethod
    def delete_all_current_models(self) -> None:
        pass

    @abstractmethod
    def get_current_model_count(self) -> int:
        pass


class ServiceDetailsPage(BasePage):
    """Details of a running model service."""

    @abstractmethod
    def model_name(self) -> str:
        pass

    @abstractmethod
    def inference_server_type(self) -> str:
        pass

    @abstractmethod
    def get_inference_server_port(self) -> int:
        pass

    @abstractmethod
    def delete_service(self) -> ServicesPage:
        pass


class ServiceCreationPage(BasePage):
    """Form creating a model service for a downloaded model."""

    @abstractmethod
    def create_service(self) -> ServiceDetailsPage:
        pass


class CatalogPage(BasePage):
    """AI Lab model catalog."""

    @abstractmethod
    def is_model_downloaded(self, name: str) -> bool:
        pass

    @abstractmethod
    def download_model(self, name: str) -> None:
        pass

    @abstractmethod
    def create_model_service(self, name: str) -> ServiceCreationPage:
        pass

    @abstractmethod
    def delete_model(self, name: str) -> None:
        pass


class RecipeAppPage(BasePage):
    """Detail page of a single recipe."""

    @abstractmethod
    def start_new_deployment(self) -> None:
        """Start the recipe and wait for the deployment view to load."""
        pass


class RecipesCatalogPage(BasePage):
    """AI Lab recipe catalog."""

    @abstractmethod
    def open_recipes_catalog_app(self, name: str) -> RecipeAppPage:
        """Open a recipe by display name.

        Raises:
            NotFoundError: If no recipe with that name is listed
        """
        pass


class RunningAppsPage(BasePage):
    """AI Lab list of running recipe applications."""

    @abstractmethod
    def app_exists(self, name: str) -> bool:
        pass

    @abstractmethod
    def get_current_status_for_app(self, name: str) -> Optional[str]:
        pass

    @abstractmethod
    def stop_app(self, name: str) -> None:
        pass

    @abstractmethod
    def delete_ai_app(self, name: str) -> None:
        pass


class AILabNavigation(BasePage):
    """Navigation bar inside the AI Lab webview."""

    @abstractmethod
    def open_catalog(self) -> CatalogPage:
        pass

    @abstractmethod
    def open_recipes_catalog(self) -> RecipesCatalogPage:
        pass

    @abstractmethod
    def open_running_apps(self) -> RunningAppsPage:
        pass

    @abstractmethod
    def open_services(self) -> ServicesPage:
        pass


class ApplicationDriver(ABC):
    """Entry point to the running desktop application."""

    @abstractmethod
    def set_viewport_size(self, width: int, height: int) -> None:
        pass

    @abstractmethod
    def handle_welcome_page(self) -> None:
        """Dismiss the first-run welcome screen if it is shown."""
        pass

    @abstractmethod
    def open_dashboard(self) -> DashboardPage:
        pass

    @abstractmethod
    def open_extensions(self) -> ExtensionsPage:
        pass

    @abstractmethod
    def open_ai_lab(self) -> AILabNavigation:
        """Open the AI Lab webview and return a fresh navigation handle.

        The webview can be torn down and recreated between test cases, so
        callers must not keep handles across cases.
        """
        pass

    @abstractmethod
    def close(self) -> None:
        pass

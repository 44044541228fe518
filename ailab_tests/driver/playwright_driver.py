"""
Playwright implementation of the application driver.

Podman Desktop is started as a subprocess with a remote debugging port and
Playwright attaches to it over CDP. The AI Lab UI renders inside a webview,
which shows up as a second page of the browser context; page objects keep a
handle on both the main window (navigation, confirmation dialogs) and the
webview (AI Lab content).
"""

import logging
import os
import re
import subprocess
import time
from typing import List, Optional

import requests
from playwright.sync_api import Browser, Locator, Page, Playwright, sync_playwright
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

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
from ailab_tests.errors import ConditionTimeoutError, NotFoundError
from ailab_tests.polling import poll, to_pass
from ailab_tests.types.configuration import AppConfig

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = 30_000


def _ms(timeout: Optional[float]) -> float:
    return DEFAULT_TIMEOUT_MS if timeout is None else timeout * 1000


def _confirm_dialog(main: Page, button: str = "Confirm") -> None:
    dialog = main.get_by_role("dialog")
    dialog.get_by_role("button", name=button).click()
    dialog.wait_for(state="hidden")


class PodmanDesktopApp:
    """Manages the Podman Desktop process lifecycle for testing."""

    def __init__(self, config: AppConfig):
        self.config = config
        self.process: Optional[subprocess.Popen] = None
        self.ready = False

    @property
    def cdp_endpoint(self) -> str:
        return f"http://127.0.0.1:{self.config.cdp_port}"

    def start(self) -> None:
        """Start the application and wait for its debugging endpoint."""
        if not self.config.binary:
            raise RuntimeError("PODMAN_DESKTOP_BINARY is not set")

        env = os.environ.copy()
        if self.config.user_data_dir:
            env["PODMAN_DESKTOP_HOME_DIR"] = self.config.user_data_dir

        logger.info(f"Starting {self.config.binary} with CDP on port {self.config.cdp_port}")
        self.process = subprocess.Popen(
            [self.config.binary, f"--remote-debugging-port={self.config.cdp_port}"],
            env=env,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )

        def cdp_version() -> requests.Response:
            response = requests.get(f"{self.cdp_endpoint}/json/version", timeout=2)
            if response.status_code != 200:
                raise AssertionError(f"CDP endpoint returned {response.status_code}")
            return response

        try:
            to_pass(cdp_version, timeout=self.config.startup_timeout, intervals=[1.0],
                    description="CDP endpoint to answer", sleep=time.sleep)
        except ConditionTimeoutError as e:
            self.stop()
            raise RuntimeError(
                f"Podman Desktop did not expose CDP within {self.config.startup_timeout:g}s"
            ) from e
        self.ready = True

    def stop(self) -> None:
        if self.process:
            self.process.terminate()
            try:
                self.process.wait(timeout=10)
            except subprocess.TimeoutExpired:
                self.process.kill()
                self.process.wait()
            self.process = None
        self.ready = False


class PlaywrightExtensionCard(ExtensionCard):

    def __init__(self, card: Locator):
        self.card = card

    def status(self) -> str:
        return (self.card.get_by_label("Extension Status Label").text_content() or "").strip()


class PlaywrightDashboardPage(DashboardPage):

    def __init__(self, main: Page):
        self.main = main
        self.heading = main.get_by_role("heading", name="Dashboard", exact=True)

    def wait_for_load(self, timeout: Optional[float] = None) -> None:
        self.heading.wait_for(state="visible", timeout=_ms(timeout))

    def machine_status(self) -> Optional[str]:
        status = self.main.get_by_label("Connection Status Label").first
        if status.count() == 0:
            return None
        return (status.text_content() or "").strip()


class PlaywrightExtensionsPage(ExtensionsPage):

    def __init__(self, main: Page):
        self.main = main
        self.heading = main.get_by_role("heading", name="Extensions", exact=True)

    def wait_for_load(self, timeout: Optional[float] = None) -> None:
        self.heading.wait_for(state="visible", timeout=_ms(timeout))

    def _card(self, label: str) -> Locator:
        return self.main.get_by_role("region", name=label)

    def extension_is_installed(self, label: str) -> bool:
        return self._card(label).count() > 0

    def install_extension_from_oci_image(self, image: str) -> None:
        logger.info(f"Installing extension from {image}")
        self.main.get_by_role("button", name="Install custom...").click()
        dialog = self.main.get_by_role("dialog")
        dialog.get_by_label("Image name to install custom extension").fill(image)
        dialog.get_by_role("button", name="Install", exact=True).click()
        dialog.get_by_role("button", name="Done").click(timeout=_ms(120))

    def get_installed_extension(self, name: str, label: str) -> ExtensionCard:
        card = self._card(label)
        if card.count() == 0:
            raise NotFoundError(f"Extension {name} ({label}) is not installed")
        return PlaywrightExtensionCard(card)


class PlaywrightServicesPage(ServicesPage):

    def __init__(self, main: Page, webview: Page):
        self.main = main
        self.webview = webview
        self.heading = webview.get_by_role("heading", name="Model Services", exact=True)

    def wait_for_load(self, timeout: Optional[float] = None) -> None:
        self.heading.wait_for(state="visible", timeout=_ms(timeout))

    def is_heading_visible(self) -> bool:
        return self.heading.is_visible()

    def _rows(self) -> Locator:
        return self.webview.get_by_role("table").get_by_role("row").filter(has=self.webview.get_by_role("cell"))

    def delete_all_current_models(self) -> None:
        if self.get_current_model_count() == 0:
            return
        self.webview.get_by_role("checkbox", name="Toggle all").check()
        self.webview.get_by_role("button", name="Delete selected items").click()
        _confirm_dialog(self.main)

    def get_current_model_count(self) -> int:
        return self._rows().count()


class PlaywrightServiceDetailsPage(ServiceDetailsPage):

    def __init__(self, main: Page, webview: Page):
        self.main = main
        self.webview = webview
        self.heading = webview.get_by_role("heading", name="Service details", exact=True)

    def wait_for_load(self, timeout: Optional[float] = None) -> None:
        self.heading.wait_for(state="visible", timeout=_ms(timeout))

    def _value(self, label: str) -> str:
        return (self.webview.get_by_label(label).text_content() or "").strip()

    def model_name(self) -> str:
        return self._value("Model name")

    def inference_server_type(self) -> str:
        return self._value("Inference Type")

    def get_inference_server_port(self) -> int:
        text = self._value("Port")
        match = re.search(r"\d+", text)
        if not match:
            raise NotFoundError(f"No port number in service details: {text!r}")
        return int(match.group())

    def delete_service(self) -> ServicesPage:
        self.webview.get_by_role("button", name="Delete service").click()
        _confirm_dialog(self.main)
        return PlaywrightServicesPage(self.main, self.webview)


class PlaywrightServiceCreationPage(ServiceCreationPage):

    def __init__(self, main: Page, webview: Page):
        self.main = main
        self.webview = webview
        self.heading = webview.get_by_role("heading", name="Creating Model service", exact=True)

    def wait_for_load(self, timeout: Optional[float] = None) -> None:
        self.heading.wait_for(state="visible", timeout=_ms(timeout))

    def create_service(self) -> ServiceDetailsPage:
        self.webview.get_by_role("button", name="Create service").click()
        open_details = self.webview.get_by_role("button", name="Open service details")
        open_details.click(timeout=_ms(300))
        return PlaywrightServiceDetailsPage(self.main, self.webview)


class PlaywrightCatalogPage(CatalogPage):

    def __init__(self, main: Page, webview: Page):
        self.main = main
        self.webview = webview
        self.heading = webview.get_by_role("heading", name="Models", exact=True)

    def wait_for_load(self, timeout: Optional[float] = None) -> None:
        self.heading.wait_for(state="visible", timeout=_ms(timeout))

    def _row(self, name: str) -> Locator:
        row = self.webview.get_by_role("row").filter(
            has=self.webview.get_by_text(name, exact=True)
        )
        if row.count() == 0:
            raise NotFoundError(f"Model {name} is not listed in the catalog")
        return row.first

    def is_model_downloaded(self, name: str) -> bool:
        return self._row(name).get_by_role("button", name="Create Model Service").count() > 0

    def download_model(self, name: str) -> None:
        self._row(name).get_by_role("button", name="Download Model").click()

    def create_model_service(self, name: str) -> ServiceCreationPage:
        self._row(name).get_by_role("button", name="Create Model Service").click()
        return PlaywrightServiceCreationPage(self.main, self.webview)

    def delete_model(self, name: str) -> None:
        self._row(name).get_by_role("button", name="Delete Model").click()
        _confirm_dialog(self.main)


class PlaywrightRecipeAppPage(RecipeAppPage):

    def __init__(self, main: Page, webview: Page, name: str):
        self.main = main
        self.webview = webview
        self.name = name
        self.heading = webview.get_by_role("heading", name=name, exact=True)

    def wait_for_load(self, timeout: Optional[float] = None) -> None:
        self.heading.wait_for(state="visible", timeout=_ms(timeout))

    def start_new_deployment(self) -> None:
        self.webview.get_by_role("button", name="Start recipe").click()
        start_page = self.webview.get_by_role("heading", name=f"Start {self.name}")
        start_page.wait_for(state="visible")
        self.webview.get_by_role("button", name=re.compile(r"Start .* recipe")).click()
        self.webview.get_by_role("button", name="Open details").wait_for(state="visible")


class PlaywrightRecipesCatalogPage(RecipesCatalogPage):

    def __init__(self, main: Page, webview: Page):
        self.main = main
        self.webview = webview
        self.heading = webview.get_by_role("heading", name="Recipe Catalog", exact=True)

    def wait_for_load(self, timeout: Optional[float] = None) -> None:
        self.heading.wait_for(state="visible", timeout=_ms(timeout))

    def open_recipes_catalog_app(self, name: str) -> RecipeAppPage:
        card = self.webview.get_by_role("region", name=name, exact=True)
        if card.count() == 0:
            raise NotFoundError(f"Recipe {name!r} is not listed in the recipe catalog")
        card.first.get_by_role("button", name="More details").click()
        return PlaywrightRecipeAppPage(self.main, self.webview, name)


class PlaywrightRunningAppsPage(RunningAppsPage):

    def __init__(self, main: Page, webview: Page):
        self.main = main
        self.webview = webview
        self.heading = webview.get_by_role("heading", name="AI Apps", exact=True)

    def wait_for_load(self, timeout: Optional[float] = None) -> None:
        self.heading.wait_for(state="visible", timeout=_ms(timeout))

    def _row(self, name: str) -> Locator:
        name_cell = self.webview.get_by_role("cell", name=name, exact=True)
        return self.webview.get_by_role("row").filter(has=name_cell)

    def app_exists(self, name: str) -> bool:
        return self._row(name).count() > 0

    def get_current_status_for_app(self, name: str) -> Optional[str]:
        row = self._row(name)
        if row.count() == 0:
            return None
        return row.first.get_by_role("status").get_attribute("title")

    def stop_app(self, name: str) -> None:
        row = self._row(name)
        if row.count() == 0:
            raise NotFoundError(f"Running app {name!r} not found")
        row.first.get_by_role("button", name="Stop AI App").click()

    def delete_ai_app(self, name: str) -> None:
        row = self._row(name)
        if row.count() == 0:
            raise NotFoundError(f"Running app {name!r} not found")
        row.first.get_by_role("button", name="kebab menu").click()
        self.webview.get_by_role("menuitem", name="Delete AI App").click()
        _confirm_dialog(self.main)


class PlaywrightAILabNavigation(AILabNavigation):

    def __init__(self, main: Page, webview: Page):
        self.main = main
        self.webview = webview
        self.navigation = webview.get_by_role("navigation", name="PreferencesNavigation")

    def wait_for_load(self, timeout: Optional[float] = None) -> None:
        self.navigation.wait_for(state="visible", timeout=_ms(timeout))

    def _open(self, link: str) -> None:
        self.navigation.get_by_role("link", name=link, exact=True).click()

    def open_catalog(self) -> CatalogPage:
        self._open("Catalog")
        return PlaywrightCatalogPage(self.main, self.webview)

    def open_recipes_catalog(self) -> RecipesCatalogPage:
        self._open("Recipe Catalog")
        return PlaywrightRecipesCatalogPage(self.main, self.webview)

    def open_running_apps(self) -> RunningAppsPage:
        self._open("Running")
        return PlaywrightRunningAppsPage(self.main, self.webview)

    def open_services(self) -> ServicesPage:
        self._open("Services")
        return PlaywrightServicesPage(self.main, self.webview)


class PlaywrightApplicationDriver(ApplicationDriver):
    """Drives a running Podman Desktop instance through Playwright."""

    def __init__(self, config: AppConfig, app: Optional[PodmanDesktopApp] = None):
        self.config = config
        self.app = app or PodmanDesktopApp(config)
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._main: Optional[Page] = None

    def start(self) -> "PlaywrightApplicationDriver":
        self.app.start()
        try:
            self._playwright = sync_playwright().start()
            self._browser = self._playwright.chromium.connect_over_cdp(self.app.cdp_endpoint)
            self._main = self._pages()[0]
        except Exception:
            self.close()
            raise
        logger.info(f"Attached to Podman Desktop window at {self._main.url}")
        return self

    def _pages(self) -> List[Page]:
        if self._browser is None:
            raise RuntimeError("Driver is not started")
        return [page for context in self._browser.contexts for page in context.pages]

    @property
    def main(self) -> Page:
        if self._main is None:
            raise RuntimeError("Driver is not started")
        return self._main

    def set_viewport_size(self, width: int, height: int) -> None:
        self.main.set_viewport_size({"width": width, "height": height})

    def handle_welcome_page(self) -> None:
        go_to_app = self.main.get_by_role("button", name="Go to Podman Desktop")
        try:
            go_to_app.wait_for(state="visible", timeout=5_000)
        except PlaywrightTimeoutError:
            logger.debug("Welcome page not shown")
            return
        telemetry = self.main.get_by_role("checkbox", name="Enable telemetry")
        if telemetry.count() > 0 and telemetry.is_checked():
            telemetry.uncheck()
        go_to_app.click()

    def _open_nav(self, name: str) -> None:
        navigation = self.main.get_by_role("navigation", name="AppNavigation")
        navigation.get_by_role("link", name=name, exact=True).click()

    def open_dashboard(self) -> DashboardPage:
        self._open_nav("Dashboard")
        return PlaywrightDashboardPage(self.main)

    def open_extensions(self) -> ExtensionsPage:
        self._open_nav("Extensions")
        return PlaywrightExtensionsPage(self.main)

    def open_ai_lab(self) -> AILabNavigation:
        self._open_nav("AI Lab")
        self.main.locator("webview").wait_for(state="visible")

        def find_webview():
            candidates = [page for page in self._pages() if page != self.main]
            return candidates[-1] if candidates else None

        webview = poll(find_webview, timeout=30, message="AI Lab webview").to_be_truthy()
        return PlaywrightAILabNavigation(self.main, webview)

    def close(self) -> None:
        try:
            if self._browser is not None:
                self._browser.close()
            if self._playwright is not None:
                self._playwright.stop()
        finally:
            self._browser = None
            self._playwright = None
            self._main = None
            self.app.stop()

from dataclasses import dataclass
from typing import Optional

from ailab_tests.driver.base import AILabNavigation, ApplicationDriver, ServiceDetailsPage
from ailab_tests.errors import NotFoundError
from ailab_tests.types.configuration import RunnerConfig


@dataclass
class RunnerContext:
    """State shared by the phases of a run.

    Execution is strictly serial, so phases read and replace these handles
    without locking.
    """
    driver: ApplicationDriver
    config: RunnerConfig
    navigation: Optional[AILabNavigation] = None
    service_details: Optional[ServiceDetailsPage] = None
    extension_installed: bool = False

    def refresh_navigation(self) -> AILabNavigation:
        self.navigation = self.driver.open_ai_lab()
        self.navigation.wait_for_load(self.config.timeouts.page_load)
        return self.navigation

    def require_navigation(self) -> AILabNavigation:
        if self.navigation is None:
            raise NotFoundError("AI Lab navigation is not available, was the webview opened?")
        return self.navigation

    def require_service_details(self) -> ServiceDetailsPage:
        if self.service_details is None:
            raise NotFoundError("No model service details page, service creation did not complete")
        return self.service_details

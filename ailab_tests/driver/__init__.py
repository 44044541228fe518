"""Application driver interfaces and their Playwright implementation."""

from .base import (
    AILabNavigation,
    ApplicationDriver,
    BasePage,
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

__all__ = [
    "AILabNavigation",
    "ApplicationDriver",
    "BasePage",
    "CatalogPage",
    "DashboardPage",
    "ExtensionCard",
    "ExtensionsPage",
    "RecipeAppPage",
    "RecipesCatalogPage",
    "RunningAppsPage",
    "ServiceCreationPage",
    "ServiceDetailsPage",
    "ServicesPage",
]

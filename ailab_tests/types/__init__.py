from .catalog import Catalog, EnvironmentCell, Recipe
from .configuration import AppConfig, ExtensionConfig, RunnerConfig, TimeoutConfig
from .test_case import (
    CaseResult,
    ModelTestCase,
    Phase,
    PhaseKind,
    PhaseResult,
    PhaseStatus,
    RunResult,
    SERVICE_PHASES,
)

__all__ = [
    "AppConfig",
    "CaseResult",
    "Catalog",
    "EnvironmentCell",
    "ExtensionConfig",
    "ModelTestCase",
    "Phase",
    "PhaseKind",
    "PhaseResult",
    "PhaseStatus",
    "Recipe",
    "RunResult",
    "RunnerConfig",
    "SERVICE_PHASES",
    "TimeoutConfig",
]

"""
Expands a matrix row into its ordered phase pipeline.
"""

from typing import List, Optional

from ailab_tests.types.configuration import RunnerConfig
from ailab_tests.types.test_case import ModelTestCase, Phase, PhaseKind


def plan_phases(case: ModelTestCase) -> List[Phase]:
    """
    Build the full phase sequence for a test case.

    Service phases are included even when the case has no service; use
    ``skip_reason`` to decide whether a phase runs.

    Returns:
        Download, service create/check/delete, a deploy/delete pair per
        recipe in declared order, then model deletion
    """
    phases = [
        Phase(PhaseKind.DOWNLOAD),
        Phase(PhaseKind.CREATE_SERVICE),
        Phase(PhaseKind.HEALTH_CHECK),
        Phase(PhaseKind.DELETE_SERVICE),
    ]
    for recipe in case.recipes:
        phases.append(Phase(PhaseKind.DEPLOY_RECIPE, recipe))
        phases.append(Phase(PhaseKind.DELETE_RECIPE, recipe))
    phases.append(Phase(PhaseKind.DELETE_MODEL))
    return phases


def skip_reason(case: ModelTestCase, phase: Phase, config: RunnerConfig) -> Optional[str]:
    """Return why ``phase`` must not run for ``case``, or None if it runs."""
    if phase.requires_service and not case.has_service:
        return f"{case.model} does not expose a model service"
    if phase.kind == PhaseKind.DELETE_MODEL:
        if config.is_windows:
            return "Model deletion is unreliable on Windows"
        if not config.is_ci:
            return "Model deletion only runs in CI"
    return None


def executable_phases(case: ModelTestCase, config: RunnerConfig) -> List[Phase]:
    return [phase for phase in plan_phases(case) if skip_reason(case, phase, config) is None]

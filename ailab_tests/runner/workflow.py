"""
Matrix-driven workflow runner.

Executes the fixed phase pipeline for every test case against a single
running application, one phase at a time.
"""

import logging
import time
from typing import Callable, Iterable, List, Optional

from ailab_tests.driver.base import ApplicationDriver
from ailab_tests.errors import SetupError
from ailab_tests.runner import phases
from ailab_tests.runner.context import RunnerContext
from ailab_tests.runner.planner import plan_phases, skip_reason
from ailab_tests.types.configuration import RunnerConfig
from ailab_tests.types.test_case import (
    CaseResult,
    ModelTestCase,
    Phase,
    PhaseResult,
    PhaseStatus,
    RunResult,
)

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ModelTestCase, Phase, PhaseResult], None]


class WorkflowRunner:
    """
    Runs the model lifecycle for each row of a test matrix.

    Phases are independent units: a failing phase is recorded and the next
    phase of the same case still runs. Only a global setup failure stops
    the run before any case executes.
    """

    def __init__(self, driver: ApplicationDriver, config: Optional[RunnerConfig] = None):
        self.config = config or RunnerConfig()
        self.context = RunnerContext(driver=driver, config=self.config)
        self.progress_callback: Optional[ProgressCallback] = None

    def set_progress_callback(self, callback: ProgressCallback) -> None:
        """Set a callback invoked after each phase. Args: (case, phase, result)"""
        self.progress_callback = callback

    def setup(self) -> None:
        """
        Prepare the application for the run.

        Raises:
            SetupError: If the application or extension is not usable
        """
        driver = self.context.driver
        app_config = self.config.app
        try:
            driver.set_viewport_size(app_config.viewport_width, app_config.viewport_height)
            driver.handle_welcome_page()
            phases.wait_for_machine_startup(self.context)
            phases.install_extension(self.context)
        except Exception as e:
            raise SetupError(f"Global setup failed: {e}") from e

    def teardown(self) -> None:
        try:
            if self.config.cleanup_services_on_teardown and self.context.navigation is not None:
                phases.cleanup_service_models(self.context)
        finally:
            self.context.driver.close()

    def before_each(self) -> None:
        """Re-acquire the AI Lab webview, which may be recreated between tests."""
        self.context.refresh_navigation()

    def run_phase(self, case: ModelTestCase, phase: Phase) -> PhaseResult:
        reason = skip_reason(case, phase, self.config)
        if reason is not None:
            logger.info(f"⏭️  {phase.title(case.model)}: skipped ({reason})")
            return PhaseResult(phase=phase, status=PhaseStatus.SKIPPED, skip_reason=reason)

        start_time = time.time()
        try:
            self.before_each()
            phases.execute_phase(self.context, case, phase)
        except Exception as e:
            duration = (time.time() - start_time) * 1000
            logger.error(f"❌ {phase.title(case.model)} failed: {type(e).__name__}: {e}")
            return PhaseResult(
                phase=phase,
                status=PhaseStatus.FAILED,
                error=str(e),
                error_type=type(e).__name__,
                duration_ms=duration,
            )

        duration = (time.time() - start_time) * 1000
        logger.info(f"✅ {phase.title(case.model)} ({duration / 1000:.1f}s)")
        return PhaseResult(phase=phase, status=PhaseStatus.PASSED, duration_ms=duration)

    def run_case(self, case: ModelTestCase) -> CaseResult:
        logger.info(f"▶ {case.title}")
        result = CaseResult(case=case)
        self.context.service_details = None

        for phase in plan_phases(case):
            phase_result = self.run_phase(case, phase)
            result.phase_results.append(phase_result)
            if self.progress_callback:
                self.progress_callback(case, phase, phase_result)

        return result

    def run(self, cases: Iterable[ModelTestCase]) -> RunResult:
        """
        Execute every case of the matrix, serially.

        Args:
            cases: Test matrix rows, executed in order

        Returns:
            RunResult with per-phase outcomes, or the setup error
        """
        case_list: List[ModelTestCase] = list(cases)
        start_time = time.time()
        result = RunResult()

        try:
            try:
                self.setup()
            except SetupError as e:
                logger.error(f"{e}; skipping {len(case_list)} test case(s)")
                result.setup_error = str(e)
                return result

            for case in case_list:
                result.case_results.append(self.run_case(case))
        finally:
            self.teardown()
            result.execution_time_ms = (time.time() - start_time) * 1000

        summary = result.summary()
        logger.info(
            f"Run finished: {summary['passed']} passed, {summary['failed']} failed, "
            f"{summary['skipped']} skipped"
        )
        return result

"""
Command line entry point for running the AI Lab model workflow.

Runs the test matrix against a Podman Desktop instance started from
PODMAN_DESKTOP_BINARY, or lists the phases that would run.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from ailab_tests.di import get_configuration
from ailab_tests.matrix import DEFAULT_TEST_MATRIX, filter_matrix, load_matrix
from ailab_tests.runner.planner import plan_phases, skip_reason
from ailab_tests.types.configuration import RunnerConfig
from ailab_tests.types.test_case import ModelTestCase, Phase, PhaseResult, PhaseStatus, RunResult

logger = logging.getLogger(__name__)

STATUS_ICONS = {
    PhaseStatus.PASSED: "✅",
    PhaseStatus.FAILED: "❌",
    PhaseStatus.SKIPPED: "⏭️ ",
}


class ProgressPrinter:
    """Simple progress printer for CLI."""

    def __init__(self):
        self.current_model = ""

    def __call__(self, case: ModelTestCase, phase: Phase, result: PhaseResult):
        if case.model != self.current_model:
            print(f"\n🔄 {case.title}")
            self.current_model = case.model

        line = f"   {STATUS_ICONS[result.status]} {phase.title(case.model)}"
        if result.status == PhaseStatus.PASSED:
            line += f" ({result.duration_ms / 1000:.1f}s)"
        elif result.status == PhaseStatus.FAILED:
            line += f"\n      {result.error_type}: {result.error}"
        print(line)


def print_plan(cases: List[ModelTestCase], config: RunnerConfig) -> None:
    for case in cases:
        print(f"\n📋 {case.title}")
        for phase in plan_phases(case):
            reason = skip_reason(case, phase, config)
            marker = f"   (skip: {reason})" if reason else ""
            print(f"   - {phase.title(case.model)}{marker}")


def print_summary(result: RunResult) -> None:
    print("\n" + "=" * 60)
    if result.setup_error:
        print(f"❌ Setup failed: {result.setup_error}")
        return

    summary = result.summary()
    print(f"Passed:  {summary['passed']}")
    print(f"Failed:  {summary['failed']}")
    print(f"Skipped: {summary['skipped']}")
    print(f"Total:   {summary['total']}  ({result.execution_time_ms / 1000:.1f}s)")
    print("✅ All phases passed!" if result.success else "❌ Some phases failed")


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Run the AI Lab model lifecycle test matrix against Podman Desktop",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Show which phases would run for the default matrix
  %(prog)s --list

  # Run a single model from the default matrix
  %(prog)s --model facebook/detr-resnet-101

  # Run a custom matrix in CI mode and write a JSON report
  %(prog)s --matrix matrix.json --environment ci --report report.json
        """,
    )
    parser.add_argument("--matrix", type=Path, help="JSON file with the test matrix")
    parser.add_argument(
        "--model", action="append", dest="models",
        help="Only run this model (can be repeated)",
    )
    parser.add_argument(
        "--environment", help="Configuration environment (local, ci, unit-test)",
    )
    parser.add_argument("--list", action="store_true", help="Print the phase plan and exit")
    parser.add_argument("--report", type=Path, help="Write a JSON report to this file")
    parser.add_argument("--binary", help="Podman Desktop executable (overrides PODMAN_DESKTOP_BINARY)")
    parser.add_argument(
        "--delete-models", action="store_true",
        help="Delete models at the end of each case (CI only)",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    args = create_parser().parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        config = get_configuration(args.environment, force_new=args.environment is not None)
    except ValueError as e:
        print(f"❌ {e}")
        return 2

    if args.binary:
        config.app.binary = args.binary
    if args.delete_models:
        config.delete_models = True

    try:
        cases = load_matrix(args.matrix) if args.matrix else list(DEFAULT_TEST_MATRIX)
    except (OSError, ValueError) as e:
        print(f"❌ Could not load test matrix: {e}")
        return 2

    cases = filter_matrix(cases, args.models)
    if not cases:
        print("⚠️  No test cases selected")
        return 2

    if args.list:
        print_plan(cases, config)
        return 0

    from playwright.sync_api import Error as PlaywrightError

    from ailab_tests.driver.playwright_driver import PlaywrightApplicationDriver
    from ailab_tests.runner.workflow import WorkflowRunner

    print(f"🚀 Running {len(cases)} test case(s) in '{config.environment_stage}' environment")
    try:
        driver = PlaywrightApplicationDriver(config.app).start()
    except (RuntimeError, PlaywrightError) as e:
        print(f"❌ Could not start Podman Desktop: {e}")
        return 1

    runner = WorkflowRunner(driver, config)
    runner.set_progress_callback(ProgressPrinter())
    result = runner.run(cases)

    print_summary(result)
    if args.report:
        with open(args.report, 'w') as f:
            json.dump(result.to_dict(), f, indent=2)
        print(f"📝 Report written to {args.report}")

    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())

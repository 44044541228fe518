"""
Unit tests for the matrix-driven workflow runner.
"""

from unittest.mock import Mock

import pytest

from ailab_tests.runner.workflow import WorkflowRunner
from ailab_tests.types.test_case import ModelTestCase, PhaseKind, PhaseStatus

DETR = ModelTestCase(model="facebook/detr-resnet-101", has_service=False, recipes=["Object Detection"])
WHISPER = ModelTestCase(model="ggerganov/whisper.cpp", has_service=True, recipes=["Audio to Text"])


@pytest.fixture
def runner(fake_app, runner_config):
    return WorkflowRunner(fake_app, runner_config)


def executed(case_result):
    return [(p.kind, p.recipe) for p in case_result.executed_phases()]


class TestScenarios:

    def test_model_without_service(self, runner, fake_app):
        result = runner.run([DETR])

        assert result.success
        assert executed(result.case_results[0]) == [
            (PhaseKind.DOWNLOAD, None),
            (PhaseKind.DEPLOY_RECIPE, "Object Detection"),
            (PhaseKind.DELETE_RECIPE, "Object Detection"),
        ]
        names = fake_app.call_names()
        assert "create_model_service" not in names
        assert "get_inference_server_port" not in names
        assert "delete_service" not in names

    def test_model_with_service(self, runner, fake_app, monkeypatch):
        health_check = Mock()
        monkeypatch.setattr("ailab_tests.runner.phases.check_service_endpoint", health_check)

        result = runner.run([WHISPER])

        assert result.success
        assert executed(result.case_results[0]) == [
            (PhaseKind.DOWNLOAD, None),
            (PhaseKind.CREATE_SERVICE, None),
            (PhaseKind.HEALTH_CHECK, None),
            (PhaseKind.DELETE_SERVICE, None),
            (PhaseKind.DEPLOY_RECIPE, "Audio to Text"),
            (PhaseKind.DELETE_RECIPE, "Audio to Text"),
        ]
        health_check.assert_called_once()

    def test_delete_model_skipped_outside_ci(self, runner):
        result = runner.run([DETR])
        last = result.case_results[0].phase_results[-1]
        assert last.phase.kind == PhaseKind.DELETE_MODEL
        assert last.status == PhaseStatus.SKIPPED

    def test_delete_model_runs_in_ci(self, fake_app, runner_config):
        runner_config.is_ci = True
        runner_config.is_windows = False

        result = WorkflowRunner(fake_app, runner_config).run([DETR])

        last = result.case_results[0].phase_results[-1]
        assert last.status == PhaseStatus.PASSED


class TestOrdering:

    def test_recipes_deploy_then_delete_in_order(self, runner, fake_app):
        case = ModelTestCase(model="some/model", has_service=False, recipes=["ChatBot", "Summarizer"])

        runner.run([case])

        recipe_calls = [call for call in fake_app.calls
                        if call[0] in ("start_new_deployment", "delete_ai_app")]
        assert recipe_calls == [
            ("start_new_deployment", "ChatBot"),
            ("delete_ai_app", "ChatBot"),
            ("start_new_deployment", "Summarizer"),
            ("delete_ai_app", "Summarizer"),
        ]

    def test_navigation_reacquired_before_each_phase(self, runner, fake_app):
        result = runner.run([DETR])

        executed_count = len(result.case_results[0].executed_phases())
        assert fake_app.call_names().count("open_ai_lab") == executed_count

    def test_cases_run_serially(self, runner, fake_app):
        result = runner.run([DETR, ModelTestCase(model="other/model", has_service=False)])

        assert [c.case.model for c in result.case_results] == ["facebook/detr-resnet-101", "other/model"]
        downloads = [call[1] for call in fake_app.calls if call[0] == "download_model"]
        assert downloads == ["facebook/detr-resnet-101", "other/model"]


class TestFailures:

    def test_failed_phase_does_not_stop_later_phases(self, runner, fake_app):
        case = ModelTestCase(model="some/model", has_service=False, recipes=["Missing", "ChatBot"])

        result = runner.run([case])

        statuses = [(r.phase.kind, r.phase.recipe, r.status) for r in result.case_results[0].phase_results]
        assert (PhaseKind.DEPLOY_RECIPE, "Missing", PhaseStatus.FAILED) in statuses
        assert (PhaseKind.DELETE_RECIPE, "Missing", PhaseStatus.FAILED) in statuses
        assert (PhaseKind.DEPLOY_RECIPE, "ChatBot", PhaseStatus.PASSED) in statuses
        assert (PhaseKind.DELETE_RECIPE, "ChatBot", PhaseStatus.PASSED) in statuses
        assert not result.success

    def test_error_types_are_recorded(self, runner):
        case = ModelTestCase(model="some/model", has_service=False, recipes=["Missing"])

        result = runner.run([case])

        deploy = result.case_results[0].phase_results[4]
        assert deploy.error_type == "NotFoundError"
        delete = result.case_results[0].phase_results[5]
        assert delete.error_type == "ConditionTimeoutError"

    def test_failed_service_creation_fails_dependent_phases(self, runner, fake_app):
        fake_app.inference_server_type = "Unknown"

        result = runner.run([WHISPER])

        by_kind = {r.phase.kind: r for r in result.case_results[0].phase_results if r.phase.recipe is None}
        assert by_kind[PhaseKind.CREATE_SERVICE].error_type == "AssertionError"
        assert by_kind[PhaseKind.HEALTH_CHECK].error_type == "NotFoundError"
        assert by_kind[PhaseKind.DELETE_SERVICE].error_type == "NotFoundError"

    def test_webview_failure_fails_phase(self, runner, fake_app):
        fake_app.webview_available = False
        result = runner.run([DETR])
        assert all(r.status != PhaseStatus.PASSED for r in result.case_results[0].phase_results)

    def test_setup_failure_aborts_run(self, runner, fake_app):
        fake_app.extension_installed = False
        fake_app.extension_status = "FAILED"

        result = runner.run([DETR, WHISPER])

        assert result.case_results == []
        assert "Global setup failed" in result.setup_error
        assert not result.success
        assert "download_model" not in fake_app.call_names()
        assert fake_app.closed


class TestLifecycle:

    def test_setup_prepares_application(self, runner, fake_app, runner_config):
        runner.run([])

        assert fake_app.calls[0] == (
            "set_viewport_size", runner_config.app.viewport_width, runner_config.app.viewport_height
        )
        assert fake_app.calls[1] == ("handle_welcome_page",)
        assert fake_app.closed

    def test_teardown_cleans_services_when_enabled(self, fake_app, runner_config):
        runner_config.cleanup_services_on_teardown = True
        fake_app.service_count = 1

        WorkflowRunner(fake_app, runner_config).run([DETR])

        assert fake_app.service_count == 0
        assert fake_app.call_names()[-1] == "close"

    def test_progress_callback(self, runner):
        seen = []
        runner.set_progress_callback(lambda case, phase, result: seen.append((phase.kind, result.status)))

        runner.run([DETR])

        assert seen[0] == (PhaseKind.DOWNLOAD, PhaseStatus.PASSED)
        assert seen[1] == (PhaseKind.CREATE_SERVICE, PhaseStatus.SKIPPED)
        assert len(seen) == 7

    def test_report(self, runner):
        result = runner.run([DETR])

        report = result.to_dict()
        assert report['success'] is True
        assert report['summary'] == {'passed': 3, 'failed': 0, 'skipped': 4, 'total': 7}
        assert report['cases'][0]['model'] == "facebook/detr-resnet-101"

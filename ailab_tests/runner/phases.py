"""
Lifecycle phases of a model test case.

Each phase is a plain function taking the run context and the test case.
Phases perform one UI action at a time and express every wait as a bounded
poll; a phase either returns normally or raises ConditionTimeoutError,
AssertionError or NotFoundError.
"""

import logging
from typing import Callable, Dict

from ailab_tests.health import check_service_endpoint
from ailab_tests.polling import expect_text, poll
from ailab_tests.runner.context import RunnerContext
from ailab_tests.types.test_case import ModelTestCase, Phase, PhaseKind

logger = logging.getLogger(__name__)

STATUS_RUNNING = "RUNNING"
STATUS_UNKNOWN = "UNKNOWN"
INFERENCE_SERVER_TYPE = "Inference"


def wait_for_machine_startup(ctx: RunnerContext) -> None:
    """Wait until the dashboard reports the Podman machine as running."""
    dashboard = ctx.driver.open_dashboard()
    dashboard.wait_for_load(ctx.config.timeouts.page_load)
    poll(
        dashboard.machine_status,
        timeout=ctx.config.timeouts.machine_startup,
        message="Podman machine status",
    ).to_be(STATUS_RUNNING)


def install_extension(ctx: RunnerContext) -> None:
    """Make sure the AI Lab extension is installed and active."""
    extension = ctx.config.extension
    timeouts = ctx.config.timeouts

    ctx.driver.open_dashboard()
    extensions_page = ctx.driver.open_extensions()
    extensions_page.wait_for_load(timeouts.page_load)

    installed = extensions_page.extension_is_installed(extension.extension_label)
    if not installed and extension.preinstalled:
        logger.warning(f"{extension.extension_name} expected to be preinstalled but was not found")
    if not installed and not extension.preinstalled:
        extensions_page.install_extension_from_oci_image(extension.oci_image)

    poll(
        lambda: extensions_page.extension_is_installed(extension.extension_label),
        timeout=timeouts.extension_install,
        message=f"{extension.extension_name} installed",
    ).to_be_truthy()

    card = extensions_page.get_installed_extension(extension.extension_name, extension.extension_label)
    expect_text(card.status, extension.active_status, timeout=timeouts.text_assertion,
                description=f"{extension.extension_name} status", exact=True)
    ctx.extension_installed = True
    logger.info(f"{extension.extension_name} is {extension.active_status}")


def wait_for_catalog_model(ctx: RunnerContext, model: str) -> bool:
    """Reload the catalog and report whether ``model`` is downloaded.

    The catalog only refreshes its download state when re-opened, so the
    recipe catalog is visited first to force a navigation.
    """
    navigation = ctx.require_navigation()
    timeout = ctx.config.timeouts.page_load

    recipes_catalog = navigation.open_recipes_catalog()
    recipes_catalog.wait_for_load(timeout)

    catalog = navigation.open_catalog()
    catalog.wait_for_load(timeout)
    return catalog.is_model_downloaded(model)


def download_model(ctx: RunnerContext, case: ModelTestCase) -> None:
    timeouts = ctx.config.timeouts
    catalog = ctx.require_navigation().open_catalog()
    catalog.wait_for_load(timeouts.page_load)

    if catalog.is_model_downloaded(case.model):
        logger.info(f"{case.model} is already downloaded")
    else:
        logger.info(f"Downloading {case.model}")
        catalog.download_model(case.model)

    poll(
        lambda: wait_for_catalog_model(ctx, case.model),
        timeout=case.timeout or timeouts.download,
        intervals=[timeouts.download_interval],
        message=f"{case.model} downloaded",
    ).to_be_truthy()


def create_service(ctx: RunnerContext, case: ModelTestCase) -> None:
    timeouts = ctx.config.timeouts
    ctx.service_details = None

    catalog = ctx.require_navigation().open_catalog()
    catalog.wait_for_load(timeouts.page_load)
    creation_page = catalog.create_model_service(case.model)
    creation_page.wait_for_load(timeouts.page_load)

    details = creation_page.create_service()
    details.wait_for_load(timeouts.service_creation)

    expect_text(details.model_name, case.model, timeout=timeouts.text_assertion,
                description="service model name")
    expect_text(details.inference_server_type, INFERENCE_SERVER_TYPE,
                timeout=timeouts.text_assertion, description="inference server type")
    ctx.service_details = details
    logger.info(f"Model service for {case.model} created")


def check_service_health(ctx: RunnerContext, case: ModelTestCase) -> None:
    port = ctx.require_service_details().get_inference_server_port()
    check_service_endpoint(port, timeout=ctx.config.timeouts.health_check)


def delete_service(ctx: RunnerContext, case: ModelTestCase) -> None:
    details = ctx.require_service_details()
    services_page = details.delete_service()
    ctx.service_details = None
    poll(
        services_page.is_heading_visible,
        timeout=ctx.config.timeouts.service_deletion,
        message="Model Services heading",
    ).to_be_truthy()
    logger.info(f"Model service for {case.model} deleted")


def deploy_recipe(ctx: RunnerContext, case: ModelTestCase, recipe: str) -> None:
    timeouts = ctx.config.timeouts
    navigation = ctx.require_navigation()
    navigation.wait_for_load(timeouts.page_load)

    recipes_catalog = navigation.open_recipes_catalog()
    recipes_catalog.wait_for_load(timeouts.page_load)
    app = recipes_catalog.open_recipes_catalog_app(recipe)
    app.wait_for_load(timeouts.page_load)
    app.start_new_deployment()
    logger.info(f"Started {recipe} deployment for {case.model}")


def delete_recipe(ctx: RunnerContext, case: ModelTestCase, recipe: str) -> None:
    """Stop and delete a running recipe app.

    The app must go RUNNING -> UNKNOWN after stop, and disappear after
    delete. A different status at a deadline fails the phase.
    """
    timeouts = ctx.config.timeouts
    running_apps = ctx.require_navigation().open_running_apps()
    running_apps.wait_for_load(timeouts.page_load)

    poll(lambda: running_apps.app_exists(recipe), timeout=timeouts.app_present,
         message=f"{recipe} listed").to_be_truthy()
    poll(lambda: running_apps.get_current_status_for_app(recipe), timeout=timeouts.app_status,
         message=f"{recipe} status").to_be(STATUS_RUNNING)

    running_apps.stop_app(recipe)
    poll(lambda: running_apps.get_current_status_for_app(recipe), timeout=timeouts.app_status,
         message=f"{recipe} status").to_be(STATUS_UNKNOWN)

    running_apps.delete_ai_app(recipe)
    poll(lambda: running_apps.app_exists(recipe), timeout=timeouts.app_removal,
         message=f"{recipe} listed").to_be_falsy()
    logger.info(f"Deleted {recipe} app")


def delete_model(ctx: RunnerContext, case: ModelTestCase) -> None:
    """Verify the model is still downloaded, optionally deleting it.

    Deletion only happens when ``RunnerConfig.delete_models`` is set.
    """
    timeouts = ctx.config.timeouts
    catalog = ctx.require_navigation().open_catalog()
    catalog.wait_for_load(timeouts.page_load)
    if not catalog.is_model_downloaded(case.model):
        raise AssertionError(f"{case.model} is not downloaded")

    if not ctx.config.delete_models:
        return

    catalog.delete_model(case.model)
    poll(
        lambda: wait_for_catalog_model(ctx, case.model),
        timeout=timeouts.model_removal,
        intervals=[timeouts.model_removal_interval],
        message=f"{case.model} downloaded",
    ).to_be_falsy()
    logger.info(f"Deleted {case.model}")


def cleanup_service_models(ctx: RunnerContext) -> bool:
    """Delete every model service. Failures are logged, not raised.

    Returns:
        True if all services were removed
    """
    try:
        services_page = ctx.require_navigation().open_services()
        services_page.wait_for_load(ctx.config.timeouts.page_load)
        services_page.delete_all_current_models()
        poll(
            services_page.get_current_model_count,
            timeout=ctx.config.timeouts.services_cleanup,
            message="model service count",
        ).to_be(0)
        return True
    except Exception as e:
        logger.warning(f"Error while cleaning up service models: {e}")
        return False


PHASE_HANDLERS: Dict[PhaseKind, Callable[..., None]] = {
    PhaseKind.DOWNLOAD: download_model,
    PhaseKind.CREATE_SERVICE: create_service,
    PhaseKind.HEALTH_CHECK: check_service_health,
    PhaseKind.DELETE_SERVICE: delete_service,
    PhaseKind.DEPLOY_RECIPE: deploy_recipe,
    PhaseKind.DELETE_RECIPE: delete_recipe,
    PhaseKind.DELETE_MODEL: delete_model,
}


def execute_phase(ctx: RunnerContext, case: ModelTestCase, phase: Phase) -> None:
    handler = PHASE_HANDLERS[phase.kind]
    if phase.recipe is not None:
        handler(ctx, case, phase.recipe)
    else:
        handler(ctx, case)

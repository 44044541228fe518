import logging

from rich.logging import RichHandler

from ailab_tests.di.container import ENVIRONMENT_MODULES, current_environment, get_configuration

# Get the current stage from environment variable
current_stage = current_environment()
if current_stage not in ENVIRONMENT_MODULES:
    current_stage = "local"

runtime_config = get_configuration(current_stage)


FORMAT = "%(message)s"
logging.basicConfig(
    level=runtime_config.log_level,
    format=FORMAT,
    datefmt="[%X]",
    handlers=[RichHandler()],
)

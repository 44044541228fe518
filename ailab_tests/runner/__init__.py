from .context import RunnerContext
from .planner import executable_phases, plan_phases, skip_reason
from .workflow import WorkflowRunner

__all__ = [
    "RunnerContext",
    "WorkflowRunner",
    "executable_phases",
    "plan_phases",
    "skip_reason",
]

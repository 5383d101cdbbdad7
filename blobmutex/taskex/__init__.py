from .models import (
    RunStatus as RunStatus,
    TaskExecution as TaskExecution,
)
from .task_runner import SupervisedTaskRunner as SupervisedTaskRunner

from .run_status import RunStatus as RunStatus
from .task_execution import TaskExecution as TaskExecution

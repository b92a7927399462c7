from typing import Dict, Type

from game.tasks.base import TaskBase
from game.tasks.change_detection import ChangeDetectionTask
from game.tasks.flanker import FlankerTask
from game.tasks.mental_rotation import MentalRotationTask
from game.tasks.nback import NBackTask
from game.tasks.posner import PosnerTask
from game.tasks.stroop import StroopTask
from game.tasks.visual_search import VisualSearchTask

TASKS: Dict[str, Type[TaskBase]] = {
    task.task_id: task
    for task in (
        FlankerTask,
        StroopTask,
        NBackTask,
        PosnerTask,
        ChangeDetectionTask,
        VisualSearchTask,
        MentalRotationTask,
    )
}


def get_task(task_id: str) -> Type[TaskBase]:
    try:
        return TASKS[task_id]
    except KeyError:
        raise ValueError(f"Unknown task: {task_id}. Available: {', '.join(sorted(TASKS))}") from None


__all__ = [
    "TASKS",
    "get_task",
    "TaskBase",
    "FlankerTask",
    "StroopTask",
    "NBackTask",
    "PosnerTask",
    "ChangeDetectionTask",
    "VisualSearchTask",
    "MentalRotationTask",
]

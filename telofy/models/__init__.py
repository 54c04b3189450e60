# telofy/models/__init__.py

from telofy.core.config import Base

# Import all models here so metadata and app-wide imports see every table
from .user import User
from .objective import Objective, ObjectiveStatus, ObjectiveCategory, Pillar, MANUAL_STATUSES
from .metric import Metric, MetricEntry, MetricType, TargetDirection
from .ritual import Ritual, RitualCompletion, RitualFrequency
from .task import Task, TaskStatus, TERMINAL_TASK_STATUSES
from .deviation import Deviation, DeviationType
from .waitlist import WaitlistEntry

__all__ = [
    "Base",
    "User",
    "Objective",
    "ObjectiveStatus",
    "ObjectiveCategory",
    "MANUAL_STATUSES",
    "Pillar",
    "Metric",
    "MetricEntry",
    "MetricType",
    "TargetDirection",
    "Ritual",
    "RitualCompletion",
    "RitualFrequency",
    "Task",
    "TaskStatus",
    "TERMINAL_TASK_STATUSES",
    "Deviation",
    "DeviationType",
    "WaitlistEntry",
]

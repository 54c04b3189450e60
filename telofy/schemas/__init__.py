# telofy/schemas/__init__.py

from .user import (
    UserCreate,
    UserUpdate,
    UserUpdatePassword,
    UserOut,
    LoginRequest,
    TokenResponse,
    RefreshTokenRequest,
    PasswordResetRequest,
    PasswordResetConfirm,
    SuccessResponse,
)
from .objective import (
    PillarCreate,
    PillarUpdate,
    PillarOut,
    ObjectiveCreate,
    ObjectiveUpdate,
    ObjectiveStatusUpdate,
    ObjectiveOut,
    ObjectiveDetail,
    ObjectiveProgressOut,
)
from .metric import MetricCreate, MetricUpdate, MetricOut, MetricEntryCreate, MetricEntryOut
from .ritual import RitualCreate, RitualUpdate, RitualOut, RitualCompletionCreate, RitualCompletionOut
from .task import TaskCreate, TaskUpdate, TaskOut, TaskSkipRequest, TaskCompleteRequest
from .deviation import DeviationOut, SweepReportOut
from .waitlist import WaitlistCreate


__all__ = [
    # Users
    "UserCreate", "UserUpdate", "UserUpdatePassword", "UserOut",
    "LoginRequest", "TokenResponse", "RefreshTokenRequest",
    "PasswordResetRequest", "PasswordResetConfirm", "SuccessResponse",

    # Objectives & pillars
    "PillarCreate", "PillarUpdate", "PillarOut",
    "ObjectiveCreate", "ObjectiveUpdate", "ObjectiveStatusUpdate",
    "ObjectiveOut", "ObjectiveDetail", "ObjectiveProgressOut",

    # Tracking
    "MetricCreate", "MetricUpdate", "MetricOut", "MetricEntryCreate", "MetricEntryOut",
    "RitualCreate", "RitualUpdate", "RitualOut", "RitualCompletionCreate", "RitualCompletionOut",
    "TaskCreate", "TaskUpdate", "TaskOut", "TaskSkipRequest", "TaskCompleteRequest",
    "DeviationOut", "SweepReportOut",

    # Waitlist
    "WaitlistCreate",
]

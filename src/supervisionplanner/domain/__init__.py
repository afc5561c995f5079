"""Domain models and business rules for supervision scheduling."""

from supervisionplanner.domain.errors import (
    MalformedIntervalError,
    RequestError,
    SchedulerError,
    TimeParseError,
)
from supervisionplanner.domain.models import (
    DAY_ORDER,
    ClientRule,
    DayKey,
    DayWindow,
    ScheduledBlock,
    ScheduleRequest,
    ScheduleResult,
    SupervisorConfig,
    TimeBlock,
    week_start,
)
from supervisionplanner.domain.policies import DefaultSessionPolicy, SessionPolicy

__all__ = [
    # Models
    "DAY_ORDER",
    "ClientRule",
    "DayKey",
    "DayWindow",
    "ScheduledBlock",
    "ScheduleRequest",
    "ScheduleResult",
    "SupervisorConfig",
    "TimeBlock",
    "week_start",
    # Errors
    "MalformedIntervalError",
    "RequestError",
    "SchedulerError",
    "TimeParseError",
    # Policies
    "DefaultSessionPolicy",
    "SessionPolicy",
]

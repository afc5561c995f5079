"""Exception types raised at the scheduler's input boundary.

The allocation itself never raises for infeasibility: a client whose
constraints cannot be met simply finishes the run with remaining minutes.
These errors only cover malformed input.
"""


class SchedulerError(Exception):
    """Base class for all supervisionplanner errors."""


class MalformedIntervalError(SchedulerError, ValueError):
    """A time block whose end is not after its start, or outside the day."""


class TimeParseError(SchedulerError, ValueError):
    """Time-of-day text that cannot be parsed."""


class RequestError(SchedulerError, ValueError):
    """A schedule request document that is missing data or inconsistent."""

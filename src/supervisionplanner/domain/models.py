"""Domain models for the supervision scheduler.

This module contains all core data structures used throughout the scheduling
system: weekday tags, minute-of-day blocks, client rules, the supervisor's
configuration, the request handed to one allocation run and the blocks it
produces.
"""

import math
from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum
from typing import Optional

from supervisionplanner.domain.errors import MalformedIntervalError

MINUTES_PER_DAY = 1440


class DayKey(Enum):
    """Weekday tags, in Monday-first order."""

    MON = "mon"
    TUE = "tue"
    WED = "wed"
    THU = "thu"
    FRI = "fri"
    SAT = "sat"
    SUN = "sun"

    @classmethod
    def from_date(cls, d: date) -> "DayKey":
        """Weekday tag for a calendar date."""
        return DAY_ORDER[d.weekday()]

    @classmethod
    def parse(cls, value: "str | DayKey") -> "DayKey":
        """Accept "mon", "Mon", "monday" or an existing DayKey."""
        if isinstance(value, DayKey):
            return value
        return cls(str(value).strip().lower()[:3])


DAY_ORDER: list[DayKey] = list(DayKey)


def week_start(d: date) -> date:
    """Monday of the week containing d."""
    return d - timedelta(days=d.weekday())


@dataclass(frozen=True)
class TimeBlock:
    """A contiguous minute-of-day interval [start, end).

    Attributes:
        start: Minutes from midnight when the block starts.
        end: Minutes from midnight when the block ends (exclusive).
    """

    start: int
    end: int

    def __post_init__(self):
        if not (0 <= self.start <= MINUTES_PER_DAY and 0 <= self.end <= MINUTES_PER_DAY):
            raise MalformedIntervalError(
                f"Block {self.start}-{self.end} is outside 0-{MINUTES_PER_DAY}"
            )
        if self.end <= self.start:
            raise MalformedIntervalError(
                f"Block end ({self.end}) must be after start ({self.start})"
            )

    @classmethod
    def from_text(cls, start: str, end: str) -> "TimeBlock":
        """Create a block from text such as "9 am" and "12:30 pm"."""
        from supervisionplanner.domain.timeparse import parse_time

        return cls(start=parse_time(start), end=parse_time(end))

    @property
    def duration_minutes(self) -> int:
        """Length of the block in minutes."""
        return self.end - self.start

    def overlaps(self, other: "TimeBlock") -> bool:
        """Check if this block overlaps with another."""
        return self.start < other.end and other.start < self.end

    def contains(self, other: "TimeBlock") -> bool:
        """Check if another block lies entirely inside this one."""
        return self.start <= other.start and other.end <= self.end

    def __repr__(self) -> str:
        return f"TimeBlock({self.start // 60:02d}:{self.start % 60:02d}-{self.end // 60:02d}:{self.end % 60:02d})"


@dataclass
class DayWindow:
    """A client's authorized hours on one weekday (recurring weekly)."""

    day: DayKey
    blocks: list[TimeBlock] = field(default_factory=list)


@dataclass
class ClientRule:
    """Scheduling rules for one client.

    Attributes:
        id: Unique identifier within a request.
        monthly_hours: Target supervision hours for the selected date range.
        min_session_mins: Preferred minimum session length (floored at 15).
        windows: Authorized weekday windows.
        max_sessions_per_week: Optional per-client weekly session cap.
        preferred_day_slots: Ordered slot groups; each slot asks for one
            session per week on any of its weekdays.
        prefer_no_sub_hour: Informational flag kept from intake forms.
    """

    id: str
    monthly_hours: float
    min_session_mins: Optional[int] = 60
    windows: list[DayWindow] = field(default_factory=list)
    max_sessions_per_week: Optional[int] = None
    preferred_day_slots: list[frozenset[DayKey]] = field(default_factory=list)
    prefer_no_sub_hour: bool = True

    def blocks_for(self, day: DayKey) -> list[TimeBlock]:
        """All authorized blocks for a weekday, in declaration order."""
        return [b for w in self.windows if w.day == day for b in w.blocks]

    @property
    def target_minutes(self) -> int:
        """Target converted to whole minutes, never negative."""
        # Halves round up
        return max(0, math.floor((self.monthly_hours or 0) * 60 + 0.5))


@dataclass
class SupervisorConfig:
    """The supervisor's calendar.

    Attributes:
        active_days: Weekdays worked at all.
        unavailable_days: Fully closed calendar dates.
        daily_avail: Recurring availability per weekday.
        date_overrides: Date-specific blocks removed from that date's
            recurring availability (partial-day closures).
        rounding_minutes: Quantization unit for session lengths.
        allow_sub_hour_if_unavoidable: Permit sessions shorter than a
            client's minimum when nothing longer fits.
        max_sessions_per_week_per_client: Optional global weekly cap.
    """

    active_days: set[DayKey] = field(default_factory=lambda: set(DAY_ORDER[:5]))
    unavailable_days: list[date] = field(default_factory=list)
    daily_avail: dict[DayKey, list[TimeBlock]] = field(default_factory=dict)
    date_overrides: dict[date, list[TimeBlock]] = field(default_factory=dict)
    rounding_minutes: int = 15
    allow_sub_hour_if_unavoidable: bool = False
    max_sessions_per_week_per_client: Optional[int] = None


@dataclass
class ScheduleRequest:
    """Input to one allocation run.

    Attributes:
        start_date: First date of the range.
        end_date: Last date of the range (inclusive).
        clients: Clients to schedule, in priority tie-break order.
        supervisor: Supervisor calendar and global settings.
    """

    start_date: date
    end_date: date
    clients: list[ClientRule]
    supervisor: SupervisorConfig = field(default_factory=SupervisorConfig)

    @property
    def schedule_dates(self) -> list[date]:
        """List of all calendar dates in the range."""
        dates = []
        current = self.start_date
        while current <= self.end_date:
            dates.append(current)
            current += timedelta(days=1)
        return dates

    @property
    def num_days(self) -> int:
        """Number of calendar days in the range."""
        return (self.end_date - self.start_date).days + 1

    @property
    def client_map(self) -> dict[str, ClientRule]:
        """Clients keyed by id."""
        return {c.id: c for c in self.clients}


@dataclass
class ScheduledBlock:
    """A placed supervision session.

    Attributes:
        date: Calendar date of the session.
        client_id: Client the session belongs to.
        start: Start, minutes from midnight.
        end: End, minutes from midnight (exclusive).
    """

    date: date
    client_id: str
    start: int
    end: int

    @property
    def duration_minutes(self) -> int:
        return self.end - self.start

    @property
    def block(self) -> TimeBlock:
        return TimeBlock(self.start, self.end)

    def overlaps(self, other: "ScheduledBlock") -> bool:
        """Check if two sessions collide on the same date."""
        return (
            self.date == other.date
            and self.start < other.end
            and other.start < self.end
        )


@dataclass
class ScheduleResult:
    """Blocks produced by one run plus the engine's final bookkeeping.

    Attributes:
        blocks: Placed sessions in placement order.
        remaining: Minutes still unscheduled per client.
        per_week_cap: Weekly session cap used per client.
    """

    blocks: list[ScheduledBlock] = field(default_factory=list)
    remaining: dict[str, int] = field(default_factory=dict)
    per_week_cap: dict[str, int] = field(default_factory=dict)

    def get_client_blocks(self, client_id: str) -> list[ScheduledBlock]:
        """All blocks for one client, in placement order."""
        return [b for b in self.blocks if b.client_id == client_id]

    def get_client_minutes(self, client_id: str) -> int:
        """Total scheduled minutes for one client."""
        return sum(b.duration_minutes for b in self.get_client_blocks(client_id))

    def get_blocks_by_date(self) -> dict[date, list[ScheduledBlock]]:
        """Blocks grouped by date, each day sorted by start."""
        by_date: dict[date, list[ScheduledBlock]] = {}
        for b in self.blocks:
            by_date.setdefault(b.date, []).append(b)
        for day_blocks in by_date.values():
            day_blocks.sort(key=lambda b: b.start)
        return dict(sorted(by_date.items()))

    @property
    def unmet_clients(self) -> list[str]:
        """Clients that finished the run under target."""
        return [cid for cid, left in self.remaining.items() if left > 0]

"""Availability resolution per client and date.

Combines the client's recurring authorized windows with the supervisor's
recurring weekday availability, closed dates and date-specific exceptions.
"""

from datetime import date
from typing import Iterable

from supervisionplanner.domain.intervals import intersect, normalize, subtract_all, total_minutes
from supervisionplanner.domain.models import ClientRule, DayKey, SupervisorConfig, TimeBlock


class AvailabilityResolver:
    """Answers "when can this client be seen on this date?".

    Example:
        >>> resolver = AvailabilityResolver(request.supervisor)
        >>> resolver.effective_windows(date(2025, 3, 10), client)
        [TimeBlock(09:00-12:00)]
    """

    def __init__(self, supervisor: SupervisorConfig):
        self.supervisor = supervisor
        self._closed = set(supervisor.unavailable_days)

    def is_open(self, d: date) -> bool:
        """Check if the supervisor works at all on a date."""
        return DayKey.from_date(d) in self.supervisor.active_days and d not in self._closed

    def recurring_blocks(self, day: DayKey) -> list[TimeBlock]:
        """Supervisor's weekly availability for a weekday."""
        return normalize(self.supervisor.daily_avail.get(day, []))

    def supervisor_blocks(self, d: date) -> list[TimeBlock]:
        """Supervisor availability on a date with that date's exceptions removed."""
        if not self.is_open(d):
            return []
        blocks = self.recurring_blocks(DayKey.from_date(d))
        return subtract_all(blocks, self.supervisor.date_overrides.get(d, []))

    def effective_windows(self, d: date, client: ClientRule) -> list[TimeBlock]:
        """Usable intervals for a client on a date."""
        if not self.is_open(d):
            return []
        client_blocks = client.blocks_for(DayKey.from_date(d))
        return intersect(client_blocks, self.supervisor_blocks(d))

    def is_eligible(self, d: date, client: ClientRule) -> bool:
        """Check if any placement is possible from weekly-recurring data alone.

        Date-specific exceptions are ignored here; they are applied when
        the day is actually allocated.
        """
        if not self.is_open(d):
            return False
        day = DayKey.from_date(d)
        return bool(intersect(client.blocks_for(day), self.recurring_blocks(day)))

    def client_tightness(
        self,
        clients: Iterable[ClientRule],
        dates: Iterable[date],
    ) -> dict[str, int]:
        """Minutes of effective availability per client; smaller is tighter."""
        dates = list(dates)
        return {
            c.id: sum(total_minutes(self.effective_windows(d, c)) for d in dates)
            for c in clients
        }

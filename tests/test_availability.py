"""Tests for availability resolution."""

from datetime import date

import pytest

from supervisionplanner.domain.models import (
    ClientRule,
    DayKey,
    DayWindow,
    SupervisorConfig,
    TimeBlock,
)
from supervisionplanner.scheduling.availability import AvailabilityResolver

MONDAY = date(2024, 1, 15)
NEXT_MONDAY = date(2024, 1, 22)
TUESDAY = date(2024, 1, 16)
SATURDAY = date(2024, 1, 20)


@pytest.fixture
def supervisor():
    """Supervisor working weekdays 8-12 and 1-5."""
    weekdays = [DayKey.MON, DayKey.TUE, DayKey.WED, DayKey.THU, DayKey.FRI]
    return SupervisorConfig(
        active_days=set(weekdays),
        daily_avail={d: [TimeBlock(480, 720), TimeBlock(780, 1020)] for d in weekdays},
    )


@pytest.fixture
def client():
    """Client authorized Monday 9-3."""
    return ClientRule(
        id="C1",
        monthly_hours=4,
        windows=[DayWindow(day=DayKey.MON, blocks=[TimeBlock(540, 900)])],
    )


class TestAvailabilityResolver:
    """Tests for AvailabilityResolver."""

    def test_effective_windows_intersection(self, supervisor, client):
        resolver = AvailabilityResolver(supervisor)
        assert resolver.effective_windows(MONDAY, client) == [
            TimeBlock(540, 720),
            TimeBlock(780, 900),
        ]

    def test_client_without_window_that_day(self, supervisor, client):
        resolver = AvailabilityResolver(supervisor)
        assert resolver.effective_windows(TUESDAY, client) == []
        assert not resolver.is_eligible(TUESDAY, client)

    def test_inactive_weekday_is_empty(self, supervisor, client):
        """Saturday is not an active day, even if availability existed."""
        supervisor.daily_avail[DayKey.SAT] = [TimeBlock(540, 720)]
        client.windows.append(DayWindow(day=DayKey.SAT, blocks=[TimeBlock(540, 720)]))
        resolver = AvailabilityResolver(supervisor)
        assert not resolver.is_open(SATURDAY)
        assert resolver.effective_windows(SATURDAY, client) == []
        assert resolver.supervisor_blocks(SATURDAY) == []

    def test_closed_date_is_empty(self, supervisor, client):
        supervisor.unavailable_days = [MONDAY]
        resolver = AvailabilityResolver(supervisor)
        assert resolver.effective_windows(MONDAY, client) == []
        assert not resolver.is_eligible(MONDAY, client)
        assert resolver.effective_windows(NEXT_MONDAY, client) != []

    def test_override_applies_to_that_date_only(self, supervisor, client):
        """One-off exceptions leave other dates on the same weekday alone."""
        supervisor.date_overrides = {MONDAY: [TimeBlock(480, 660)]}
        resolver = AvailabilityResolver(supervisor)

        assert resolver.supervisor_blocks(MONDAY) == [TimeBlock(660, 720), TimeBlock(780, 1020)]
        assert resolver.effective_windows(MONDAY, client) == [
            TimeBlock(660, 720),
            TimeBlock(780, 900),
        ]
        assert resolver.effective_windows(NEXT_MONDAY, client) == [
            TimeBlock(540, 720),
            TimeBlock(780, 900),
        ]

    def test_eligibility_ignores_overrides(self, supervisor, client):
        """Eligibility is computed from weekly-recurring availability only."""
        supervisor.date_overrides = {MONDAY: [TimeBlock(0, 1440)]}
        resolver = AvailabilityResolver(supervisor)
        assert resolver.effective_windows(MONDAY, client) == []
        assert resolver.is_eligible(MONDAY, client)

    def test_client_tightness(self, supervisor, client):
        resolver = AvailabilityResolver(supervisor)
        tightness = resolver.client_tightness([client], [MONDAY, TUESDAY, NEXT_MONDAY])
        # 3h + 2h per Monday
        assert tightness == {"C1": 600}

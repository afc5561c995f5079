"""Tests for the residual top-up pass."""

from datetime import date

from supervisionplanner.domain.models import (
    ClientRule,
    DayKey,
    DayWindow,
    ScheduledBlock,
    ScheduleRequest,
    SupervisorConfig,
    TimeBlock,
)
from supervisionplanner.scheduling.allocation import AllocationContext
from supervisionplanner.scheduling.availability import AvailabilityResolver
from supervisionplanner.scheduling.scheduler import Scheduler
from supervisionplanner.scheduling.topup import ResidualTopUp

MONDAY = date(2024, 1, 15)


def create_client(id, hours, start=540, end=720) -> ClientRule:
    return ClientRule(
        id=id,
        monthly_hours=hours,
        windows=[DayWindow(day=DayKey.MON, blocks=[TimeBlock(start, end)])],
    )


def create_request(clients) -> ScheduleRequest:
    supervisor = SupervisorConfig(
        active_days={DayKey.MON},
        daily_avail={DayKey.MON: [TimeBlock(540, 720)]},
    )
    return ScheduleRequest(
        start_date=MONDAY,
        end_date=MONDAY,
        clients=clients,
        supervisor=supervisor,
    )


class TestResidualTopUp:
    """Tests for extending sessions by one rounding unit."""

    def test_residual_absorbed(self):
        """70 minutes becomes one 60 minute session, then 75 after top-up."""
        request = create_request([create_client("A", 70 / 60)])
        result = Scheduler().generate_schedule(request)

        assert [(b.start, b.end) for b in result.blocks] == [(540, 615)]
        assert result.remaining["A"] == 0

    def test_no_headroom_at_window_end(self):
        """A's session already ends where availability ends."""
        request = create_request([create_client("A", 70 / 60), create_client("B", 2)])
        result = Scheduler().generate_schedule(request)

        placed = {b.client_id: (b.start, b.end) for b in result.blocks}
        assert placed == {"B": (540, 660), "A": (660, 720)}
        assert result.remaining["A"] == 10
        assert result.remaining["B"] == 0

    def test_next_block_limits_extension(self):
        request = create_request(
            [create_client("A", 70 / 60), create_client("B", 1, start=600)]
        )
        result = Scheduler().generate_schedule(request)

        placed = {b.client_id: (b.start, b.end) for b in result.blocks}
        assert placed == {"A": (540, 600), "B": (600, 660)}
        assert result.remaining["A"] == 10

    def test_residual_larger_than_unit_untouched(self):
        request = create_request([create_client("A", 1)])
        context = AllocationContext(
            remaining={"A": 30},
            per_week_cap={"A": 1},
            blocks=[ScheduledBlock(MONDAY, "A", 540, 570)],
        )
        extended = ResidualTopUp().apply(
            request, AvailabilityResolver(request.supervisor), context
        )

        assert extended == 0
        assert context.blocks[0].end == 570
        assert context.remaining["A"] == 30

    def test_first_block_with_headroom_is_extended(self):
        """Blocks are tried in (date, start) order."""
        request = create_request([create_client("A", 1)])
        context = AllocationContext(
            remaining={"A": 5},
            per_week_cap={"A": 2},
            blocks=[
                ScheduledBlock(MONDAY, "A", 660, 720),
                ScheduledBlock(MONDAY, "A", 540, 600),
            ],
        )
        extended = ResidualTopUp().apply(
            request, AvailabilityResolver(request.supervisor), context
        )

        assert extended == 1
        assert [(b.start, b.end) for b in context.blocks] == [(660, 720), (540, 615)]
        assert context.remaining["A"] == 0

    def test_date_exception_limits_extension(self):
        """A one-off closure starting at the session end leaves no headroom."""
        request = create_request([create_client("A", 70 / 60)])
        request.supervisor.date_overrides = {MONDAY: [TimeBlock(600, 720)]}
        result = Scheduler().generate_schedule(request)

        assert [(b.start, b.end) for b in result.blocks] == [(540, 600)]
        assert result.remaining["A"] == 10

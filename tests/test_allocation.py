"""Tests for greedy session allocation."""

from datetime import date, timedelta

import pytest

from supervisionplanner.cli import create_sample_request
from supervisionplanner.domain.models import (
    ClientRule,
    DayKey,
    DayWindow,
    ScheduleRequest,
    SupervisorConfig,
    TimeBlock,
    week_start,
)
from supervisionplanner.scheduling.allocation import CandidateScore
from supervisionplanner.scheduling.scheduler import Scheduler, generate

WEEKDAYS = [DayKey.MON, DayKey.TUE, DayKey.WED, DayKey.THU, DayKey.FRI]
MONDAY = date(2024, 1, 15)
WEDNESDAY = date(2024, 1, 17)


def create_supervisor(start=540, end=720, **kwargs) -> SupervisorConfig:
    return SupervisorConfig(
        active_days=set(WEEKDAYS),
        daily_avail={d: [TimeBlock(start, end)] for d in WEEKDAYS},
        **kwargs,
    )


def create_client(id, hours, days, start=540, end=720, **kwargs) -> ClientRule:
    return ClientRule(
        id=id,
        monthly_hours=hours,
        windows=[DayWindow(day=d, blocks=[TimeBlock(start, end)]) for d in days],
        **kwargs,
    )


def create_request(clients, start_date=MONDAY, end_date=None, supervisor=None) -> ScheduleRequest:
    return ScheduleRequest(
        start_date=start_date,
        end_date=end_date or start_date,
        clients=clients,
        supervisor=supervisor or create_supervisor(),
    )


class TestBasicAllocation:
    """Tests for single-client placement."""

    def test_single_full_session(self):
        request = create_request([create_client("C1", 1, [DayKey.MON])])
        result = Scheduler().generate_schedule(request)

        assert len(result.blocks) == 1
        blk = result.blocks[0]
        assert (blk.date, blk.client_id, blk.start, blk.end) == (MONDAY, "C1", 540, 600)
        assert result.remaining["C1"] == 0

    def test_closed_date_yields_nothing(self):
        supervisor = create_supervisor(unavailable_days=[MONDAY])
        request = create_request([create_client("C1", 1, [DayKey.MON])], supervisor=supervisor)
        result = Scheduler().generate_schedule(request)

        assert result.blocks == []
        assert result.remaining["C1"] == 60

    def test_sub_hour_refused_by_default(self):
        """A 30 minute gap cannot hold a 60 minute session."""
        supervisor = create_supervisor(540, 570)
        request = create_request([create_client("C1", 1, [DayKey.MON])], supervisor=supervisor)
        result = Scheduler().generate_schedule(request)

        assert result.blocks == []
        assert result.remaining["C1"] == 60

    def test_sub_hour_when_allowed(self):
        supervisor = create_supervisor(540, 570, allow_sub_hour_if_unavoidable=True)
        request = create_request([create_client("C1", 1, [DayKey.MON])], supervisor=supervisor)
        result = Scheduler().generate_schedule(request)

        assert [(b.start, b.end) for b in result.blocks] == [(540, 570)]
        assert result.remaining["C1"] == 30

    def test_zero_target_is_never_scheduled(self):
        request = create_request([create_client("C1", 0, [DayKey.MON])])
        assert generate(request) == []

    def test_override_removes_time_on_that_date(self):
        supervisor = create_supervisor(date_overrides={MONDAY: [TimeBlock(540, 660)]})
        request = create_request([create_client("C1", 1, [DayKey.MON])], supervisor=supervisor)
        blocks = generate(request)

        assert [(b.start, b.end) for b in blocks] == [(660, 720)]


class TestPacing:
    """Tests for weekly caps and preferred day slots."""

    def test_slots_spread_sessions_across_week(self):
        """Two slots per week with a cap of two give Monday and Thursday sessions."""
        client = create_client(
            "C1",
            4,
            [DayKey.MON, DayKey.THU],
            preferred_day_slots=[frozenset({DayKey.MON}), frozenset({DayKey.THU})],
        )
        request = create_request([client], end_date=MONDAY + timedelta(days=13))
        result = Scheduler().generate_schedule(request)

        assert result.per_week_cap["C1"] == 2
        assert [b.date for b in result.blocks] == [
            date(2024, 1, 15),
            date(2024, 1, 18),
            date(2024, 1, 22),
            date(2024, 1, 25),
        ]
        assert all((b.start, b.end) == (540, 600) for b in result.blocks)
        assert result.remaining["C1"] == 0

    def test_weekly_cap_limits_sessions(self):
        client = create_client("C1", 10, WEEKDAYS, max_sessions_per_week=2)
        request = create_request([client], end_date=MONDAY + timedelta(days=6))
        result = Scheduler().generate_schedule(request)

        assert len(result.blocks) == 2
        assert result.remaining["C1"] == 600 - sum(b.duration_minutes for b in result.blocks)
        assert result.remaining["C1"] > 0

    def test_one_session_per_client_per_date(self):
        client = create_client("C1", 20, WEEKDAYS, start=480, end=1020)
        supervisor = create_supervisor(480, 1020)
        request = create_request([client], end_date=MONDAY + timedelta(days=4), supervisor=supervisor)
        blocks = generate(request)

        dates = [b.date for b in blocks]
        assert len(dates) == len(set(dates))


class TestSlotSkip:
    """Tests for deferring clients whose preferred slot does not match."""

    def test_unmatched_client_waits_for_matched_one(self):
        """A's slot is Monday; B's slot matches but B cannot fit, so A still waits."""
        a = create_client("A", 2, [DayKey.WED], preferred_day_slots=[frozenset({DayKey.MON})])
        b = create_client(
            "B", 1, [DayKey.WED], 540, 560, preferred_day_slots=[frozenset({DayKey.WED})]
        )
        request = create_request([a, b], start_date=WEDNESDAY)
        assert generate(request) == []

    def test_client_without_slots_is_not_deferred(self):
        a = create_client("A", 2, [DayKey.WED])
        b = create_client(
            "B", 1, [DayKey.WED], 540, 560, preferred_day_slots=[frozenset({DayKey.WED})]
        )
        request = create_request([a, b], start_date=WEDNESDAY)
        blocks = generate(request)

        assert [(b.client_id, b.start, b.end) for b in blocks] == [("A", 540, 660)]

    def test_unmatched_client_alone_falls_through(self):
        a = create_client("A", 2, [DayKey.WED], preferred_day_slots=[frozenset({DayKey.MON})])
        request = create_request([a], start_date=WEDNESDAY)
        blocks = generate(request)

        assert [(b.client_id, b.start, b.end) for b in blocks] == [("A", 540, 660)]


class TestCandidateScore:
    """Tests for the candidate ordering."""

    @pytest.fixture
    def client(self):
        return create_client("C1", 1, [DayKey.MON])

    def make(self, client, index=0, under_cap=True, slot_idx=-1, back_to_back=False, need=60.0):
        return CandidateScore(
            client=client,
            index=index,
            under_cap=under_cap,
            slot_idx=slot_idx,
            back_to_back=back_to_back,
            per_day_need=need,
        )

    def test_under_cap_first(self, client):
        over = self.make(client, index=0, under_cap=False, slot_idx=0, need=500)
        under = self.make(client, index=1)
        assert sorted([over, under], key=CandidateScore.sort_key) == [under, over]

    def test_slot_match_before_need(self, client):
        needy = self.make(client, index=0, need=500)
        matched = self.make(client, index=1, slot_idx=0, need=10)
        assert sorted([needy, matched], key=CandidateScore.sort_key) == [matched, needy]

    def test_back_to_back_last(self, client):
        repeat = self.make(client, index=0, back_to_back=True, need=500)
        fresh = self.make(client, index=1, need=10)
        assert sorted([repeat, fresh], key=CandidateScore.sort_key) == [fresh, repeat]

    def test_larger_need_first(self, client):
        small = self.make(client, index=0, need=30)
        large = self.make(client, index=1, need=90)
        assert sorted([small, large], key=CandidateScore.sort_key) == [large, small]

    def test_request_order_breaks_ties(self, client):
        second = self.make(client, index=1)
        first = self.make(client, index=0)
        assert sorted([second, first], key=CandidateScore.sort_key) == [first, second]


class TestScheduleProperties:
    """Invariants that hold for any generated schedule."""

    @pytest.fixture
    def request_(self):
        return create_sample_request(client_count=8, weeks=4, start_date=MONDAY)

    @pytest.fixture
    def result(self, request_):
        return Scheduler().generate_schedule(request_)

    def test_deterministic(self, request_):
        first = generate(request_)
        second = generate(create_sample_request(client_count=8, weeks=4, start_date=MONDAY))
        assert first == second

    def test_no_overlaps(self, result):
        for day_blocks in result.get_blocks_by_date().values():
            for prev, cur in zip(day_blocks, day_blocks[1:]):
                assert cur.start >= prev.end

    def test_blocks_are_quantized(self, result, request_):
        rounding = request_.supervisor.rounding_minutes
        for blk in result.blocks:
            assert blk.duration_minutes > 0
            assert blk.duration_minutes % rounding == 0

    def test_dates_in_range_and_open(self, result, request_):
        for blk in result.blocks:
            assert request_.start_date <= blk.date <= request_.end_date
            assert DayKey.from_date(blk.date) in request_.supervisor.active_days

    def test_weekly_caps_respected(self, result):
        counts = {}
        for blk in result.blocks:
            key = (blk.client_id, week_start(blk.date))
            counts[key] = counts.get(key, 0) + 1
        for (client_id, _), count in counts.items():
            assert count <= result.per_week_cap[client_id]

    def test_remaining_matches_scheduled(self, result, request_):
        for client in request_.clients:
            scheduled = result.get_client_minutes(client.id)
            assert result.remaining[client.id] == max(0, client.target_minutes - scheduled)

    def test_stats(self, request_):
        result, stats = Scheduler().generate_schedule_with_stats(request_)
        assert stats["total_clients"] == 8
        assert stats["total_sessions"] == len(result.blocks)
        assert stats["range_days"] == 28
        assert stats["open_dates"] == 20
        assert set(stats["per_client"]) == {c.id for c in request_.clients}

"""Greedy allocation of supervision sessions across a date range.

This module implements a forward-only greedy heuristic:
1. Walk open dates in ascending order
2. On each date, score the clients that still need time
3. Place at most one session per client per date, best score first
4. Carry weekly counts, slot satisfaction and remaining minutes forward

There is no backtracking. A client whose constraints cannot be met simply
finishes with remaining minutes.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Optional

from supervisionplanner.domain.intervals import intersect, subtract
from supervisionplanner.domain.models import (
    ClientRule,
    DayKey,
    ScheduledBlock,
    ScheduleRequest,
    TimeBlock,
    week_start,
)
from supervisionplanner.domain.policies import DefaultSessionPolicy, SessionPolicy
from supervisionplanner.scheduling.availability import AvailabilityResolver
from supervisionplanner.scheduling.capacity import CapacityPlan

logger = logging.getLogger(__name__)

DEFAULT_MAX_PASSES_PER_DAY = 30


@dataclass
class AllocationContext:
    """Transient state owned by a single allocation run.

    Attributes:
        remaining: Minutes still to schedule per client.
        per_week_cap: Weekly session cap per client.
        sessions_this_week: Sessions placed per (client, week start).
        last_scheduled: Last date a session was placed per client.
        slot_satisfied: Satisfied flags per (client, week start), one per
            preferred slot.
        blocks: Sessions placed so far, in placement order.
    """

    remaining: dict[str, int] = field(default_factory=dict)
    per_week_cap: dict[str, int] = field(default_factory=dict)
    sessions_this_week: dict[tuple[str, date], int] = field(default_factory=dict)
    last_scheduled: dict[str, date] = field(default_factory=dict)
    slot_satisfied: dict[tuple[str, date], list[bool]] = field(default_factory=dict)
    blocks: list[ScheduledBlock] = field(default_factory=list)

    @classmethod
    def from_plan(cls, plan: CapacityPlan) -> "AllocationContext":
        return cls(
            remaining={cid: cap.target_minutes for cid, cap in plan.clients.items()},
            per_week_cap=plan.per_week_cap,
        )

    def sessions_in_week(self, client_id: str, week: date) -> int:
        return self.sessions_this_week.get((client_id, week), 0)

    def under_cap(self, client_id: str, week: date) -> bool:
        return self.sessions_in_week(client_id, week) < self.per_week_cap[client_id]

    def matched_slot(self, client: ClientRule, day: DayKey, week: date) -> int:
        """Index of the first unsatisfied preferred slot containing day, or -1."""
        satisfied = self.slot_satisfied.get((client.id, week))
        for idx, slot in enumerate(client.preferred_day_slots):
            if satisfied is not None and satisfied[idx]:
                continue
            if day in slot:
                return idx
        return -1

    def record(
        self,
        client: ClientRule,
        block: ScheduledBlock,
        week: date,
        slot_idx: int,
    ) -> None:
        """Apply the bookkeeping for a placed session."""
        self.blocks.append(block)
        self.remaining[client.id] -= block.duration_minutes
        key = (client.id, week)
        self.sessions_this_week[key] = self.sessions_this_week.get(key, 0) + 1
        self.last_scheduled[client.id] = block.date
        if slot_idx >= 0:
            satisfied = self.slot_satisfied.setdefault(
                key, [False] * len(client.preferred_day_slots)
            )
            satisfied[slot_idx] = True


@dataclass
class CandidateScore:
    """Priority of a client for the current pass."""

    client: ClientRule
    index: int
    under_cap: bool
    slot_idx: int
    back_to_back: bool
    per_day_need: float

    @property
    def slot_match(self) -> bool:
        return self.slot_idx >= 0

    def sort_key(self) -> tuple:
        """Strict total order: under cap, slot match, not back-to-back,
        larger need, then request order."""
        return (
            not self.under_cap,
            not self.slot_match,
            self.back_to_back,
            -self.per_day_need,
            self.index,
        )


class AllocationEngine:
    """Greedy, date-ordered session placement.

    Example:
        >>> engine = AllocationEngine()
        >>> context = engine.allocate(request, resolver, plan, open_dates)
        >>> context.blocks
    """

    def __init__(
        self,
        policy: Optional[SessionPolicy] = None,
        max_passes_per_day: int = DEFAULT_MAX_PASSES_PER_DAY,
    ):
        self.policy = policy or DefaultSessionPolicy()
        self.max_passes_per_day = max_passes_per_day

    def allocate(
        self,
        request: ScheduleRequest,
        resolver: AvailabilityResolver,
        plan: CapacityPlan,
        dates: list[date],
    ) -> AllocationContext:
        """Run the date loop and return the populated context.

        Args:
            request: The schedule request.
            resolver: Availability resolver for the request's supervisor.
            plan: Capacity plan for the request's clients.
            dates: Open dates of the range, ascending.
        """
        context = AllocationContext.from_plan(plan)
        for d in dates:
            day_avail = resolver.supervisor_blocks(d)
            if not day_avail:
                logger.debug("%s: no supervisor availability, skipping", d)
                continue
            self._allocate_day(d, day_avail, request, plan, context)
        return context

    def _allocate_day(
        self,
        d: date,
        day_avail: list[TimeBlock],
        request: ScheduleRequest,
        plan: CapacityPlan,
        context: AllocationContext,
    ) -> None:
        """Run bounded placement passes for one date."""
        day = DayKey.from_date(d)
        week = week_start(d)
        placed_today: set[str] = set()

        passes = 0
        while day_avail and passes < self.max_passes_per_day:
            passes += 1
            waiting = {
                c.id for c in request.clients
                if context.remaining[c.id] > 0 and plan[c.id].is_eligible(d)
            }
            if not waiting:
                break

            scored = sorted(
                (
                    self._score(c, idx, d, day, week, plan, context)
                    for idx, c in enumerate(request.clients)
                    if c.id in waiting and c.id not in placed_today
                ),
                key=CandidateScore.sort_key,
            )

            placed_someone = False
            for cand in scored:
                client = cand.client
                if not day_avail or client.id in placed_today:
                    continue
                if context.remaining[client.id] <= 0 or not cand.under_cap:
                    continue

                if client.preferred_day_slots and not cand.slot_match:
                    better_exists = any(
                        other.client.id != client.id
                        and other.under_cap
                        and other.slot_match
                        and context.remaining[other.client.id] > 0
                        for other in scored
                    )
                    if better_exists:
                        continue

                feasible = intersect(client.blocks_for(day), day_avail)
                if not feasible:
                    continue

                choice = self._session_length(
                    feasible, cand, plan[client.id].min_session, request, context
                )
                if choice is None:
                    continue
                blk, length = choice

                placed = ScheduledBlock(
                    date=d,
                    client_id=client.id,
                    start=blk.start,
                    end=blk.start + length,
                )
                context.record(client, placed, week, cand.slot_idx)
                day_avail = subtract(day_avail, placed.block)
                placed_today.add(client.id)
                placed_someone = True
                logger.debug(
                    "%s: placed %s %d-%d (%d min, %d left)",
                    d, client.id, placed.start, placed.end, length,
                    context.remaining[client.id],
                )

            if not placed_someone:
                break

    def _score(
        self,
        client: ClientRule,
        index: int,
        d: date,
        day: DayKey,
        week: date,
        plan: CapacityPlan,
        context: AllocationContext,
    ) -> CandidateScore:
        last = context.last_scheduled.get(client.id)
        eligible_left = max(1, plan[client.id].eligible_left(d))
        return CandidateScore(
            client=client,
            index=index,
            under_cap=context.under_cap(client.id, week),
            slot_idx=context.matched_slot(client, day, week),
            back_to_back=last is not None and d - last == timedelta(days=1),
            per_day_need=context.remaining[client.id] / eligible_left,
        )

    def _session_length(
        self,
        feasible: list[TimeBlock],
        cand: CandidateScore,
        min_session: int,
        request: ScheduleRequest,
        context: AllocationContext,
    ) -> Optional[tuple[TimeBlock, int]]:
        """Pick the block and the session length, or None to skip.

        Prefers the first block long enough for a full session; otherwise
        falls back to the first feasible block.
        """
        rounding = self.policy.rounding(request.supervisor)
        allow_sub = request.supervisor.allow_sub_hour_if_unavoidable
        remaining = context.remaining[cand.client.id]

        required = max(min_session, rounding if allow_sub else min_session)
        blk = next((b for b in feasible if b.duration_minutes >= required), feasible[0])
        blk_len = blk.duration_minutes
        full_session_fits = blk_len >= min_session and remaining >= min_session

        raw_target = min(remaining, blk_len, cand.per_day_need)
        if raw_target < rounding:
            if full_session_fits:
                raw_target = min_session
            elif allow_sub and blk_len >= rounding:
                raw_target = rounding

        length = self.policy.round_down(max(0, raw_target), rounding)
        if length < min_session:
            if full_session_fits:
                length = self.policy.round_down(min_session, rounding)
            elif allow_sub and blk_len >= rounding:
                length = self.policy.round_down(blk_len, rounding)
            else:
                return None

        length = self.policy.round_down(min(length, blk_len, remaining), rounding)
        if length <= 0:
            return None
        return blk, length

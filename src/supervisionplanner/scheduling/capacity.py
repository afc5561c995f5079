"""Capacity planning ahead of allocation.

Works out, per client, how many minutes are needed, the session floor,
the dates on which a placement is geometrically possible and an even
weekly pacing cap.
"""

import bisect
import logging
import math
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from supervisionplanner.domain.models import ClientRule, ScheduleRequest, week_start
from supervisionplanner.domain.policies import DefaultSessionPolicy, SessionPolicy
from supervisionplanner.scheduling.availability import AvailabilityResolver

logger = logging.getLogger(__name__)


@dataclass
class ClientCapacity:
    """Precomputed limits for one client.

    Attributes:
        client_id: ID of the client.
        target_minutes: Minutes to schedule over the range.
        min_session: Minimum session length in minutes.
        eligible_dates: Ascending open dates with a recurring overlap.
        per_week_cap: Maximum sessions per Monday-start week.
    """

    client_id: str
    target_minutes: int
    min_session: int
    eligible_dates: list[date] = field(default_factory=list)
    per_week_cap: int = 1

    def __post_init__(self):
        self._eligible_set = set(self.eligible_dates)

    def is_eligible(self, d: date) -> bool:
        return d in self._eligible_set

    def eligible_left(self, d: date) -> int:
        """Number of eligible dates from d through the end of the range."""
        return len(self.eligible_dates) - bisect.bisect_left(self.eligible_dates, d)

    @property
    def eligible_weeks(self) -> int:
        return len({week_start(d) for d in self.eligible_dates})


@dataclass
class CapacityPlan:
    """Capacity for every client in a request, keyed by client id."""

    clients: dict[str, ClientCapacity] = field(default_factory=dict)

    def __getitem__(self, client_id: str) -> ClientCapacity:
        return self.clients[client_id]

    @property
    def per_week_cap(self) -> dict[str, int]:
        return {cid: cap.per_week_cap for cid, cap in self.clients.items()}


class CapacityPlanner:
    """Derives per-client session floors, eligibility and weekly caps."""

    def __init__(self, policy: Optional[SessionPolicy] = None):
        self.policy = policy or DefaultSessionPolicy()

    def plan(
        self,
        request: ScheduleRequest,
        resolver: AvailabilityResolver,
        dates: list[date],
    ) -> CapacityPlan:
        """Build the capacity plan.

        Args:
            request: The schedule request.
            resolver: Availability resolver for the request's supervisor.
            dates: Open dates of the range, ascending.

        Returns:
            CapacityPlan covering every client.
        """
        plan = CapacityPlan()
        for client in request.clients:
            capacity = ClientCapacity(
                client_id=client.id,
                target_minutes=self.policy.target_minutes(client),
                min_session=self.policy.min_session(client),
                eligible_dates=[d for d in dates if resolver.is_eligible(d, client)],
            )
            capacity.per_week_cap = self.weekly_cap(capacity, client, request)
            plan.clients[client.id] = capacity
            logger.debug(
                "Client %s: target=%d min_session=%d eligible_dates=%d cap=%d/week",
                client.id,
                capacity.target_minutes,
                capacity.min_session,
                len(capacity.eligible_dates),
                capacity.per_week_cap,
            )
        return plan

    def weekly_cap(
        self,
        capacity: ClientCapacity,
        client: ClientRule,
        request: ScheduleRequest,
    ) -> int:
        """Spread the sessions needed evenly over the eligible weeks."""
        sessions_needed = max(0, math.ceil(capacity.target_minutes / capacity.min_session))
        weeks = max(1, capacity.eligible_weeks)
        cap = max(1, math.ceil(sessions_needed / weeks))

        if client.max_sessions_per_week is not None and client.max_sessions_per_week > 0:
            cap = min(cap, client.max_sessions_per_week)

        global_cap = request.supervisor.max_sessions_per_week_per_client
        if global_cap is not None and global_cap > 0:
            cap = min(cap, global_cap)

        return cap

"""Main scheduler interface.

This module provides the high-level Scheduler class that orchestrates
availability resolution, capacity planning, allocation and the residual
top-up, plus the module-level ``generate`` entry point.
"""

import logging
from typing import Optional

from supervisionplanner.domain.models import (
    ScheduledBlock,
    ScheduleRequest,
    ScheduleResult,
)
from supervisionplanner.domain.policies import DefaultSessionPolicy, SessionPolicy
from supervisionplanner.scheduling.allocation import (
    DEFAULT_MAX_PASSES_PER_DAY,
    AllocationEngine,
)
from supervisionplanner.scheduling.availability import AvailabilityResolver
from supervisionplanner.scheduling.capacity import CapacityPlanner
from supervisionplanner.scheduling.topup import ResidualTopUp

logger = logging.getLogger(__name__)


class Scheduler:
    """High-level scheduler for supervision sessions.

    Each call to ``generate_schedule`` builds fresh per-run state, so one
    Scheduler can serve any number of independent requests.

    Example:
        >>> scheduler = Scheduler()
        >>> result = scheduler.generate_schedule(request)
        >>> result.blocks
    """

    def __init__(
        self,
        policy: Optional[SessionPolicy] = None,
        max_passes_per_day: int = DEFAULT_MAX_PASSES_PER_DAY,
    ):
        """Initialize scheduler with a session policy.

        Args:
            policy: Policy for session length and rounding floors.
            max_passes_per_day: Upper bound on placement passes per date.
        """
        self.policy = policy or DefaultSessionPolicy()
        self.planner = CapacityPlanner(policy=self.policy)
        self.engine = AllocationEngine(
            policy=self.policy,
            max_passes_per_day=max_passes_per_day,
        )
        self.top_up = ResidualTopUp(policy=self.policy)

    def generate_schedule(self, request: ScheduleRequest) -> ScheduleResult:
        """Generate sessions for the request.

        Args:
            request: Date range, clients and supervisor calendar.

        Returns:
            ScheduleResult with placed blocks and final remaining minutes.
        """
        resolver = AvailabilityResolver(request.supervisor)
        open_dates = [d for d in request.schedule_dates if resolver.is_open(d)]

        plan = self.planner.plan(request, resolver, open_dates)
        context = self.engine.allocate(request, resolver, plan, open_dates)
        self.top_up.apply(request, resolver, context)

        result = ScheduleResult(
            blocks=context.blocks,
            remaining=dict(context.remaining),
            per_week_cap=dict(context.per_week_cap),
        )
        logger.info(
            "Scheduled %d sessions for %d clients over %d open dates (%d under target)",
            len(result.blocks),
            len(request.clients),
            len(open_dates),
            len(result.unmet_clients),
        )
        return result

    def generate_schedule_with_stats(
        self,
        request: ScheduleRequest,
    ) -> tuple[ScheduleResult, dict]:
        """Generate a schedule and return statistics.

        Args:
            request: Schedule request.

        Returns:
            Tuple of (result, stats_dict).
        """
        result = self.generate_schedule(request)
        stats = self._calculate_stats(result, request)
        return result, stats

    def _calculate_stats(
        self,
        result: ScheduleResult,
        request: ScheduleRequest,
    ) -> dict:
        """Calculate schedule statistics."""
        resolver = AvailabilityResolver(request.supervisor)
        open_dates = [d for d in request.schedule_dates if resolver.is_open(d)]

        per_client = {}
        for client in request.clients:
            target = self.policy.target_minutes(client)
            scheduled = result.get_client_minutes(client.id)
            per_client[client.id] = {
                "target_minutes": target,
                "scheduled_minutes": scheduled,
                "remaining_minutes": result.remaining.get(client.id, 0),
                "sessions": len(result.get_client_blocks(client.id)),
                "per_week_cap": result.per_week_cap.get(client.id, 0),
            }

        return {
            "total_clients": len(request.clients),
            "total_sessions": len(result.blocks),
            "total_scheduled_minutes": sum(b.duration_minutes for b in result.blocks),
            "range_days": request.num_days,
            "open_dates": len(open_dates),
            "dates_with_sessions": len(result.get_blocks_by_date()),
            "unmet_clients": result.unmet_clients,
            "client_tightness": resolver.client_tightness(request.clients, open_dates),
            "per_client": per_client,
        }


def generate(request: ScheduleRequest) -> list[ScheduledBlock]:
    """Generate the ordered list of sessions for a request.

    Pure and deterministic: identical requests give identical output.
    """
    return Scheduler().generate_schedule(request).blocks

"""Residual top-up after the main allocation.

A client can finish allocation a few minutes short of target, too few to
form a new session. This pass absorbs such residuals by extending one of
the client's existing sessions by a single rounding unit.
"""

import logging
from datetime import date
from typing import Optional

from supervisionplanner.domain.intervals import containing, normalize
from supervisionplanner.domain.models import DayKey, ScheduledBlock, ScheduleRequest
from supervisionplanner.domain.policies import DefaultSessionPolicy, SessionPolicy
from supervisionplanner.scheduling.allocation import AllocationContext
from supervisionplanner.scheduling.availability import AvailabilityResolver

logger = logging.getLogger(__name__)


class ResidualTopUp:
    """Extends existing sessions to consume sub-unit leftovers.

    The extension is always one full rounding unit, so a client can end up
    scheduled slightly above target (by up to one unit minus the residual).
    """

    def __init__(self, policy: Optional[SessionPolicy] = None):
        self.policy = policy or DefaultSessionPolicy()

    def apply(
        self,
        request: ScheduleRequest,
        resolver: AvailabilityResolver,
        context: AllocationContext,
    ) -> int:
        """Run the top-up pass, mutating block ends and remaining minutes.

        Args:
            request: The schedule request.
            resolver: Availability resolver for the request's supervisor.
            context: Context produced by the allocation engine.

        Returns:
            Number of sessions extended.
        """
        step = self.policy.rounding(request.supervisor)
        by_date: dict[date, list[ScheduledBlock]] = {}
        for blk in context.blocks:
            by_date.setdefault(blk.date, []).append(blk)

        extended = 0
        for client in request.clients:
            left = context.remaining.get(client.id, 0)
            if left <= 0 or left > step:
                continue

            own_blocks = sorted(
                (b for b in context.blocks if b.client_id == client.id),
                key=lambda b: (b.date, b.start),
            )
            for blk in own_blocks:
                headroom = self.max_end(blk, request, resolver, by_date[blk.date]) - blk.end
                if headroom >= step:
                    blk.end += step
                    context.remaining[client.id] = max(0, left - step)
                    extended += 1
                    logger.debug(
                        "Extended %s on %s to end at %d (%d min residual)",
                        client.id, blk.date, blk.end, left,
                    )
                    break
            else:
                logger.debug("No headroom to absorb %d min for %s", left, client.id)

        return extended

    def max_end(
        self,
        blk: ScheduledBlock,
        request: ScheduleRequest,
        resolver: AvailabilityResolver,
        same_day: list[ScheduledBlock],
    ) -> int:
        """Latest end time a block may be stretched to."""
        sup_interval = containing(resolver.supervisor_blocks(blk.date), blk.end)
        if sup_interval is None:
            return blk.end
        limit = sup_interval.end

        client = request.client_map.get(blk.client_id)
        if client is not None:
            windows = normalize(client.blocks_for(DayKey.from_date(blk.date)))
            window = containing(windows, blk.end)
            if window is None:
                return blk.end
            limit = min(limit, window.end)

        following = [b.start for b in same_day if b is not blk and b.start >= blk.end]
        if following:
            limit = min(limit, min(following))

        return max(limit, blk.end)

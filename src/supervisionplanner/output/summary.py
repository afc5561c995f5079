"""Per-client progress toward target hours.

Mirrors the engine's own bookkeeping from the outside: scheduled minutes
are summed from the output blocks, remaining is target minus scheduled,
never negative.
"""

from dataclasses import dataclass, field
from typing import Iterable, Optional

from supervisionplanner.domain.models import ClientRule, ScheduledBlock
from supervisionplanner.domain.policies import DefaultSessionPolicy, SessionPolicy


@dataclass
class ClientProgress:
    """Progress for a single client.

    Attributes:
        client_id: ID of the client.
        target_minutes: Minutes requested over the range.
        scheduled_minutes: Minutes placed.
        sessions: Number of sessions placed.
    """

    client_id: str
    target_minutes: int
    scheduled_minutes: int = 0
    sessions: int = 0

    @property
    def remaining_minutes(self) -> int:
        return max(0, self.target_minutes - self.scheduled_minutes)

    @property
    def percent_complete(self) -> float:
        if self.target_minutes == 0:
            return 100.0
        return min(100.0, 100.0 * self.scheduled_minutes / self.target_minutes)

    @property
    def is_met(self) -> bool:
        return self.remaining_minutes == 0


@dataclass
class ProgressSummary:
    """Progress for every client in a request, in request order."""

    clients: list[ClientProgress] = field(default_factory=list)

    @classmethod
    def from_blocks(
        cls,
        blocks: Iterable[ScheduledBlock],
        clients: Iterable[ClientRule],
        policy: Optional[SessionPolicy] = None,
    ) -> "ProgressSummary":
        """Compute progress from placed blocks and the original client list."""
        policy = policy or DefaultSessionPolicy()
        progress = {
            c.id: ClientProgress(client_id=c.id, target_minutes=policy.target_minutes(c))
            for c in clients
        }
        for blk in blocks:
            entry = progress.get(blk.client_id)
            if entry is None:
                continue
            entry.scheduled_minutes += blk.duration_minutes
            entry.sessions += 1
        return cls(clients=list(progress.values()))

    def get(self, client_id: str) -> Optional[ClientProgress]:
        return next((c for c in self.clients if c.client_id == client_id), None)

    @property
    def total_target_minutes(self) -> int:
        return sum(c.target_minutes for c in self.clients)

    @property
    def total_scheduled_minutes(self) -> int:
        return sum(c.scheduled_minutes for c in self.clients)

    @property
    def unmet(self) -> list[ClientProgress]:
        return [c for c in self.clients if not c.is_met]

    def to_text(self) -> str:
        """Render a plain-text progress table."""
        lines = [
            f"{'Client':<16}{'Target':>10}{'Scheduled':>12}{'Remaining':>12}{'Sessions':>10}",
            "-" * 60,
        ]
        for c in self.clients:
            lines.append(
                f"{c.client_id[:15]:<16}"
                f"{c.target_minutes / 60:>9.2f}h"
                f"{c.scheduled_minutes / 60:>11.2f}h"
                f"{c.remaining_minutes / 60:>11.2f}h"
                f"{c.sessions:>10}"
            )
        lines.append("-" * 60)
        lines.append(
            f"{'Total':<16}"
            f"{self.total_target_minutes / 60:>9.2f}h"
            f"{self.total_scheduled_minutes / 60:>11.2f}h"
        )
        return "\n".join(lines)

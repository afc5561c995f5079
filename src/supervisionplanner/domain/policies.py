"""Policy definitions for session sizing rules.

Policies hold the floors and defaults that turn raw client and supervisor
settings into the numbers the engine works with. They are kept separate
from the scheduling engine to allow independent testing and easy
modification.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from supervisionplanner.domain.models import ClientRule, SupervisorConfig


class SessionPolicy(ABC):
    """Abstract base class for session length policies."""

    @abstractmethod
    def min_session(self, client: ClientRule) -> int:
        """Minimum session length in minutes for a client."""
        pass

    @abstractmethod
    def rounding(self, supervisor: SupervisorConfig) -> int:
        """Quantization unit in minutes."""
        pass

    @abstractmethod
    def target_minutes(self, client: ClientRule) -> int:
        """Total minutes to schedule for a client over the range."""
        pass

    def round_down(self, minutes: float, rounding: int) -> int:
        """Round minutes down to a multiple of rounding."""
        return int(minutes // rounding) * rounding


@dataclass
class DefaultSessionPolicy(SessionPolicy):
    """Default session policy implementation.

    - Minimum session: client setting, 60 minutes if unset, never below 15.
    - Rounding: supervisor setting, 15 minutes if unset, never below 5.
    """

    min_session_floor: int = 15
    default_min_session: int = 60
    rounding_floor: int = 5
    default_rounding: int = 15

    def min_session(self, client: ClientRule) -> int:
        return max(self.min_session_floor, client.min_session_mins or self.default_min_session)

    def rounding(self, supervisor: SupervisorConfig) -> int:
        return max(self.rounding_floor, supervisor.rounding_minutes or self.default_rounding)

    def target_minutes(self, client: ClientRule) -> int:
        return client.target_minutes

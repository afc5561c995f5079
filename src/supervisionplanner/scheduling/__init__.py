"""Scheduling engine for generating supervision sessions."""

from supervisionplanner.scheduling.allocation import (
    AllocationContext,
    AllocationEngine,
    CandidateScore,
)
from supervisionplanner.scheduling.availability import AvailabilityResolver
from supervisionplanner.scheduling.capacity import (
    CapacityPlan,
    CapacityPlanner,
    ClientCapacity,
)
from supervisionplanner.scheduling.scheduler import Scheduler, generate
from supervisionplanner.scheduling.topup import ResidualTopUp

__all__ = [
    # Entry points
    "Scheduler",
    "generate",
    # Pipeline stages
    "AvailabilityResolver",
    "CapacityPlanner",
    "AllocationEngine",
    "ResidualTopUp",
    # State
    "AllocationContext",
    "CandidateScore",
    "CapacityPlan",
    "ClientCapacity",
]

"""Validation module for verifying schedule correctness.

This module provides a single source of truth for the guarantees a
generated schedule must meet. Every generated schedule should pass
validation before being exported.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Optional

from supervisionplanner.domain.intervals import intersect
from supervisionplanner.domain.models import (
    DayKey,
    ScheduledBlock,
    ScheduleRequest,
    week_start,
)
from supervisionplanner.domain.policies import DefaultSessionPolicy, SessionPolicy
from supervisionplanner.scheduling.availability import AvailabilityResolver


class ValidationErrorType(Enum):
    """Types of validation errors."""

    UNKNOWN_CLIENT = "unknown_client"
    OUTSIDE_DATE_RANGE = "outside_date_range"
    CLOSED_DATE = "closed_date"
    OUTSIDE_AVAILABILITY = "outside_availability"
    NOT_QUANTIZED = "not_quantized"
    BLOCKS_OVERLAP = "blocks_overlap"
    WEEKLY_CAP_EXCEEDED = "weekly_cap_exceeded"


@dataclass
class ValidationError:
    """A single validation error."""

    error_type: ValidationErrorType
    message: str
    client_id: Optional[str] = None
    schedule_date: Optional[date] = None
    details: dict = field(default_factory=dict)

    def __str__(self) -> str:
        parts = [f"[{self.error_type.value}]"]
        if self.client_id:
            parts.append(f"Client {self.client_id}:")
        parts.append(self.message)
        if self.schedule_date is not None:
            parts.append(f"({self.schedule_date.isoformat()})")
        return " ".join(parts)


@dataclass
class ValidationResult:
    """Result of validating a schedule."""

    is_valid: bool
    errors: list[ValidationError] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def add_error(self, error: ValidationError) -> None:
        """Add an error and mark as invalid."""
        self.errors.append(error)
        self.is_valid = False

    def add_warning(self, warning: str) -> None:
        """Add a warning (doesn't affect validity)."""
        self.warnings.append(warning)

    def errors_of_type(self, error_type: ValidationErrorType) -> list[ValidationError]:
        return [e for e in self.errors if e.error_type == error_type]


class ScheduleValidator:
    """Validates placed sessions against a request.

    Example:
        >>> validator = ScheduleValidator()
        >>> result = validator.validate(blocks, request)
        >>> if not result.is_valid:
        ...     for error in result.errors:
        ...         print(error)
    """

    def __init__(self, policy: Optional[SessionPolicy] = None):
        self.policy = policy or DefaultSessionPolicy()

    def validate(
        self,
        blocks: list[ScheduledBlock],
        request: ScheduleRequest,
        per_week_cap: Optional[dict[str, int]] = None,
    ) -> ValidationResult:
        """Validate a complete list of sessions.

        Args:
            blocks: Sessions to validate.
            request: Original request with constraints.
            per_week_cap: Weekly caps to enforce, if known.

        Returns:
            ValidationResult with is_valid flag and any errors.
        """
        result = ValidationResult(is_valid=True)
        resolver = AvailabilityResolver(request.supervisor)
        clients = request.client_map

        for blk in blocks:
            if blk.client_id not in clients:
                result.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.UNKNOWN_CLIENT,
                        message=f"Unknown client ID: {blk.client_id}",
                        client_id=blk.client_id,
                        schedule_date=blk.date,
                    )
                )
                continue
            self._validate_block(blk, request, resolver, result)

        self._validate_overlaps(blocks, result)
        if per_week_cap is not None:
            self._validate_weekly_caps(blocks, per_week_cap, result)
        self._check_targets(blocks, request, result)

        return result

    def _validate_block(
        self,
        blk: ScheduledBlock,
        request: ScheduleRequest,
        resolver: AvailabilityResolver,
        result: ValidationResult,
    ) -> None:
        """Validate a single session."""
        if not (request.start_date <= blk.date <= request.end_date):
            result.add_error(
                ValidationError(
                    error_type=ValidationErrorType.OUTSIDE_DATE_RANGE,
                    message="Session falls outside the requested range",
                    client_id=blk.client_id,
                    schedule_date=blk.date,
                )
            )
            return

        if not resolver.is_open(blk.date):
            result.add_error(
                ValidationError(
                    error_type=ValidationErrorType.CLOSED_DATE,
                    message="Session placed on a closed or inactive date",
                    client_id=blk.client_id,
                    schedule_date=blk.date,
                )
            )
            return

        rounding = self.policy.rounding(request.supervisor)
        if blk.end <= blk.start or blk.duration_minutes % rounding != 0:
            result.add_error(
                ValidationError(
                    error_type=ValidationErrorType.NOT_QUANTIZED,
                    message=(
                        f"Session length {blk.duration_minutes} min is not a "
                        f"positive multiple of {rounding}"
                    ),
                    client_id=blk.client_id,
                    schedule_date=blk.date,
                )
            )
            return

        client = request.client_map[blk.client_id]
        allowed = intersect(
            client.blocks_for(DayKey.from_date(blk.date)),
            resolver.supervisor_blocks(blk.date),
        )
        if not any(a.contains(blk.block) for a in allowed):
            result.add_error(
                ValidationError(
                    error_type=ValidationErrorType.OUTSIDE_AVAILABILITY,
                    message=f"Session {blk.start}-{blk.end} is outside available time",
                    client_id=blk.client_id,
                    schedule_date=blk.date,
                    details={"allowed": allowed},
                )
            )

    def _validate_overlaps(
        self,
        blocks: list[ScheduledBlock],
        result: ValidationResult,
    ) -> None:
        """The supervisor has one calendar shared by every client."""
        by_date: dict[date, list[ScheduledBlock]] = {}
        for blk in blocks:
            by_date.setdefault(blk.date, []).append(blk)

        for d, day_blocks in sorted(by_date.items()):
            day_blocks = sorted(day_blocks, key=lambda b: (b.start, b.end))
            # prev is the block reaching furthest so far
            prev = day_blocks[0]
            for cur in day_blocks[1:]:
                if cur.start < prev.end:
                    result.add_error(
                        ValidationError(
                            error_type=ValidationErrorType.BLOCKS_OVERLAP,
                            message=(
                                f"{prev.client_id} {prev.start}-{prev.end} overlaps "
                                f"{cur.client_id} {cur.start}-{cur.end}"
                            ),
                            client_id=cur.client_id,
                            schedule_date=d,
                        )
                    )
                if cur.end > prev.end:
                    prev = cur

    def _validate_weekly_caps(
        self,
        blocks: list[ScheduledBlock],
        per_week_cap: dict[str, int],
        result: ValidationResult,
    ) -> None:
        counts: dict[tuple[str, date], int] = {}
        for blk in blocks:
            key = (blk.client_id, week_start(blk.date))
            counts[key] = counts.get(key, 0) + 1

        for (client_id, week), count in sorted(counts.items()):
            cap = per_week_cap.get(client_id)
            if cap is not None and count > cap:
                result.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.WEEKLY_CAP_EXCEEDED,
                        message=f"{count} sessions in week of {week} exceeds cap of {cap}",
                        client_id=client_id,
                        schedule_date=week,
                        details={"count": count, "cap": cap},
                    )
                )

    def _check_targets(
        self,
        blocks: list[ScheduledBlock],
        request: ScheduleRequest,
        result: ValidationResult,
    ) -> None:
        """Warn about clients left under target."""
        for client in request.clients:
            target = self.policy.target_minutes(client)
            scheduled = sum(b.duration_minutes for b in blocks if b.client_id == client.id)
            if scheduled < target:
                result.add_warning(
                    f"Client {client.id}: scheduled {scheduled} of {target} min "
                    f"({target - scheduled} min short)"
                )

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Union
from enum import Enum
import math

from pydantic import BaseModel, field_validator

# Fixed sprint capacity in estimated hours
SPRINT_CAPACITY_LIMIT = 260

# Upper bound for client counts and hours; keeps derived points within a 32-bit column
MAX_COUNT = 1_000_000

PRIORITY_WEIGHTS: Dict[str, int] = {"high": 30, "medium": 20, "low": 10}

# Lower bounds, highest first
POINTS_RANGE_THRESHOLDS = (
    (200, "very-high"),
    (150, "high"),
    (100, "medium"),
    (50, "low"),
)


class PointsRange(str, Enum):
    VERY_LOW = "very-low"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    VERY_HIGH = "very-high"


class PriorityProfile(str, Enum):
    NONE = "none"
    HIGH_FOCUSED = "high-focused"
    HIGH_HEAVY = "high-heavy"
    MEDIUM_FOCUSED = "medium-focused"
    BALANCED = "balanced"
    MIXED_PRIORITIES = "mixed-priorities"
    LOW_FOCUSED = "low-focused"


def as_count(value: Any) -> int:
    """Coerce a loosely typed client value to an integer in [0, MAX_COUNT], 0 when unusable."""
    if isinstance(value, bool) or value is None:
        return 0
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return 0
    if not isinstance(value, (int, float)):
        return 0
    if isinstance(value, float) and (math.isnan(value) or math.isinf(value)):
        return 0
    return min(MAX_COUNT, max(0, int(value)))


def round_half_up(value: float, digits: int = 0) -> float:
    """Round halves away from zero for positive values, like the form's arithmetic did."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


class PriorityBreakdown(BaseModel):
    high: int = 0
    medium: int = 0
    low: int = 0

    @field_validator("high", "medium", "low", mode="before")
    @classmethod
    def _coerce_count(cls, value: Any) -> int:
        return as_count(value)

    @property
    def total(self) -> int:
        return self.high + self.medium + self.low

    @classmethod
    def from_value(cls, value: Optional[BreakdownLike]) -> PriorityBreakdown:
        """Build a breakdown from a model, a mapping or nothing at all."""
        if isinstance(value, PriorityBreakdown):
            return value
        if isinstance(value, Mapping):
            return cls(
                high=value.get("high"),
                medium=value.get("medium"),
                low=value.get("low"),
            )
        return cls()


BreakdownLike = Union[PriorityBreakdown, Mapping[str, Any]]


def total_points(breakdown: Optional[BreakdownLike]) -> int:
    """Literal point total: 30 per high, 20 per medium, 10 per low."""
    counts = PriorityBreakdown.from_value(breakdown)
    return (
        counts.high * PRIORITY_WEIGHTS["high"]
        + counts.medium * PRIORITY_WEIGHTS["medium"]
        + counts.low * PRIORITY_WEIGHTS["low"]
    )


def average_priority_score(breakdown: Optional[BreakdownLike]) -> int:
    """Weighted mean of the priority weights, 0 for an empty breakdown."""
    counts = PriorityBreakdown.from_value(breakdown)
    if counts.total == 0:
        return 0
    return int(round_half_up(total_points(counts) / counts.total))


def has_valid_priorities(breakdown: Optional[BreakdownLike]) -> bool:
    counts = PriorityBreakdown.from_value(breakdown)
    return counts.high > 0 or counts.medium > 0 or counts.low > 0


def points_range(points: Any) -> PointsRange:
    value = as_count(points)
    for lower_bound, bucket in POINTS_RANGE_THRESHOLDS:
        if value >= lower_bound:
            return PointsRange(bucket)
    return PointsRange.VERY_LOW


def priority_profile(breakdown: Optional[BreakdownLike]) -> PriorityProfile:
    """
    Classify the shape of a priority breakdown.

    Rules are evaluated in a fixed order and the first match wins, so an
    equal split only reaches ``balanced`` after the high/medium ratio checks.
    """
    counts = PriorityBreakdown.from_value(breakdown)
    total = counts.total
    if total == 0:
        return PriorityProfile.NONE

    high_ratio = counts.high / total
    medium_ratio = counts.medium / total

    if high_ratio >= 0.7:
        return PriorityProfile.HIGH_FOCUSED
    if high_ratio >= 0.4:
        return PriorityProfile.HIGH_HEAVY
    if medium_ratio >= 0.7:
        return PriorityProfile.MEDIUM_FOCUSED
    if counts.high == counts.medium == counts.low:
        return PriorityProfile.BALANCED
    if high_ratio >= 0.3 and medium_ratio >= 0.3:
        return PriorityProfile.MIXED_PRIORITIES

    return PriorityProfile.LOW_FOCUSED


def capacity_used(total_hours: Any, limit: int = SPRINT_CAPACITY_LIMIT) -> int:
    """Percentage of the sprint capacity consumed by the selected hours."""
    return int(round_half_up(100 * as_count(total_hours) / limit))


def remaining_capacity(total_hours: Any, limit: int = SPRINT_CAPACITY_LIMIT) -> int:
    return max(0, limit - as_count(total_hours))


def is_over_capacity(total_hours: Any, limit: int = SPRINT_CAPACITY_LIMIT) -> bool:
    return as_count(total_hours) > limit


def capacity_summary(total_hours: Any, limit: int = SPRINT_CAPACITY_LIMIT) -> Dict[str, Any]:
    return {
        "capacityUsed": capacity_used(total_hours, limit),
        "remainingCapacity": remaining_capacity(total_hours, limit),
        "isOverCapacity": is_over_capacity(total_hours, limit),
    }

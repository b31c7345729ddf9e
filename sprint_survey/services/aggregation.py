from __future__ import annotations

from typing import Any, Dict, Iterable, Mapping

from pydantic import Field

from .normalizer import WireModel
from .scoring import PriorityBreakdown, as_count, round_half_up

UNKNOWN_PROFILE = "unknown"


class AveragePriorities(WireModel):
    high: float = 0.0
    medium: float = 0.0
    low: float = 0.0


class AggregateStats(WireModel):
    total_submissions: int = 0
    average_total_points: int = 0
    priority_distribution: PriorityBreakdown = Field(default_factory=PriorityBreakdown)
    profile_distribution: Dict[str, int] = Field(default_factory=dict)
    average_priorities_per_submission: AveragePriorities = Field(default_factory=AveragePriorities)


def aggregate(items: Iterable[Mapping[str, Any]]) -> AggregateStats:
    """Summarize a set of stored submissions (wire dictionaries)."""

    submissions = list(items)
    if not submissions:
        return AggregateStats()

    total = len(submissions)
    points = 0
    totals = {"high": 0, "medium": 0, "low": 0}
    profiles: Dict[str, int] = {}

    for item in submissions:
        points += as_count(item.get("totalPoints"))

        breakdown = item.get("priorityBreakdown")
        if isinstance(breakdown, Mapping):
            for level in totals:
                totals[level] += as_count(breakdown.get(level))

        profile = item.get("priorityProfile") or UNKNOWN_PROFILE
        profiles[profile] = profiles.get(profile, 0) + 1

    return AggregateStats(
        total_submissions=total,
        average_total_points=int(round_half_up(points / total)),
        priority_distribution=PriorityBreakdown(**totals),
        profile_distribution=profiles,
        average_priorities_per_submission=AveragePriorities(
            **{level: round_half_up(count / total, 1) for level, count in totals.items()}
        ),
    )

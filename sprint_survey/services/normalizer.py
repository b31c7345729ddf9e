from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional
from datetime import datetime, timedelta, timezone
from dataclasses import dataclass
import math

import pydantic
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ..config import Settings
from ..core.exceptions import ValidationError
from ..utils.logging import get_logger
from .scoring import (
    MAX_COUNT,
    SPRINT_CAPACITY_LIMIT,
    PointsRange,
    PriorityBreakdown,
    PriorityProfile,
    as_count,
    average_priority_score,
    capacity_used,
    has_valid_priorities,
    is_over_capacity,
    points_range,
    priority_profile,
    remaining_capacity,
    total_points,
)

logger = get_logger(__name__)

TBD_MARKERS = {"", "tbd", "null", "none"}

PRIORITY_LEVELS = ("high", "medium", "low")

MIRROR_COUNT_FIELDS = frozenset({"high_priority_count", "medium_priority_count", "low_priority_count"})


def format_timestamp(moment: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision and a Z suffix."""
    moment = moment.astimezone(timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class WireModel(BaseModel):
    """Base for models exchanged with clients in camelCase."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


# Client payload
class SelectedItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(default="", validation_alias=AliasChoices("id", "questionId"))
    title: str = Field(default="", validation_alias=AliasChoices("title", "questionTitle"))
    estimated_hours: Optional[int] = Field(
        default=None,
        validation_alias=AliasChoices("estimatedHours", "estimated_hours", "hours"),
        serialization_alias="estimatedHours",
    )
    priority: Optional[str] = None

    @field_validator("id", "title", mode="before")
    @classmethod
    def _as_text(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("estimated_hours", mode="before")
    @classmethod
    def _parse_hours(cls, value: Any) -> Optional[int]:
        # "TBD" and blanks mean the item has no estimate yet
        if value is None or isinstance(value, bool):
            return None
        if isinstance(value, str):
            if value.strip().lower() in TBD_MARKERS:
                return None
            try:
                value = float(value.strip())
            except ValueError:
                return None
        if not isinstance(value, (int, float)):
            return None
        if isinstance(value, float) and (math.isnan(value) or math.isinf(value)):
            return None
        return as_count(value)

    @field_validator("priority", mode="before")
    @classmethod
    def _normalize_priority(cls, value: Any) -> Optional[str]:
        if not value or not isinstance(value, str):
            return None
        return value.strip().lower() or None

    @property
    def has_estimate(self) -> bool:
        return self.estimated_hours is not None


class SubmissionPayload(WireModel):
    """Every field a client may send, with the default used when it is absent."""

    email: Optional[str] = None
    timestamp: Optional[str] = None
    submission_date: Optional[str] = None
    selected_items: List[SelectedItem] = Field(default_factory=list)
    total_hours: int = 0
    items_with_tbd: int = Field(default=0, alias="itemsWithTBD")
    high_priority_count: int = 0
    medium_priority_count: int = 0
    low_priority_count: int = 0
    priority_breakdown: Optional[PriorityBreakdown] = None
    priority_count: Optional[PriorityBreakdown] = None
    total_points: int = 0
    responses: Dict[str, Any] = Field(default_factory=dict)
    sprint_number: Optional[int] = None
    form_version: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("email", mode="before")
    @classmethod
    def _email_text(cls, value: Any) -> Optional[str]:
        if not isinstance(value, str):
            return None
        return value.strip() or None

    @field_validator("timestamp", "submission_date", "form_version", mode="before")
    @classmethod
    def _optional_text(cls, value: Any) -> Optional[str]:
        if value is None or isinstance(value, (dict, list)):
            return None
        return str(value).strip() or None

    @field_validator("selected_items", mode="before")
    @classmethod
    def _item_list(cls, value: Any) -> List[Any]:
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, Mapping)]

    @field_validator(
        "total_hours",
        "items_with_tbd",
        "high_priority_count",
        "medium_priority_count",
        "low_priority_count",
        "total_points",
        mode="before",
    )
    @classmethod
    def _count(cls, value: Any) -> int:
        return as_count(value)

    @field_validator("priority_breakdown", "priority_count", mode="before")
    @classmethod
    def _breakdown(cls, value: Any) -> Optional[PriorityBreakdown]:
        if isinstance(value, PriorityBreakdown):
            return value
        if not isinstance(value, Mapping):
            return None
        return PriorityBreakdown.from_value(value)

    @field_validator("sprint_number", mode="before")
    @classmethod
    def _sprint(cls, value: Any) -> Optional[int]:
        return as_count(value) or None

    @field_validator("responses", "metadata", mode="before")
    @classmethod
    def _mapping(cls, value: Any) -> Dict[str, Any]:
        return dict(value) if isinstance(value, Mapping) else {}

    def resolved_breakdown(self) -> PriorityBreakdown:
        """Breakdown from whichever spelling the client used, else counted from the items."""
        if self.priority_breakdown is not None:
            return self.priority_breakdown
        if self.priority_count is not None:
            return self.priority_count
        if self.model_fields_set & MIRROR_COUNT_FIELDS:
            return PriorityBreakdown(
                high=self.high_priority_count,
                medium=self.medium_priority_count,
                low=self.low_priority_count,
            )
        counts = {level: 0 for level in PRIORITY_LEVELS}
        for item in self.selected_items:
            if item.priority in counts:
                counts[item.priority] += 1
        return PriorityBreakdown(**counts)


# Canonical record
class SubmissionSummary(WireModel):
    total_items: int
    items_with_tbd: int = Field(alias="itemsWithTBD")
    capacity_used: int
    remaining_capacity: int
    is_over_capacity: bool
    priority_distribution: PriorityBreakdown
    average_priority_score: int


class SubmissionMetadata(WireModel):
    user_agent: str
    submission_timestamp: str
    form_version: str
    has_valid_priorities: bool
    processing_version: str


class SubmissionRecord(WireModel):
    email: str
    timestamp: str
    submission_date: str
    selected_items: List[SelectedItem]
    total_hours: int
    items_with_tbd: int = Field(alias="itemsWithTBD")
    capacity_used: int
    high_priority_count: int
    medium_priority_count: int
    low_priority_count: int
    priority_breakdown: PriorityBreakdown
    total_points: int
    responses: Dict[str, Any]
    sprint_number: int
    form_version: str
    summary: SubmissionSummary
    metadata: SubmissionMetadata
    form_version_sprint_number: str
    total_points_range: PointsRange
    priority_profile: PriorityProfile
    created_at: str
    updated_at: str
    ttl: int


@dataclass(frozen=True)
class NormalizerDefaults:
    sprint_number: int = 23
    form_version: str = "v2.0-with-priority"
    user_agent: str = "Unknown"
    capacity_limit: int = SPRINT_CAPACITY_LIMIT
    retention: timedelta = timedelta(days=365)
    processing_version: str = "api-v2.0"

    @classmethod
    def from_settings(cls, settings: Settings) -> NormalizerDefaults:
        return cls(
            sprint_number=settings.default_sprint_number,
            form_version=settings.default_form_version,
            retention=timedelta(days=settings.retention_days),
            processing_version=settings.processing_version,
        )


class SubmissionNormalizer:
    """Turns a raw client payload into the canonical stored record."""

    def __init__(self, defaults: Optional[NormalizerDefaults] = None) -> None:
        self.defaults = defaults or NormalizerDefaults()

    def parse(self, raw: Any) -> SubmissionPayload:
        if not isinstance(raw, Mapping):
            raise ValidationError("Request body must be a JSON object")
        try:
            payload = SubmissionPayload.model_validate(dict(raw))
        except pydantic.ValidationError as e:
            raise ValidationError("Invalid submission payload", details=str(e)) from e
        if not payload.email:
            raise ValidationError("Email is required")
        return payload

    def normalize(self, raw: Any, now: Optional[datetime] = None) -> SubmissionRecord:
        payload = self.parse(raw)
        now = now or datetime.now(timezone.utc)
        received_at = format_timestamp(now)
        defaults = self.defaults

        items = payload.selected_items
        if items:
            total_hours = min(MAX_COUNT, sum(item.estimated_hours for item in items if item.has_estimate))
            items_with_tbd = sum(1 for item in items if not item.has_estimate)
        else:
            total_hours = payload.total_hours
            items_with_tbd = payload.items_with_tbd

        breakdown = payload.resolved_breakdown()
        valid_priorities = has_valid_priorities(breakdown)
        points = total_points(breakdown) if valid_priorities else payload.total_points

        sprint_number = payload.sprint_number or defaults.sprint_number
        form_version = payload.form_version or defaults.form_version
        used = capacity_used(total_hours, defaults.capacity_limit)

        summary = SubmissionSummary(
            total_items=len(items),
            items_with_tbd=items_with_tbd,
            capacity_used=used,
            remaining_capacity=remaining_capacity(total_hours, defaults.capacity_limit),
            is_over_capacity=is_over_capacity(total_hours, defaults.capacity_limit),
            priority_distribution=breakdown,
            average_priority_score=average_priority_score(breakdown),
        )
        user_agent = payload.metadata.get("userAgent")
        metadata = SubmissionMetadata(
            user_agent=str(user_agent) if user_agent else defaults.user_agent,
            submission_timestamp=received_at,
            form_version=form_version,
            has_valid_priorities=valid_priorities,
            processing_version=defaults.processing_version,
        )

        record = SubmissionRecord(
            email=payload.email,
            timestamp=payload.timestamp or received_at,
            submission_date=payload.submission_date or received_at,
            selected_items=items,
            total_hours=total_hours,
            items_with_tbd=items_with_tbd,
            capacity_used=used,
            high_priority_count=breakdown.high,
            medium_priority_count=breakdown.medium,
            low_priority_count=breakdown.low,
            priority_breakdown=breakdown,
            total_points=points,
            responses=payload.responses,
            sprint_number=sprint_number,
            form_version=form_version,
            summary=summary,
            metadata=metadata,
            form_version_sprint_number=f"{form_version}-sprint-{sprint_number}",
            total_points_range=points_range(points),
            priority_profile=priority_profile(breakdown),
            created_at=received_at,
            updated_at=received_at,
            ttl=int((now + defaults.retention).timestamp()),
        )

        logger.debug(
            "Normalized submission for %s: %d items, %d hours, %d points (%s)",
            record.email, summary.total_items, total_hours, points, record.priority_profile.value
        )
        return record

from sqlalchemy import Column, String, Integer, JSON, Index
from .base import BaseModel


class Submission(BaseModel):
    __tablename__ = "sprint_prioritization_submissions"

    # Composite primary key
    email = Column(String, primary_key=True)
    timestamp = Column(String, primary_key=True)  # ISO-8601, client or server assigned
    submission_date = Column(String, nullable=True)

    # Selection data
    selected_items = Column(JSON, default=list)
    total_hours = Column(Integer, default=0)
    items_with_tbd = Column(Integer, default=0)
    capacity_used = Column(Integer, default=0)  # percent of sprint capacity

    # Priority data
    high_priority_count = Column(Integer, default=0)
    medium_priority_count = Column(Integer, default=0)
    low_priority_count = Column(Integer, default=0)
    priority_breakdown = Column(JSON, default=dict)
    total_points = Column(Integer, default=0, index=True)

    # Free-form answers
    responses = Column(JSON, default=dict)
    sprint_number = Column(Integer, nullable=False, index=True)
    form_version = Column(String, nullable=False)

    # Derived data
    summary = Column(JSON, default=dict)
    submission_metadata = Column("metadata", JSON, default=dict)

    # Query support
    form_version_sprint_number = Column(String, nullable=False, index=True)
    total_points_range = Column(String, nullable=False)  # very-low, low, medium, high, very-high
    priority_profile = Column(String, nullable=False, index=True)

    # Retention, epoch seconds
    ttl = Column(Integer, nullable=False, index=True)

    __table_args__ = (
        Index("ix_submissions_version_sprint_points", "form_version_sprint_number", "total_points"),
    )

    __wire_fields__ = (
        ("email", "email"),
        ("timestamp", "timestamp"),
        ("submissionDate", "submission_date"),
        ("selectedItems", "selected_items"),
        ("totalHours", "total_hours"),
        ("itemsWithTBD", "items_with_tbd"),
        ("capacityUsed", "capacity_used"),
        ("highPriorityCount", "high_priority_count"),
        ("mediumPriorityCount", "medium_priority_count"),
        ("lowPriorityCount", "low_priority_count"),
        ("priorityBreakdown", "priority_breakdown"),
        ("totalPoints", "total_points"),
        ("responses", "responses"),
        ("sprintNumber", "sprint_number"),
        ("formVersion", "form_version"),
        ("summary", "summary"),
        ("metadata", "submission_metadata"),
        ("formVersionSprintNumber", "form_version_sprint_number"),
        ("totalPointsRange", "total_points_range"),
        ("priorityProfile", "priority_profile"),
        ("createdAt", "created_at"),
        ("updatedAt", "updated_at"),
        ("ttl", "ttl"),
    )

    # Fields rewritten when the same (email, timestamp) is submitted again
    MUTABLE_FIELDS = (
        "selectedItems",
        "totalHours",
        "itemsWithTBD",
        "capacityUsed",
        "highPriorityCount",
        "mediumPriorityCount",
        "lowPriorityCount",
        "priorityBreakdown",
        "totalPoints",
        "responses",
        "summary",
        "metadata",
        "priorityProfile",
        "totalPointsRange",
        "updatedAt",
    )

    @property
    def key(self):
        return {"email": self.email, "timestamp": self.timestamp}

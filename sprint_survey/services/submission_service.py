from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence
from datetime import datetime

from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from ..integrations.base import ExternalSink, SinkResult
from ..utils.logging import get_logger
from .aggregation import aggregate
from .normalizer import SubmissionNormalizer
from .repository import SubmissionQuery, SubmissionRepository

logger = get_logger(__name__)

CREATED_MESSAGE = "Sprint prioritization submitted successfully with priority data"
UPDATED_MESSAGE = "Sprint prioritization updated successfully with new priority data"


class SubmissionOutcome(BaseModel):
    record: Dict[str, Any]
    updated: bool = False
    sink_results: List[SinkResult] = Field(default_factory=list)

    def to_response(self) -> Dict[str, Any]:
        """Body returned to the form after a successful submit."""
        record = self.record
        summary = record.get("summary") or {}
        body: Dict[str, Any] = {
            "success": True,
            "message": UPDATED_MESSAGE if self.updated else CREATED_MESSAGE,
        }
        if self.updated:
            body["updated"] = True
        body["data"] = {
            "email": record["email"],
            "timestamp": record["timestamp"],
            "totalItems": summary.get("totalItems", 0),
            "totalHours": record.get("totalHours", 0),
            "totalPoints": record.get("totalPoints", 0),
            "priorityBreakdown": record.get("priorityBreakdown"),
            "priorityProfile": record.get("priorityProfile"),
            "formVersion": record.get("formVersion"),
        }
        return body


class SubmissionService:
    """Normalizes, stores and reports on sprint prioritization submissions."""

    def __init__(
        self,
        db: AsyncSession,
        normalizer: Optional[SubmissionNormalizer] = None,
        sinks: Optional[Sequence[ExternalSink]] = None
    ) -> None:
        self.repository = SubmissionRepository(db)
        self.normalizer = normalizer or SubmissionNormalizer()
        self.sinks = list(sinks or [])

    async def submit(self, payload: Any, now: Optional[datetime] = None) -> SubmissionOutcome:
        """Store a submission, updating in place when its key already exists."""

        record = self.normalizer.normalize(payload, now=now)
        logger.info(
            f"Processing submission for {record.email}: "
            f"{record.summary.total_items} items, {record.total_points} points"
        )

        stored, updated = await self.repository.upsert(record)
        stored_record = stored.to_dict()

        sink_results = await self._notify_sinks(stored_record)
        return SubmissionOutcome(record=stored_record, updated=updated, sink_results=sink_results)

    async def query(self, filters: SubmissionQuery) -> Dict[str, Any]:
        """Filtered submissions plus aggregate statistics over the returned page."""

        page = await self.repository.query(filters)
        logger.info(f"Query returned {page.count} items")

        body: Dict[str, Any] = {
            "success": True,
            "data": page.items,
            "count": page.count,
            "stats": aggregate(page.items).to_wire(),
        }
        if page.last_evaluated_key is not None:
            body["lastEvaluatedKey"] = page.last_evaluated_key.model_dump()
        return body

    async def _notify_sinks(self, record: Dict[str, Any]) -> List[SinkResult]:
        results = []
        for sink in self.sinks:
            result = await sink.send(record)
            if not result.success:
                logger.warning(f"Sink {sink.name} did not accept {record['email']}: {result.error}")
            results.append(result)
        return results

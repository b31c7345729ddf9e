from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Tuple
from datetime import datetime, timezone

from pydantic import BaseModel, Field
from sqlalchemy import and_, delete, func, insert, or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import BackendUnavailable, ConflictOnCreate, NotFoundError
from ..models.submission import Submission
from ..utils.logging import get_logger
from .normalizer import SubmissionRecord

logger = get_logger(__name__)

DEFAULT_QUERY_LIMIT = 50


class SubmissionKey(BaseModel):
    email: str
    timestamp: str


class SubmissionQuery(BaseModel):
    """Filters for a submission query, combined with AND."""

    email: Optional[str] = None
    sprint_number: Optional[int] = None
    min_points: Optional[int] = None
    priority_profile: Optional[str] = None
    limit: int = Field(default=DEFAULT_QUERY_LIMIT, ge=1)
    exclusive_start_key: Optional[SubmissionKey] = None


class QueryPage(BaseModel):
    items: List[Dict[str, Any]] = Field(default_factory=list)
    count: int = 0
    last_evaluated_key: Optional[SubmissionKey] = None


class SubmissionRepository:
    """
    Store access for submissions keyed by (email, timestamp).

    Creation relies on the primary-key constraint as the atomic
    insert-if-absent; there is no read-before-write and no retrying.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def create(self, record: SubmissionRecord) -> Submission:
        """Insert a new record, raising ConflictOnCreate if the key is taken."""

        values = Submission.column_values(record.to_wire())
        try:
            await self.db.execute(insert(Submission.__table__).values(values))
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise ConflictOnCreate(record.email, record.timestamp) from e
        except (SQLAlchemyError, OverflowError) as e:
            await self.db.rollback()
            logger.error(f"Failed to store submission for {record.email}: {str(e)}")
            raise BackendUnavailable("Failed to store submission", details=str(e)) from e

        return await self._require(record.email, record.timestamp)

    async def update(
        self,
        email: str,
        timestamp: str,
        patch: Mapping[str, Any]
    ) -> Submission:
        """Overwrite the mutable fields of an existing record and return it."""

        changes = {
            wire_name: value
            for wire_name, value in patch.items()
            if wire_name in Submission.MUTABLE_FIELDS
        }
        values = Submission.column_values(changes)
        if not values:
            return await self._require(email, timestamp)

        stmt = (
            update(Submission.__table__)
            .where(Submission.email == email, Submission.timestamp == timestamp)
            .values(values)
        )
        try:
            result = await self.db.execute(stmt)
            if result.rowcount == 0:
                await self.db.rollback()
                raise NotFoundError(email, timestamp)
            await self.db.commit()
        except (SQLAlchemyError, OverflowError) as e:
            await self.db.rollback()
            logger.error(f"Failed to update submission for {email}: {str(e)}")
            raise BackendUnavailable("Failed to update submission", details=str(e)) from e

        return await self._require(email, timestamp)

    async def upsert(self, record: SubmissionRecord) -> Tuple[Submission, bool]:
        """Create the record, or update it in place when the key already exists."""

        try:
            return await self.create(record), False
        except ConflictOnCreate:
            logger.info(
                f"Duplicate submission detected for {record.email} at {record.timestamp}, "
                "updating existing record"
            )

        stored = await self.update(record.email, record.timestamp, record.to_wire())
        return stored, True

    async def get(self, email: str, timestamp: str) -> Optional[Submission]:
        stmt = (
            select(Submission)
            .where(Submission.email == email, Submission.timestamp == timestamp)
            .execution_options(populate_existing=True)
        )
        try:
            result = await self.db.execute(stmt)
        except SQLAlchemyError as e:
            raise BackendUnavailable("Failed to read submission", details=str(e)) from e
        return result.scalar_one_or_none()

    async def query(self, filters: SubmissionQuery) -> QueryPage:
        """Filtered read ordered by key, one page at a time."""

        stmt = select(Submission)

        if filters.email:
            stmt = stmt.where(Submission.email == filters.email)

        if filters.sprint_number is not None:
            stmt = stmt.where(Submission.sprint_number == filters.sprint_number)

        if filters.min_points is not None:
            stmt = stmt.where(Submission.total_points >= filters.min_points)

        if filters.priority_profile:
            stmt = stmt.where(Submission.priority_profile == filters.priority_profile)

        start = filters.exclusive_start_key
        if start is not None:
            stmt = stmt.where(
                or_(
                    Submission.email > start.email,
                    and_(Submission.email == start.email, Submission.timestamp > start.timestamp),
                )
            )

        # One extra row tells us whether another page exists
        stmt = stmt.order_by(Submission.email, Submission.timestamp).limit(filters.limit + 1)
        stmt = stmt.execution_options(populate_existing=True)

        try:
            result = await self.db.execute(stmt)
        except SQLAlchemyError as e:
            logger.error(f"Submission query failed: {str(e)}")
            raise BackendUnavailable("Failed to query submissions", details=str(e)) from e

        rows = list(result.scalars().all())
        has_more = len(rows) > filters.limit
        rows = rows[:filters.limit]

        last_key = None
        if has_more and rows:
            last_key = SubmissionKey(email=rows[-1].email, timestamp=rows[-1].timestamp)

        return QueryPage(
            items=[row.to_dict() for row in rows],
            count=len(rows),
            last_evaluated_key=last_key,
        )

    async def count(self) -> int:
        result = await self.db.execute(select(func.count()).select_from(Submission))
        return result.scalar_one()

    async def purge_expired(self, now: Optional[datetime] = None) -> int:
        """Delete records whose retention ttl has passed."""

        now = now or datetime.now(timezone.utc)
        cutoff = int(now.timestamp())
        try:
            result = await self.db.execute(delete(Submission.__table__).where(Submission.ttl <= cutoff))
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise BackendUnavailable("Failed to purge expired submissions", details=str(e)) from e

        logger.info(f"Purged {result.rowcount} expired submissions")
        return result.rowcount

    async def _require(self, email: str, timestamp: str) -> Submission:
        stored = await self.get(email, timestamp)
        if stored is None:
            raise NotFoundError(email, timestamp)
        return stored

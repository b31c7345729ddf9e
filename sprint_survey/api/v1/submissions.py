from fastapi import APIRouter, Body, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Any, Dict, List, Optional

from ...config import settings
from ...database import get_db
from ...integrations import ExternalSink
from ...services.normalizer import NormalizerDefaults, SubmissionNormalizer
from ...services.repository import SubmissionKey, SubmissionQuery
from ...services.submission_service import SubmissionService

router = APIRouter()

PREFLIGHT_RESPONSE = {"message": "CORS preflight successful"}


def get_sinks(request: Request) -> List[ExternalSink]:
    """Sinks created at startup, shared by all requests"""
    return getattr(request.app.state, "sinks", [])


def get_submission_service(
    db: AsyncSession = Depends(get_db),
    sinks: List[ExternalSink] = Depends(get_sinks)
) -> SubmissionService:
    normalizer = SubmissionNormalizer(NormalizerDefaults.from_settings(settings))
    return SubmissionService(db, normalizer=normalizer, sinks=sinks)


@router.post("/submit")
async def submit_prioritization(
    payload: Any = Body(...),
    service: SubmissionService = Depends(get_submission_service)
) -> Dict[str, Any]:
    """Store a sprint prioritization, updating it if the same key was already submitted"""

    outcome = await service.submit(payload)
    return outcome.to_response()


@router.get("/query")
async def query_prioritizations(
    email: Optional[str] = None,
    sprint_number: Optional[int] = Query(default=None, alias="sprintNumber"),
    min_points: Optional[int] = Query(default=None, alias="minPoints"),
    priority_profile: Optional[str] = Query(default=None, alias="priorityProfile"),
    limit: int = Query(default=settings.default_query_limit, ge=1, le=settings.max_query_limit),
    start_email: Optional[str] = Query(default=None, alias="startEmail"),
    start_timestamp: Optional[str] = Query(default=None, alias="startTimestamp"),
    service: SubmissionService = Depends(get_submission_service)
) -> Dict[str, Any]:
    """Query stored prioritizations with aggregate priority statistics"""

    start_key = None
    if start_email and start_timestamp:
        start_key = SubmissionKey(email=start_email, timestamp=start_timestamp)

    filters = SubmissionQuery(
        email=email,
        sprint_number=sprint_number,
        min_points=min_points,
        priority_profile=priority_profile,
        limit=limit,
        exclusive_start_key=start_key
    )
    return await service.query(filters)


@router.options("/submit")
async def submit_preflight() -> Dict[str, str]:
    return PREFLIGHT_RESPONSE


@router.options("/query")
async def query_preflight() -> Dict[str, str]:
    return PREFLIGHT_RESPONSE

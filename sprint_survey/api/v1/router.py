from fastapi import APIRouter
from .submissions import router as submissions_router

api_router = APIRouter()

# Include all sub-routers
api_router.include_router(submissions_router, tags=["submissions"])

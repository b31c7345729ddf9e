from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
from datetime import datetime, timezone
import uvicorn
import logging

from .config import settings
from .core.exceptions import BackendUnavailable, SurveyError, ValidationError
from .database import init_models
from .api.v1.router import api_router
from .integrations import build_sinks
from .utils.logging import setup_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    # Startup
    setup_logging(settings.log_level, settings.log_file)
    logger = logging.getLogger(__name__)
    logger.info("Starting Sprint Prioritization Survey application")

    # Create database tables
    await init_models()

    app.state.sinks = build_sinks(settings)
    logger.info(f"External sinks enabled: {[sink.name for sink in app.state.sinks] or 'none'}")

    yield

    # Shutdown
    for sink in app.state.sinks:
        await sink.close()
    logger.info("Shutting down Sprint Prioritization Survey application")


# Create FastAPI application

app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Collects sprint prioritization surveys and reports on priority trends",
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=False,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)

# Include API routes
app.include_router(api_router, prefix="/api/v1")


# Error responses
@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=400, content={"error": exc.message})


@app.exception_handler(BackendUnavailable)
async def backend_unavailable_handler(request: Request, exc: BackendUnavailable):
    logging.getLogger(__name__).error(f"Backend unavailable: {exc.message} ({exc.details})")
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "details": exc.details or exc.message}
    )


@app.exception_handler(SurveyError)
async def survey_error_handler(request: Request, exc: SurveyError):
    logging.getLogger(__name__).error(f"Error processing request: {exc.message}")
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "details": exc.message}
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request", "details": jsonable_errors(exc)}
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    error = "Method not allowed" if exc.status_code == 405 else exc.detail
    return JSONResponse(status_code=exc.status_code, content={"error": error}, headers=exc.headers)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logging.getLogger(__name__).exception("Error processing request")
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "details": str(exc)}
    )


def jsonable_errors(exc: RequestValidationError):
    return [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg", "")}
        for error in exc.errors()
    ]


# Health check endpoint
@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "version": settings.app_version,
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


if __name__ == "__main__":
    uvicorn.run(
        "sprint_survey.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug
    )

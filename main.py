import traceback

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from app.core.config import settings
from app.core.exceptions import StorageUnavailable
from app.core.logging_config import setup_logging, get_logger, RequestLogger
from app.core.middleware import RequestLoggingMiddleware
from app.core.rate_limit import limiter
from app.db.database import Base, engine
from app.api.routes import study_progress, chat_limit

# Initialize logging first (auto-determines level based on environment)
setup_logging(
    app_name="lecturelab",
    log_level=settings.log_level,  # Empty = auto (DEBUG in dev, WARNING in prod)
    environment=settings.environment,
    enable_console=True,
    enable_file=settings.log_to_file,
)

logger = get_logger(__name__)

logger.info("Starting LectureLab application...")

# Create database tables
from app.models import StudyProgress, StudyActivity, ChatLimit  # noqa: F401, E402
Base.metadata.create_all(bind=engine)
logger.info("Database tables created/verified")


app = FastAPI(
    title=settings.app_name,
    description="Study progress tracking and AI chat quota service",
    version="0.1.0",
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(StorageUnavailable)
async def storage_unavailable_handler(request: Request, exc: StorageUnavailable):
    """The store failed mid-operation; nothing was updated, the client may retry."""
    logger.error(f"Storage unavailable on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=503,
        content={"success": False, "message": "Storage temporarily unavailable"},
    )


# Global exception handler: logs full tracebacks for 500 errors
@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(
        f"Unhandled exception on {request.method} {request.url.path}: {exc}\n"
        f"{traceback.format_exc()}"
    )
    return JSONResponse(status_code=500, content={"success": False, "message": "Internal server error"})


app.add_middleware(
    RequestLoggingMiddleware,
    request_logger=RequestLogger(get_logger("lecturelab.requests"), slow_request_ms=settings.slow_request_ms),
)

# CORS middleware: restrict origins (never use wildcard with credentials)
if settings.allowed_origins:
    cors_origins = [o.strip() for o in settings.allowed_origins.split(",") if o.strip()]
elif settings.environment == "production":
    cors_origins = [settings.frontend_url]
else:
    cors_origins = ["http://localhost:3000", "http://localhost:8000", settings.frontend_url]

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)

app.include_router(study_progress.router, prefix="/api")
app.include_router(chat_limit.router, prefix="/api")

logger.info("API routes registered at /api")


@app.get("/health")
def health_check():
    logger.debug("Health check requested")
    return {"status": "healthy"}


@app.get("/")
def root():
    return {"message": "LectureLab API", "app": settings.app_name, "docs": "/docs"}

from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging
import time
from typing import Callable
from redis.asyncio import Redis
from sqlalchemy import text

from campus.core.config.logging_config import setup_logging
from campus.core.config.settings import get_settings
from campus.core.exceptions import CampusError, status_code_for
from campus.db.base import Base
from campus.db.session import engine, SessionLocal
from campus.db.init_db import init_db
from campus.routers import ai, assignments, auth, courses, enrollments, uploads, users

# Setup logging
logger = setup_logging()
error_logger = logging.getLogger("campus.errors")

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.redis = None
    # Initialize Redis if URL is configured
    if settings.REDIS_URL:
        try:
            redis = Redis.from_url(settings.REDIS_URL, encoding="utf-8", decode_responses=True)
            await redis.ping()
            app.state.redis = redis
            logger.info("Redis connection established")
        except Exception as e:
            logger.error(f"Failed to connect to Redis, rate limiting disabled: {str(e)}")

    # Initialize database
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        init_db(db)
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {str(e)}")
    finally:
        db.close()

    yield

    if app.state.redis:
        await app.state.redis.aclose()
        logger.info("Redis connection closed")


# Initialize FastAPI app
app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
    docs_url=f"{settings.API_V1_PREFIX}/docs",
    redoc_url=f"{settings.API_V1_PREFIX}/redoc",
    lifespan=lifespan,
)
app.state.redis = None

# Middleware for request logging
@app.middleware("http")
async def log_requests(request: Request, call_next: Callable):
    start_time = time.time()
    response = await call_next(request)
    duration = time.time() - start_time
    logger.info(
        f"Method: {request.method} Path: {request.url.path} "
        f"Status: {response.status_code} Duration: {duration:.2f}s"
    )
    return response

# Rate limiting middleware
@app.middleware("http")
async def rate_limit(request: Request, call_next: Callable):
    redis = request.app.state.redis
    if redis and request.client:
        key = f"rate_limit:{request.client.host}"
        try:
            requests = await redis.incr(key)
            if requests == 1:
                await redis.expire(key, 60)  # Reset after 60 seconds
        except Exception as e:
            logger.warning(f"Rate limit check skipped: {str(e)}")
            requests = 0

        if requests > settings.RATE_LIMIT_PER_MINUTE:
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={"detail": "Too many requests"}
            )

    return await call_next(request)

# CORS Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers with prefix
api_prefix = settings.API_V1_PREFIX
app.include_router(auth.router, prefix=api_prefix)
app.include_router(users.router, prefix=api_prefix)
app.include_router(courses.router, prefix=api_prefix)
app.include_router(enrollments.router, prefix=api_prefix)
app.include_router(assignments.router, prefix=api_prefix)
app.include_router(uploads.router, prefix=api_prefix)
app.include_router(ai.router, prefix=api_prefix)

# Exception handlers
@app.exception_handler(CampusError)
async def campus_exception_handler(request: Request, exc: CampusError):
    status_code = status_code_for(exc)
    logger.info(f"{exc.kind} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "error": exc.kind},
    )

@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    logger.warning(f"HTTP Exception: {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=exc.headers,
    )

@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    error_logger.error(f"Unhandled Exception: {str(exc)}", exc_info=True)
    detail = f"Internal server error: {str(exc)}" if settings.DEBUG else "Internal server error"
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": detail},
    )

# Health check endpoint with additional status info
@app.get("/health")
async def health_check(request: Request):
    redis = request.app.state.redis
    status_info = {
        "status": "healthy",
        "timestamp": time.time(),
        "database": "connected",
        "redis": "connected" if redis else "not configured"
    }

    # Check database connection
    try:
        db = SessionLocal()
        try:
            db.execute(text("SELECT 1"))
        finally:
            db.close()
    except Exception as e:
        status_info["database"] = "disconnected"
        status_info["status"] = "unhealthy"
        logger.error(f"Database health check failed: {str(e)}")

    # Check Redis connection if configured
    if redis:
        try:
            await redis.ping()
        except Exception as e:
            status_info["redis"] = "disconnected"
            status_info["status"] = "unhealthy"
            logger.error(f"Redis health check failed: {str(e)}")

    return status_info

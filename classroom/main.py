from fastapi import FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from fastapi.responses import JSONResponse
import logging
import os
import time
from typing import Callable
from redis.asyncio import Redis
from sqlalchemy import text

from classroom import models  # noqa: F401  registers every table on Base.metadata
from classroom.core.config.settings import get_settings
from classroom.core.config.logging_config import setup_logging
from classroom.core.exceptions import ClassroomError
from classroom.db.base import Base
from classroom.db.session import engine, SessionLocal
from classroom.db.init_db import init_db
from classroom.routers import admin, assignments, auth, classes, dashboard, files, submissions, users

# Setup logging
logger = setup_logging()
error_logger = logging.getLogger("classroom.errors")

settings = get_settings()

# Object storage is served read-only from here
os.makedirs(settings.STORAGE_ROOT, exist_ok=True)

# Initialize FastAPI app
app = FastAPI(
    title=settings.PROJECT_NAME,
    debug=settings.DEBUG,
    openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
    docs_url=f"{settings.API_V1_PREFIX}/docs",
    redoc_url=f"{settings.API_V1_PREFIX}/redoc",
)

# Redis connection instance
redis = None

@app.on_event("startup")
async def startup_event():
    global redis
    # Initialize Redis if URL is configured
    if settings.REDIS_URL:
        try:
            redis = Redis.from_url(
                settings.REDIS_URL,
                encoding="utf-8",
                decode_responses=True
            )
            await redis.ping()
            logger.info("Redis connection established")
        except Exception as e:
            redis = None
            logger.error(f"Failed to connect to Redis: {str(e)}")

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

@app.on_event("shutdown")
async def shutdown_event():
    global redis
    if redis:
        await redis.close()
        logger.info("Redis connection closed")

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
    if redis:
        client_ip = request.client.host if request.client else "unknown"
        key = f"rate_limit:{client_ip}"
        requests = await redis.incr(key)

        if requests == 1:
            await redis.expire(key, 60)  # Fixed one-minute window

        if requests > settings.RATE_LIMIT_PER_MINUTE:
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={"detail": "Too many requests", "code": "rate_limited"}
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

# Stored files
app.mount(settings.STORAGE_PUBLIC_URL, StaticFiles(directory=settings.STORAGE_ROOT), name="storage")

# Include routers with prefix
api_prefix = settings.API_V1_PREFIX
app.include_router(auth.router, prefix=api_prefix)
app.include_router(users.router, prefix=api_prefix)
app.include_router(classes.router, prefix=api_prefix)
app.include_router(assignments.router, prefix=api_prefix)
app.include_router(submissions.router, prefix=api_prefix)
app.include_router(files.router, prefix=api_prefix)
app.include_router(dashboard.router, prefix=api_prefix)
app.include_router(admin.router, prefix=api_prefix)

# Exception handlers
@app.exception_handler(ClassroomError)
async def classroom_exception_handler(request: Request, exc: ClassroomError):
    if exc.status_code >= 500:
        error_logger.error(f"{exc.code} on {request.method} {request.url.path}: {exc.detail}")
    else:
        logger.info(f"{exc.code} on {request.method} {request.url.path}: {exc.detail}")
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == status.HTTP_401_UNAUTHORIZED else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "code": exc.code},
        headers=headers,
    )

@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    logger.error(f"HTTP Exception: {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=getattr(exc, "headers", None),
    )

@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    error_logger.error(f"Unhandled Exception: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )

# Health check endpoint with additional status info
@app.get("/health")
async def health_check():
    status_info = {
        "status": "healthy",
        "timestamp": time.time(),
        "database": "connected",
        "redis": "connected" if redis else "not configured"
    }

    # Check database connection
    try:
        db = SessionLocal()
        db.execute(text("SELECT 1"))
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

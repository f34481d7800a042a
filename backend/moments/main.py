import time

from fastapi import FastAPI, Request, status, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from starlette.exceptions import HTTPException as StarletteHTTPException
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from moments.config import get_settings
from moments.database import init_db, ping_db
from moments.utils.logger import get_logger
from moments.rate_limit import limiter

logger = get_logger("main")
settings = get_settings()

# Routers
from moments.routers import notifications as notifications_router
from moments.routers import settings as settings_router

app = FastAPI(
    title="Moments Reminder API",
    debug=settings.APP_DEBUG,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(notifications_router.router)
app.include_router(settings_router.router)


# Error handlers
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    logger.warning(f"HTTP {exc.status_code}: {exc.detail} - Path: {request.url.path}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "status_code": exc.status_code},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Validation error: {exc.errors()} - Path: {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": jsonable_encoder(exc.errors()), "status_code": 422}
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error", "status_code": 500}
    )


# Manual trigger pre-flight is 204; must sit outside CORSMiddleware (which answers 200)
@app.middleware("http")
async def manual_trigger_preflight(request: Request, call_next):
    if request.method == "OPTIONS" and request.url.path == notifications_router.MANUAL_TRIGGER_PATH:
        return notifications_router.preflight_response()
    return await call_next(request)


# Middleware Logging
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    logger.info(
        f"{request.method} {request.url.path} - "
        f"Status: {response.status_code} - "
        f"Time: {process_time:.3f}s"
    )
    return response


@app.get("/healthz")
async def healthz():
    return {"status": "ok"}


@app.get("/readyz")
async def readyz():
    if not await ping_db():
        raise HTTPException(status_code=503, detail="Database not ready")
    return {"status": "ok", "database": "up"}


# Global scheduler instance
scheduler = None


@app.on_event("startup")
async def on_startup():
    from apscheduler.schedulers.asyncio import AsyncIOScheduler
    from moments.services.reminder_service import check_and_send_reminders
    from moments.services.retention_service import cleanup_old_notifications
    from moments.utils.firebase import init_firebase

    global scheduler

    logger.info("Starting application...")
    await init_db()
    logger.info("Database initialized")
    if init_firebase():
        logger.info("Firebase initialized")

    if not settings.ENABLE_SCHEDULER:
        logger.info("Scheduler disabled via settings (ENABLE_SCHEDULER=False)")
        return

    scheduler = AsyncIOScheduler(timezone=settings.REMINDER_TIMEZONE)
    # Reminder scan at the top of every hour
    scheduler.add_job(
        check_and_send_reminders,
        trigger="cron",
        hour="*",
        minute=0,
        id="event_reminders",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )
    # Sent-notification retention sweep, once a day
    scheduler.add_job(
        cleanup_old_notifications,
        trigger="cron",
        hour=settings.RETENTION_HOUR,
        minute=0,
        id="cleanup_old_notifications",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )
    scheduler.start()
    logger.info(f"Reminder scheduler started ({settings.REMINDER_TIMEZONE})")


@app.on_event("shutdown")
async def on_shutdown():
    global scheduler
    if scheduler:
        try:
            scheduler.shutdown()
            logger.info("Reminder scheduler stopped")
        except Exception as e:
            logger.error(f"Error stopping scheduler: {e}")
    logger.info("Shutting down application...")

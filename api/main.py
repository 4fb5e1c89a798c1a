"""Main FastAPI application."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api import (
    admin_routes,
    auth_routes,
    coaching_routes,
    expert_routes,
    food_routes,
    meal_log_routes,
    message_routes,
    notification_routes,
    nutrition_plan_routes,
    nutrition_program_routes,
    profile_routes,
    recipe_routes,
    user_routes,
)
from config.settings import settings
from models.database import close_firebase, init_firebase
from services.admin_service import AdminService
from services.email_service import EmailService
from services.notification_service import NotificationService
from services.scheduler import NotificationScheduler, build_daily_job
from utils.errors import ValidationFailed
from utils.logger import setup_logger

logger = setup_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup/shutdown events."""
    # Startup
    logger.info("Starting application...")
    database = init_firebase(settings)
    app.state.database = database

    scheduler = None
    if settings.scheduler_enabled:
        scheduler = NotificationScheduler(build_daily_job(
            NotificationService(database),
            AdminService(database, EmailService()),
        ))
        scheduler.start()
    logger.info("Application started successfully")

    yield

    # Shutdown
    logger.info("Shutting down application...")
    if scheduler is not None:
        await scheduler.stop()
    await close_firebase(database)
    app.state.database = None
    logger.info("Application shut down")


def error_body(exc: StarletteHTTPException) -> dict:
    body = {"error": exc.detail}
    details = getattr(exc, "details", None)
    if details:
        body["details"] = details
    code = getattr(exc, "code", None)
    if code:
        body["code"] = code
    return body


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content=error_body(exc), headers=exc.headers)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    details = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        details.append(f"{location}: {error.get('msg')}" if location else error.get("msg"))
    logger.info(f"Request validation failed on {request.url.path}: {details}")
    return JSONResponse(status_code=400, content=error_body(ValidationFailed(details)))


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(status_code=500, content={"error": "Something went wrong on the server!"})


def create_app() -> FastAPI:
    application = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Nutrition coaching backend: plans, meal logs, coaching and messaging",
        lifespan=lifespan
    )

    logger.info(f"CORS configured with origins: {settings.cors_origins}")
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.add_exception_handler(StarletteHTTPException, http_exception_handler)
    application.add_exception_handler(RequestValidationError, validation_exception_handler)
    application.add_exception_handler(Exception, unhandled_exception_handler)

    for module in (
        auth_routes,
        user_routes,
        expert_routes,
        nutrition_plan_routes,
        nutrition_program_routes,
        recipe_routes,
        meal_log_routes,
        profile_routes,
        coaching_routes,
        message_routes,
        admin_routes,
        food_routes,
        notification_routes,
    ):
        application.include_router(module.router)

    @application.get("/")
    async def root():
        """Root endpoint."""
        return {
            "message": "BiteWise API",
            "version": settings.app_version,
            "status": "running"
        }

    @application.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "service": settings.app_name
        }

    return application


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "api.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )

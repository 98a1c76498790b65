from contextlib import asynccontextmanager
from typing import Callable, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from certtracker.config.settings import settings
from certtracker.db.db import init_database
from certtracker.middlewares import RequestIDMiddleware, SecurityHeadersMiddleware
from certtracker.routers import main_router
from certtracker.runtime import NotificationRuntime
from certtracker.utils.errors import setup_error_handlers
from certtracker.utils.logging import get_logger

# Initialize the logger
logger = get_logger()

RuntimeFactory = Callable[[], NotificationRuntime]


def default_runtime() -> NotificationRuntime:
    return NotificationRuntime(settings)


def build_lifespan(runtime_factory: RuntimeFactory):
    @asynccontextmanager
    async def lifespan(application: FastAPI):
        logger.info(f"{settings.NAME} is starting up...")
        runtime = runtime_factory()
        init_database(runtime.database)
        application.state.runtime = runtime
        try:
            yield
        finally:
            runtime.dispose()
            logger.info(f"{settings.NAME} is shutting down...")

    return lifespan


def create_application(runtime_factory: Optional[RuntimeFactory] = None) -> FastAPI:
    """Initialize the FastAPI application with settings and lifespan events."""
    application = FastAPI(
        title=settings.NAME,
        version=settings.VERSION,
        lifespan=build_lifespan(runtime_factory or default_runtime),
    )

    # Setup error handlers
    setup_error_handlers(application)

    # Add CORS middleware
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_HOSTS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "X-Request-ID"],
        expose_headers=["X-Request-ID", "Content-Disposition"],
    )

    # Add custom middlewares
    application.add_middleware(
        SecurityHeadersMiddleware,
        production=settings.ENVIRONMENT != "development",
    )
    application.add_middleware(RequestIDMiddleware)

    # Routers
    application.include_router(main_router, prefix=settings.API_PREFIX)

    return application


app = create_application()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "certtracker.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_config=None,
        log_level=None,
    )

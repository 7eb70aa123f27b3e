"""FastAPI application configuration."""

import logging

from fastapi import Depends, FastAPI

from src.api.cron import router as cron_router
from src.api.models import ErrorResponse
from src.api.schedules import router as schedules_router
from src.api.security import verify_token
from src.observability.sentry import init_sentry
from src.utils.logging import configure_logging

configure_logging()
init_sentry()

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    :returns: Configured FastAPI application instance.
    """
    application = FastAPI(
        title="Schedule Reminders API",
        version="1.0.0",
        responses={
            401: {"model": ErrorResponse, "description": "Unauthorised"},
            500: {"model": ErrorResponse, "description": "Internal server error"},
        },
    )

    # The cron router checks its own secret; everything else uses the API token
    application.include_router(cron_router)
    application.include_router(schedules_router, dependencies=[Depends(verify_token)])

    logger.info("FastAPI application created")

    return application


# Application instance for uvicorn
app = create_app()

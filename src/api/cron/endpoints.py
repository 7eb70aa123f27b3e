"""Endpoint the external scheduler calls once a minute to send due reminders."""

import logging
import time

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from src.api.cron.models import SendRemindersResponse
from src.api.security import verify_cron_secret
from src.database.connection import get_session
from src.reminders.models import CronRunResult
from src.reminders.service import build_dispatch_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cron", tags=["Cron"])


@router.api_route(
    "/send-reminders",
    methods=["GET", "POST"],
    response_model=SendRemindersResponse,
    dependencies=[Depends(verify_cron_secret)],
    summary="Send due reminders",
    responses={500: {"model": SendRemindersResponse, "description": "Reminder check failed"}},
)
def send_reminders() -> SendRemindersResponse | JSONResponse:
    """Run one reminder check against the schedule cache.

    Accepts GET as well as POST for schedulers that can only issue GETs. A
    failure of the whole check still answers with a summary, carrying a
    single error and the failure message.
    """
    logger.info("Cron send-reminders triggered")
    started = time.monotonic()

    try:
        with get_session() as session:
            result = build_dispatch_service(session).run()
    except Exception as e:
        logger.exception("Reminder check failed")
        failed = CronRunResult(
            errors=1,
            duration_ms=int((time.monotonic() - started) * 1000),
            message=f"Reminder check failed: {e}",
        )
        body = SendRemindersResponse.model_validate(failed.model_dump())
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=body.model_dump(mode="json", by_alias=True),
        )

    logger.info(
        f"Cron send-reminders complete: sent={result.sent}, errors={result.errors}, "
        f"elapsed={result.duration_ms}ms"
    )
    return SendRemindersResponse.model_validate(result.model_dump())

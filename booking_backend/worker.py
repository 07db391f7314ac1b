"""
Worker ARQ per i job in background.

Avvio: arq booking_backend.worker.WorkerSettings
"""
from __future__ import annotations

import asyncio
import logging
import os
from typing import Any

from arq import func

from .jobs import CANCELLATION_MAIL, get_redis_settings
from .logging_config import configure_logging
from .mail import cancellation_mail_body, send_mail

logger = logging.getLogger(__name__)


async def cancellation_mail(ctx: dict[str, Any], payload: dict[str, Any]) -> None:
    """Avvisa il provider che un cliente ha annullato l'appuntamento."""
    appointment = payload["appointment"]
    provider = appointment["provider"]

    await asyncio.to_thread(
        send_mail,
        f"{provider['name']} <{provider['email']}>",
        "Agendamento cancelado",
        cancellation_mail_body(appointment),
    )
    logger.info("Mail di annullamento inviata per appuntamento %s", appointment["id"])


async def startup(ctx: dict[str, Any]) -> None:
    configure_logging()


class WorkerSettings:
    functions = [func(cancellation_mail, name=CANCELLATION_MAIL)]
    on_startup = startup
    redis_settings = get_redis_settings()

    max_jobs = int(os.getenv("ARQ_MAX_JOBS", "10"))
    job_timeout = int(os.getenv("ARQ_JOB_TIMEOUT", "60"))
    max_tries = 3

from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from dotenv import load_dotenv

from .models import Notification
from .repositories import NotificationRepository

load_dotenv()

logger = logging.getLogger(__name__)

# Fuso orario in cui provider e clienti leggono gli orari
DISPLAY_TZ = ZoneInfo(os.getenv("DISPLAY_TIMEZONE", "America/Sao_Paulo"))

MESES = (
    "janeiro", "fevereiro", "março", "abril", "maio", "junho",
    "julho", "agosto", "setembro", "outubro", "novembro", "dezembro",
)


def format_date_pt(d: datetime, tz: ZoneInfo | None = None) -> str:
    """
    Es: 'dia 05 de março às 9:00h'.
    Le date naive sono UTC (come in DB) e vengono mostrate nel fuso DISPLAY_TZ.
    """
    if d.tzinfo is None:
        d = d.replace(tzinfo=timezone.utc)
    d = d.astimezone(tz or DISPLAY_TZ)
    return f"dia {d.day:02d} de {MESES[d.month - 1]} às {d.hour}:{d.minute:02d}h"


def notify_provider(
    notifications: NotificationRepository,
    provider_id: int,
    customer_name: str,
    date: datetime,
) -> Notification:
    """Avvisa il provider di una nuova prenotazione."""
    n = notifications.create(
        content=f"Novo agendamento de {customer_name} para o {format_date_pt(date)}",
        user_id=provider_id,
    )
    logger.info("Notifica %s creata per provider %s", n.id, provider_id)
    return n

"""Invio e-mail via SMTP e testo della mail di annullamento."""
from __future__ import annotations

import logging
import os
import smtplib
import ssl
from datetime import datetime
from email.mime.text import MIMEText
from typing import Any

from dotenv import load_dotenv

from .notifications import format_date_pt

load_dotenv()

logger = logging.getLogger(__name__)

SMTP_HOST = os.getenv("SMTP_HOST", "localhost")
SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
SMTP_USER = os.getenv("SMTP_USER")
SMTP_PASSWORD = os.getenv("SMTP_PASSWORD")
SMTP_USE_TLS = os.getenv("SMTP_USE_TLS", "true").lower() == "true"
MAIL_FROM = os.getenv("MAIL_FROM", "Equipe GoBarber <noreply@gobarber.com>")


def send_mail(to: str, subject: str, body: str) -> None:
    msg = MIMEText(body, "plain", "utf-8")
    msg["Subject"] = subject
    msg["From"] = MAIL_FROM
    msg["To"] = to

    if SMTP_PORT == 465:
        server = smtplib.SMTP_SSL(SMTP_HOST, SMTP_PORT, context=ssl.create_default_context(), timeout=30)
    else:
        server = smtplib.SMTP(SMTP_HOST, SMTP_PORT, timeout=30)
        if SMTP_USE_TLS:
            server.starttls(context=ssl.create_default_context())

    try:
        if SMTP_USER and SMTP_PASSWORD:
            server.login(SMTP_USER, SMTP_PASSWORD)
        server.sendmail(MAIL_FROM.split("<")[-1].rstrip(">"), [to], msg.as_string())
    finally:
        server.quit()

    logger.info("Mail inviata a %s: %s", to, subject)


def cancellation_mail_body(appointment: dict[str, Any]) -> str:
    date = datetime.fromisoformat(appointment["date"])
    return (
        f"Olá, {appointment['provider']['name']}\n\n"
        f"Houve um cancelamento de horário, confira os detalhes abaixo:\n\n"
        f"Cliente: {appointment['user']['name']}\n"
        f"Data/hora: {format_date_pt(date)}\n\n"
        f"O horário está novamente disponível para novos agendamentos.\n"
    )

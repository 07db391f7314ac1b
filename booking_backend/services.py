from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any

from starlette.concurrency import run_in_threadpool

from .db import Base, engine
from .errors import AuthorizationError, BusinessRuleError, CancellationWindowError, EnqueueError, NotFoundError
from .jobs import CANCELLATION_MAIL, JobQueue
from .models import Appointment, User
from .notifications import notify_provider
from .repositories import SLOT_UNAVAILABLE, AppointmentRepository, NotificationRepository, UserRepository

logger = logging.getLogger(__name__)


# =========================
# Bootstrap DB
# =========================
def init_db() -> None:
    """Crea le tabelle se non esistono."""
    Base.metadata.create_all(bind=engine)


# =========================
# Helper / DTO
# =========================
@dataclass(frozen=True)
class AvatarView:
    id: int
    path: str
    url: str


@dataclass(frozen=True)
class ProviderView:
    id: int
    name: str
    avatar: AvatarView | None


@dataclass(frozen=True)
class AppointmentListItem:
    id: int
    date: datetime
    past: bool
    cancelable: bool
    provider: ProviderView


@dataclass(frozen=True)
class AppointmentRecord:
    id: int
    date: datetime
    user_id: int
    provider_id: int
    canceled_at: datetime | None
    past: bool
    cancelable: bool


@dataclass(frozen=True)
class ContactView:
    name: str
    email: str | None = None


@dataclass(frozen=True)
class CanceledAppointment:
    id: int
    date: datetime
    user_id: int
    provider_id: int
    canceled_at: datetime | None
    past: bool
    cancelable: bool
    provider: ContactView
    user: ContactView

    def to_payload(self) -> dict[str, Any]:
        """Versione serializzabile per la coda (date in ISO-8601)."""
        data = asdict(self)
        data["date"] = self.date.isoformat()
        data["canceled_at"] = self.canceled_at.isoformat() if self.canceled_at else None
        return data


def to_naive_utc(d: datetime) -> datetime:
    # in DB salviamo datetime naive in UTC
    if d.tzinfo is not None:
        d = d.astimezone(timezone.utc).replace(tzinfo=None)
    return d


def start_of_hour(d: datetime) -> datetime:
    return d.replace(minute=0, second=0, microsecond=0)


def provider_view(u: User) -> ProviderView:
    avatar = None
    if u.avatar is not None:
        avatar = AvatarView(id=u.avatar.id, path=u.avatar.path, url=u.avatar.url)
    return ProviderView(id=u.id, name=u.name, avatar=avatar)


def _record(app: Appointment, now: datetime) -> AppointmentRecord:
    return AppointmentRecord(
        id=app.id,
        date=app.date,
        user_id=app.user_id,
        provider_id=app.provider_id,
        canceled_at=app.canceled_at,
        past=app.is_past(now),
        cancelable=app.is_cancelable(now),
    )


# =========================
# Elenco (index)
# =========================
def list_appointments(
    appointments: AppointmentRepository,
    user_id: int,
    page: int = 1,
    now: datetime | None = None,
) -> list[AppointmentListItem]:
    """Appuntamenti attivi del cliente, 20 per pagina, in ordine di data."""
    now = now or datetime.utcnow()
    return [
        AppointmentListItem(
            id=a.id,
            date=a.date,
            past=a.is_past(now),
            cancelable=a.is_cancelable(now),
            provider=provider_view(a.provider),
        )
        for a in appointments.list_active_for_user(user_id, page=page)
    ]


# =========================
# Prenotazione (store)
# =========================
def create_appointment(
    appointments: AppointmentRepository,
    users: UserRepository,
    notifications: NotificationRepository,
    user_id: int,
    provider_id: int,
    date: datetime,
    now: datetime | None = None,
) -> AppointmentRecord:
    """
    Use case: prenotare un appuntamento con un provider.
    - niente prenotazioni verso sé stessi
    - il destinatario deve essere un provider
    - niente date passate
    - uno slot (provider + ora) non può essere occupato due volte
    - notifica al provider
    """
    now = now or datetime.utcnow()

    if provider_id == user_id:
        raise AuthorizationError("Não é permitido criar Agendamentos para você mesmo")

    if users.find_provider(provider_id) is None:
        raise AuthorizationError("Não é permitido criar Agendamentos com esse provider")

    hour_start = start_of_hour(to_naive_utc(date))

    if hour_start < now:
        raise BusinessRuleError("Não é permitido datas menores que a data de hoje")

    if appointments.find_active(provider_id, hour_start) is not None:
        raise BusinessRuleError(SLOT_UNAVAILABLE)

    app = appointments.create(user_id=user_id, provider_id=provider_id, date=hour_start)
    logger.info("Appuntamento %s creato: cliente %s, provider %s, %s", app.id, user_id, provider_id, hour_start)

    customer = users.get(user_id)
    notify_provider(notifications, provider_id, customer.name if customer else "", hour_start)

    return _record(app, now)


# =========================
# Annullamento (delete)
# =========================
def mark_canceled(
    appointments: AppointmentRepository,
    user_id: int,
    appointment_id: int,
    now: datetime,
) -> CanceledAppointment:
    """Parte sincrona dell'annullamento: controlli e commit su DB."""
    app = appointments.get_with_parties(appointment_id)
    if app is None:
        raise NotFoundError("Agendamento não encontrado")

    if app.user_id != user_id:
        raise AuthorizationError("Você não tem permissão para cancelar um agendamento")

    if not app.is_cancelable(now):
        raise CancellationWindowError("Não é possível cancelar o agendamento")

    app.canceled_at = now
    appointments.save(app)
    logger.info("Appuntamento %s annullato dal cliente %s", app.id, user_id)

    return CanceledAppointment(
        id=app.id,
        date=app.date,
        user_id=app.user_id,
        provider_id=app.provider_id,
        canceled_at=app.canceled_at,
        past=app.is_past(now),
        cancelable=app.is_cancelable(now),
        provider=ContactView(name=app.provider.name, email=app.provider.email),
        user=ContactView(name=app.user.name),
    )


async def cancel_appointment(
    appointments: AppointmentRepository,
    queue: JobQueue,
    user_id: int,
    appointment_id: int,
    now: datetime | None = None,
) -> CanceledAppointment:
    """
    Use case: annullare un appuntamento.
    - solo il cliente che ha prenotato
    - solo fino a 2 ore prima
    - accoda la mail di annullamento per il provider

    Le query girano nel threadpool, sul loop resta solo l'enqueue.
    """
    now = now or datetime.utcnow()

    result = await run_in_threadpool(mark_canceled, appointments, user_id, appointment_id, now)

    try:
        await queue.enqueue(CANCELLATION_MAIL, {"appointment": result.to_payload()})
    except EnqueueError as e:
        # l'annullamento resta valido anche senza mail
        logger.warning("Mail di annullamento non accodata per appuntamento %s: %s", result.id, e)

    return result

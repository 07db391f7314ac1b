from __future__ import annotations

from datetime import datetime

from sqlalchemy import and_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from .errors import BusinessRuleError
from .models import Appointment, File, Notification, User

PAGE_SIZE = 20
# offset massimo rappresentabile come INTEGER a 64 bit
MAX_PAGE = (2**63 - 1) // PAGE_SIZE

SLOT_UNAVAILABLE = "O agendamento não está disponível para essa data"


class UserRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, user_id: int) -> User | None:
        return self.session.get(User, user_id)

    def find_by_email(self, email: str) -> User | None:
        return self.session.execute(select(User).where(User.email == email)).scalar_one_or_none()

    def find_provider(self, user_id: int) -> User | None:
        q = select(User).where(and_(User.id == user_id, User.provider.is_(True)))
        return self.session.execute(q).scalar_one_or_none()

    def list_providers(self) -> list[User]:
        q = (
            select(User)
            .options(joinedload(User.avatar))
            .where(User.provider.is_(True))
            .order_by(User.name)
        )
        return list(self.session.scalars(q))

    def list_all(self) -> list[User]:
        return list(self.session.scalars(select(User).order_by(User.name)))

    def create(self, name: str, email: str, password_hash: str, provider: bool = False,
               avatar: File | None = None) -> User:
        u = User(name=name, email=email, password_hash=password_hash, provider=provider, avatar=avatar)
        self.session.add(u)
        self.session.flush()
        return u


class AppointmentRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def list_active_for_user(self, user_id: int, page: int = 1) -> list[Appointment]:
        """Appuntamenti non annullati del cliente, con provider e avatar già caricati."""
        q = (
            select(Appointment)
            .options(joinedload(Appointment.provider).joinedload(User.avatar))
            .where(
                and_(
                    Appointment.user_id == user_id,
                    Appointment.canceled_at.is_(None),
                )
            )
            .order_by(Appointment.date.asc())
            .limit(PAGE_SIZE)
            .offset((page - 1) * PAGE_SIZE)
        )
        return list(self.session.scalars(q))

    def find_active(self, provider_id: int, date: datetime) -> Appointment | None:
        q = (
            select(Appointment)
            .where(
                and_(
                    Appointment.provider_id == provider_id,
                    Appointment.canceled_at.is_(None),
                    Appointment.date == date,
                )
            )
            .limit(1)
        )
        return self.session.scalars(q).first()

    def get_with_parties(self, appointment_id: int) -> Appointment | None:
        q = (
            select(Appointment)
            .options(joinedload(Appointment.provider), joinedload(Appointment.user))
            .where(Appointment.id == appointment_id)
        )
        return self.session.execute(q).scalar_one_or_none()

    def create(self, user_id: int, provider_id: int, date: datetime) -> Appointment:
        app = Appointment(user_id=user_id, provider_id=provider_id, date=date)
        self.session.add(app)
        try:
            self.session.flush()
        except IntegrityError as e:
            # prenotazione concorrente sullo stesso slot
            self.session.rollback()
            raise BusinessRuleError(SLOT_UNAVAILABLE) from e
        return app

    def save(self, appointment: Appointment) -> Appointment:
        # commit subito: la mail parte solo per modifiche già persistite
        self.session.add(appointment)
        self.session.commit()
        return appointment


class NotificationRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def create(self, content: str, user_id: int) -> Notification:
        n = Notification(content=content, user_id=user_id)
        self.session.add(n)
        self.session.flush()
        return n

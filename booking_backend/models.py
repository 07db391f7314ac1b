from __future__ import annotations

import os
from datetime import datetime, timedelta

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .db import Base

FILES_BASE_URL = os.getenv("FILES_BASE_URL", "http://localhost:8000")

# Finestra minima prima dell'appuntamento entro cui è ancora annullabile
CANCELLATION_WINDOW = timedelta(hours=2)


class File(Base):
    __tablename__ = "files"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    path: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    @property
    def url(self) -> str:
        return f"{FILES_BASE_URL}/files/{self.path}"


class User(Base):
    """
    Utente applicativo: cliente oppure provider (prenotabile).
    - email univoca
    - password_hash con bcrypt (passlib)
    """
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    email: Mapped[str] = mapped_column(String(120), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    provider: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    avatar_id: Mapped[int | None] = mapped_column(ForeignKey("files.id"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    avatar: Mapped[File | None] = relationship()
    notifications: Mapped[list["Notification"]] = relationship(back_populates="user", cascade="all, delete-orphan")

    def __repr__(self) -> str:
        return f"User({self.name}, provider={self.provider})"


class Appointment(Base):
    __tablename__ = "appointments"
    __table_args__ = (
        # Un solo appuntamento attivo per provider e orario
        Index(
            "uq_appointment_provider_date_active",
            "provider_id",
            "date",
            unique=True,
            sqlite_where=text("canceled_at IS NULL"),
            postgresql_where=text("canceled_at IS NULL"),
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    date: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    provider_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)

    canceled_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    user: Mapped["User"] = relationship(foreign_keys=[user_id])
    provider: Mapped["User"] = relationship(foreign_keys=[provider_id])

    def is_past(self, now: datetime | None = None) -> bool:
        return self.date < (now or datetime.utcnow())

    def is_cancelable(self, now: datetime | None = None) -> bool:
        return (now or datetime.utcnow()) < self.date - CANCELLATION_WINDOW


class Notification(Base):
    __tablename__ = "notifications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)

    # destinatario
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    user: Mapped["User"] = relationship(back_populates="notifications")

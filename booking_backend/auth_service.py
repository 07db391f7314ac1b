from __future__ import annotations

import logging

from .auth_security import hash_password, verify_password
from .errors import ValidationError
from .models import User
from .repositories import UserRepository

logger = logging.getLogger(__name__)


def create_user(users: UserRepository, name: str, email: str, password: str, provider: bool = False) -> User:
    email = email.strip().lower()
    if not name.strip() or not email or not password:
        raise ValidationError("Campos inválidos")

    if users.find_by_email(email) is not None:
        raise ValidationError("Usuário já existe")

    u = users.create(name=name.strip(), email=email, password_hash=hash_password(password), provider=provider)
    logger.info("Utente %s registrato (provider=%s)", u.id, provider)
    return u


def authenticate(users: UserRepository, email: str, password: str) -> User | None:
    u = users.find_by_email(email.strip().lower())
    if not u or not verify_password(password, u.password_hash):
        return None
    return u

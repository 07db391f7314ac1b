from __future__ import annotations

from sqlalchemy import select

from .auth_security import hash_password
from .db import db_session
from .models import File, User
from .repositories import UserRepository

DEMO_PASSWORD = "123456"


def seed_base() -> None:
    """
    Popola dati minimi (idempotente):
    - provider con avatar
    - un cliente
    """
    with db_session() as s:
        users = UserRepository(s)

        # Provider
        providers = [
            ("Diego Fernandes", "diego@gobarber.com", "diego.png"),
            ("Cláudio Souza", "claudio@gobarber.com", None),
        ]
        for name, email, avatar_path in providers:
            if users.find_by_email(email) is not None:
                continue

            avatar = None
            if avatar_path:
                avatar = s.execute(select(File).where(File.path == avatar_path)).scalar_one_or_none()
                if avatar is None:
                    avatar = File(name=avatar_path, path=avatar_path)
                    s.add(avatar)

            users.create(name=name, email=email, password_hash=hash_password(DEMO_PASSWORD),
                         provider=True, avatar=avatar)

        # Cliente
        if users.find_by_email("cliente@gobarber.com") is None:
            s.add(User(name="Cliente Teste", email="cliente@gobarber.com",
                       password_hash=hash_password(DEMO_PASSWORD), provider=False))

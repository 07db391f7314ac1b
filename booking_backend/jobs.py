"""
Coda job asincroni (Redis + ARQ).

Il resto dell'applicazione vede solo l'interfaccia JobQueue:
enqueue(job_name, payload) -> JobHandle, oppure EnqueueError.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Protocol

from arq import ArqRedis, create_pool
from arq.connections import RedisSettings
from dotenv import load_dotenv

from .errors import EnqueueError

load_dotenv()

logger = logging.getLogger(__name__)

REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")

CANCELLATION_MAIL = "CancellationMail"

ENQUEUE_CONN_TIMEOUT = int(os.getenv("REDIS_ENQUEUE_TIMEOUT", "1"))


@dataclass(frozen=True)
class JobHandle:
    job_id: str
    job_name: str


class JobQueue(Protocol):
    async def enqueue(self, job_name: str, payload: dict[str, Any]) -> JobHandle:
        ...


def get_redis_settings() -> RedisSettings:
    return RedisSettings.from_dsn(REDIS_URL)


def get_enqueue_redis_settings() -> RedisSettings:
    """
    Lato API: nessun retry di connessione, timeout breve.
    Con Redis giù la richiesta non deve restare appesa.
    """
    settings = get_redis_settings()
    settings.conn_retries = 0
    settings.conn_timeout = ENQUEUE_CONN_TIMEOUT
    return settings


class ArqJobQueue:
    """JobQueue su ARQ; il pool Redis viene aperto al primo enqueue."""

    def __init__(self, redis_settings: RedisSettings | None = None) -> None:
        self.redis_settings = redis_settings or get_enqueue_redis_settings()
        self._pool: ArqRedis | None = None

    async def _get_pool(self) -> ArqRedis:
        if self._pool is None:
            self._pool = await create_pool(self.redis_settings)
        return self._pool

    async def enqueue(self, job_name: str, payload: dict[str, Any]) -> JobHandle:
        try:
            pool = await self._get_pool()
            job = await pool.enqueue_job(job_name, payload)
        except Exception as e:
            raise EnqueueError(f"Impossibile accodare {job_name}: {e}") from e

        if job is None:
            raise EnqueueError(f"Job {job_name} già presente in coda")

        logger.info("Job %s accodato: %s", job_name, job.job_id)
        return JobHandle(job_id=job.job_id, job_name=job_name)

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.aclose()
            self._pool = None

from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest
from arq.connections import RedisSettings

from booking_backend.errors import EnqueueError
from booking_backend.jobs import CANCELLATION_MAIL, ENQUEUE_CONN_TIMEOUT, ArqJobQueue
from booking_backend.mail import cancellation_mail_body
from booking_backend.worker import WorkerSettings, cancellation_mail

PAYLOAD = {
    "appointment": {
        "id": 3,
        "date": "2026-10-19T10:00:00",
        "provider": {"name": "Diego Barbeiro", "email": "diego@test.com"},
        "user": {"name": "Ana Cliente", "email": None},
    }
}


@pytest.mark.asyncio
class TestArqJobQueue:
    async def test_enqueue_returns_handle(self):
        pool = AsyncMock()
        pool.enqueue_job.return_value = SimpleNamespace(job_id="abc123")

        with patch("booking_backend.jobs.create_pool", AsyncMock(return_value=pool)) as mock_create:
            queue = ArqJobQueue(RedisSettings())
            handle = await queue.enqueue(CANCELLATION_MAIL, PAYLOAD)
            await queue.enqueue(CANCELLATION_MAIL, PAYLOAD)

        assert handle.job_id == "abc123"
        assert handle.job_name == CANCELLATION_MAIL
        pool.enqueue_job.assert_awaited_with(CANCELLATION_MAIL, PAYLOAD)
        # il pool viene creato una volta sola
        assert mock_create.await_count == 1

    async def test_duplicate_job_raises(self):
        pool = AsyncMock()
        pool.enqueue_job.return_value = None

        with patch("booking_backend.jobs.create_pool", AsyncMock(return_value=pool)):
            with pytest.raises(EnqueueError):
                await ArqJobQueue(RedisSettings()).enqueue(CANCELLATION_MAIL, PAYLOAD)

    async def test_redis_failure_raises(self):
        with patch("booking_backend.jobs.create_pool", AsyncMock(side_effect=ConnectionError("refused"))):
            with pytest.raises(EnqueueError):
                await ArqJobQueue(RedisSettings()).enqueue(CANCELLATION_MAIL, PAYLOAD)

    async def test_default_settings_fail_fast_without_retries(self):
        pool = AsyncMock()
        pool.enqueue_job.return_value = SimpleNamespace(job_id="abc123")

        with patch("booking_backend.jobs.create_pool", AsyncMock(return_value=pool)) as mock_create:
            await ArqJobQueue().enqueue(CANCELLATION_MAIL, PAYLOAD)

        settings = mock_create.await_args.args[0]
        assert settings.conn_retries == 0
        assert settings.conn_timeout == ENQUEUE_CONN_TIMEOUT


def test_worker_registers_cancellation_mail():
    assert [f.name for f in WorkerSettings.functions] == [CANCELLATION_MAIL]


def test_cancellation_mail_body():
    body = cancellation_mail_body(PAYLOAD["appointment"])
    assert "Olá, Diego Barbeiro" in body
    assert "Cliente: Ana Cliente" in body
    assert "dia 19 de outubro às 7:00h" in body


@pytest.mark.asyncio
async def test_cancellation_mail_sends_to_provider():
    with patch("booking_backend.worker.send_mail") as mock_send:
        await cancellation_mail({}, PAYLOAD)

    to, subject, body = mock_send.call_args.args
    assert to == "Diego Barbeiro <diego@test.com>"
    assert subject == "Agendamento cancelado"
    assert "Ana Cliente" in body

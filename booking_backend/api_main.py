from __future__ import annotations

import logging
from dataclasses import asdict
from datetime import datetime
from typing import Any

from fastapi import Depends, FastAPI, HTTPException, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.security import OAuth2PasswordBearer, OAuth2PasswordRequestForm
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from booking_backend.auth_security import create_access_token, get_user_id
from booking_backend.auth_service import authenticate, create_user
from booking_backend.db import get_session
from booking_backend.errors import BookingError
from booking_backend.jobs import ArqJobQueue, JobQueue
from booking_backend.logging_config import configure_logging
from booking_backend.models import User
from booking_backend.repositories import MAX_PAGE, AppointmentRepository, NotificationRepository, UserRepository
from booking_backend.services import (
    cancel_appointment,
    create_appointment,
    init_db,
    list_appointments,
    provider_view,
)

logger = logging.getLogger(__name__)

# OAuth2 Bearer (Authorization: Bearer <token>)
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/sessions")

app = FastAPI(title="Booking API", version="1.0.0")

_job_queue = ArqJobQueue()



# Startup / shutdown

@app.on_event("startup")
def startup() -> None:
    configure_logging()
    init_db()


@app.on_event("shutdown")
async def shutdown() -> None:
    await _job_queue.close()



# Errori -> {"error": "..."}

@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("Richiesta non valida su %s: %s", request.url.path, exc.errors())
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": "Campos inválidos"})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)



# Schemi

class UserCreateIn(BaseModel):
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=6)
    provider: bool = False


class UserOut(BaseModel):
    id: int
    name: str
    email: str
    provider: bool


class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"


class AppointmentCreateIn(BaseModel):
    provider_id: int
    date: datetime



# Dipendenze

def get_users(session: Session = Depends(get_session)) -> UserRepository:
    return UserRepository(session)


def get_appointments(session: Session = Depends(get_session)) -> AppointmentRepository:
    return AppointmentRepository(session)


def get_notifications(session: Session = Depends(get_session)) -> NotificationRepository:
    return NotificationRepository(session)


def get_job_queue() -> JobQueue:
    return _job_queue


def get_current_user(token: str = Depends(oauth2_scheme), users: UserRepository = Depends(get_users)) -> User:
    # protezione extra: elimina spazi / virgolette accidentali
    token = token.strip().strip('"').strip("'")

    user_id = get_user_id(token)
    if user_id is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token inválido")

    u = users.get(user_id)
    if not u:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Usuário inválido")
    return u



# Utenti e sessioni

@app.post("/users", response_model=UserOut)
def register(payload: UserCreateIn, users: UserRepository = Depends(get_users)) -> UserOut:
    u = create_user(users, payload.name, payload.email, payload.password, provider=payload.provider)
    return UserOut(id=u.id, name=u.name, email=u.email, provider=u.provider)


@app.post("/sessions", response_model=TokenOut)
def login(form: OAuth2PasswordRequestForm = Depends(), users: UserRepository = Depends(get_users)) -> TokenOut:
    u = authenticate(users, form.username, form.password)
    if not u:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Credenciais inválidas")

    return TokenOut(access_token=create_access_token(u.id, extra={"name": u.name}))


@app.get("/providers")
def api_providers(
    user: User = Depends(get_current_user),
    users: UserRepository = Depends(get_users),
) -> list[dict[str, Any]]:
    return [asdict(provider_view(p)) for p in users.list_providers()]



# Appuntamenti

@app.get("/appointments")
def api_list_appointments(
    page: int = Query(1, ge=1, le=MAX_PAGE),
    user: User = Depends(get_current_user),
    appointments: AppointmentRepository = Depends(get_appointments),
) -> list[dict[str, Any]]:
    return [asdict(a) for a in list_appointments(appointments, user.id, page=page)]


@app.post("/appointments")
def api_create_appointment(
    payload: AppointmentCreateIn,
    user: User = Depends(get_current_user),
    appointments: AppointmentRepository = Depends(get_appointments),
    users: UserRepository = Depends(get_users),
    notifications: NotificationRepository = Depends(get_notifications),
) -> dict[str, Any]:
    rec = create_appointment(
        appointments,
        users,
        notifications,
        user_id=user.id,
        provider_id=payload.provider_id,
        date=payload.date,
    )
    return asdict(rec)


@app.delete("/appointments/{appointment_id}")
async def api_cancel_appointment(
    appointment_id: int,
    user: User = Depends(get_current_user),
    appointments: AppointmentRepository = Depends(get_appointments),
    queue: JobQueue = Depends(get_job_queue),
) -> dict[str, Any]:
    canceled = await cancel_appointment(appointments, queue, user_id=user.id, appointment_id=appointment_id)
    return asdict(canceled)

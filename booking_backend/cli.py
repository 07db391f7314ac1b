from __future__ import annotations

import argparse
import asyncio
from datetime import datetime

from booking_backend.db import db_session
from booking_backend.errors import BookingError
from booking_backend.jobs import ArqJobQueue
from booking_backend.logging_config import configure_logging
from booking_backend.repositories import AppointmentRepository, NotificationRepository, UserRepository
from booking_backend.seed import seed_base
from booking_backend.services import cancel_appointment, create_appointment, init_db


def cmd_init(args: argparse.Namespace) -> None:
    init_db()
    seed_base()
    print("DB inizializzato e seed completato.")


def cmd_list(args: argparse.Namespace) -> None:
    with db_session() as s:
        users = UserRepository(s)
        rows = users.list_providers() if args.entity == "providers" else users.list_all()
        for u in rows:
            print(f"{u.id} | {u.name} | {u.email}{' | provider' if u.provider else ''}")


def cmd_book(args: argparse.Namespace) -> None:
    date = datetime.fromisoformat(args.date)  # formato: 2026-01-14T10:00
    try:
        with db_session() as s:
            rec = create_appointment(
                AppointmentRepository(s),
                UserRepository(s),
                NotificationRepository(s),
                user_id=args.user_id,
                provider_id=args.provider_id,
                date=date,
            )
    except BookingError as e:
        raise SystemExit(f"Errore: {e.message}")
    print(f"Appuntamento {rec.id} creato per {rec.date.isoformat()}")


async def _cancel(user_id: int, appointment_id: int) -> None:
    queue = ArqJobQueue()
    try:
        with db_session() as s:
            canceled = await cancel_appointment(
                AppointmentRepository(s), queue, user_id=user_id, appointment_id=appointment_id
            )
    finally:
        await queue.close()
    print(f"Annullato il {canceled.canceled_at.isoformat()}.")


def cmd_cancel(args: argparse.Namespace) -> None:
    try:
        asyncio.run(_cancel(args.user_id, args.appointment_id))
    except BookingError as e:
        raise SystemExit(f"Errore: {e.message}")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="booking_cli", description="CLI agendamentos (operazioni senza HTTP)")
    sub = p.add_subparsers(required=True)

    p_init = sub.add_parser("init", help="Crea DB e carica seed")
    p_init.set_defaults(func=cmd_init)

    p_list = sub.add_parser("list", help="Lista utenti")
    p_list.add_argument("entity", choices=["providers", "users"])
    p_list.set_defaults(func=cmd_list)

    p_book = sub.add_parser("book", help="Prenota appuntamento")
    p_book.add_argument("--user-id", type=int, required=True, help="Cliente che prenota")
    p_book.add_argument("--provider-id", type=int, required=True)
    p_book.add_argument("--date", required=True, help="ISO datetime es: 2026-01-14T10:00")
    p_book.set_defaults(func=cmd_book)

    p_cancel = sub.add_parser("cancel", help="Annulla appuntamento")
    p_cancel.add_argument("--user-id", type=int, required=True, help="Cliente che ha prenotato")
    p_cancel.add_argument("--appointment-id", type=int, required=True)
    p_cancel.set_defaults(func=cmd_cancel)

    return p


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()
    configure_logging()
    init_db()  # garantisce tabelle
    args.func(args)


if __name__ == "__main__":
    main()

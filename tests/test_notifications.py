from datetime import datetime
from zoneinfo import ZoneInfo

from booking_backend.notifications import format_date_pt, notify_provider

UTC = ZoneInfo("UTC")


def test_format_date_pt_pads_day_not_hour():
    assert format_date_pt(datetime(2026, 3, 5, 9, 0), tz=UTC) == "dia 05 de março às 9:00h"


def test_format_date_pt_december():
    assert format_date_pt(datetime(2026, 12, 31, 18, 30), tz=UTC) == "dia 31 de dezembro às 18:30h"


def test_format_date_pt_shows_display_timezone():
    # 13:00 UTC = 10:00 a São Paulo
    assert format_date_pt(datetime(2026, 10, 19, 13, 0)) == "dia 19 de outubro às 10:00h"


def test_format_date_pt_day_can_change_in_display_timezone():
    assert format_date_pt(datetime(2026, 10, 19, 1, 0)) == "dia 18 de outubro às 22:00h"


def test_notify_provider_creates_notification(notifications, provider):
    n = notify_provider(notifications, provider.id, "Ana Cliente", datetime(2026, 10, 19, 10, 0))

    assert n.id is not None
    assert n.user_id == provider.id
    assert n.read is False
    assert n.content == "Novo agendamento de Ana Cliente para o dia 19 de outubro às 7:00h"

"""Calendar helpers for due dates and monthly reporting windows."""
import calendar
from datetime import date, datetime, time, timezone
from typing import Tuple

MONTH_NAMES_PT = (
    "janeiro", "fevereiro", "março", "abril", "maio", "junho",
    "julho", "agosto", "setembro", "outubro", "novembro", "dezembro",
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def add_months(start: date, months: int) -> date:
    """Calendar month increment; the day is clamped to the target month's end.

    ``add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)``
    """
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(start.day, last_day))


def month_window(year: int, month: int) -> Tuple[datetime, datetime]:
    """First and last instant (UTC) of a calendar month, both inclusive."""
    last_day = calendar.monthrange(year, month)[1]
    start = datetime.combine(date(year, month, 1), time.min, tzinfo=timezone.utc)
    end = datetime.combine(date(year, month, last_day), time.max, tzinfo=timezone.utc)
    return start, end


def month_label(year: int, month: int) -> str:
    """Label used on commission payouts, e.g. ``"janeiro/2024"``."""
    return f"{MONTH_NAMES_PT[month - 1]}/{year}"


def as_aware(moment: datetime) -> datetime:
    """Treat naive datetimes coming back from the store as UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment

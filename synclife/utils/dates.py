"""
Date helpers - "Hoy" y la hora local según la zona horaria configurada.
"""

from datetime import date, datetime

import pytz

from synclife.config import get_settings


def now_local() -> datetime:
    """Fecha y hora actual en la zona horaria del usuario."""
    tz = pytz.timezone(get_settings().tz)
    return datetime.now(tz)


def time_label(dt: datetime) -> str:
    """Hora en formato HH:MM."""
    return dt.strftime("%H:%M")


def parse_iso_date(value: str | date | None) -> date | None:
    """
    Parsea una fecha YYYY-MM-DD.

    Returns None para valores vacíos o que no son fechas (p.ej. "Hoje").
    """
    if value is None or isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None

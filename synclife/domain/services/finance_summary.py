"""
Finance Summary - Saldo en efectivo y gráfico de gastos por período.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any

from synclife.domain.entities import PaymentMethod, Transaction, TransactionType
from synclife.utils.dates import parse_iso_date

WEEKDAY_LABELS = ["Seg", "Ter", "Qua", "Qui", "Sex", "Sáb", "Dom"]
MONTH_LABELS = [
    "Jan", "Fev", "Mar", "Abr", "Mai", "Jun",
    "Jul", "Ago", "Set", "Out", "Nov", "Dez",
]
EMPTY_LABEL = "Sem dados"


class ChartPeriod(str, Enum):
    """Ventanas del gráfico de gastos."""
    WEEK = "1S"
    MONTH = "1M"
    YEAR = "1A"


@dataclass
class ChartPoint:
    label: str
    value: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {"label": self.label, "value": float(self.value)}


def cash_balance(transactions: list[Transaction]) -> Decimal:
    """Ingresos menos gastos que no son de tarjeta."""
    balance = Decimal("0")
    for t in transactions:
        if t.type == TransactionType.INCOME:
            balance += t.amount
        elif t.payment_method != PaymentMethod.CREDIT_CARD:
            balance -= t.amount
    return balance


def _bucket(day: date, period: ChartPeriod, today: date) -> tuple[Any, str] | None:
    """Clave ordenable y etiqueta del grupo al que pertenece `day`."""
    if period == ChartPeriod.WEEK:
        age = (today - day).days
        if 0 <= age < 7:
            return day, WEEKDAY_LABELS[day.weekday()]
    elif period == ChartPeriod.MONTH:
        if (day.year, day.month) == (today.year, today.month):
            week = (day.day - 1) // 7 + 1
            return week, f"Sem {week}"
    elif day.year == today.year:
        return day.month, MONTH_LABELS[day.month - 1]
    return None


def spending_chart(
    transactions: list[Transaction],
    period: ChartPeriod | str,
    today: date,
) -> list[ChartPoint]:
    """
    Agrupa los gastos del período, en orden cronológico.

    - 1S: últimos 7 días, por día de la semana
    - 1M: mes actual, por semana del mes (`Sem N`)
    - 1A: año actual, por mes

    Las transacciones con fecha "Hoje" o no parseable se ignoran. Sin datos
    devuelve un único punto `Sem dados` con valor 0.
    """
    period = ChartPeriod(period)
    groups: dict[Any, list] = {}

    for t in transactions:
        if not t.is_expense:
            continue
        day = parse_iso_date(t.date)
        if day is None:
            continue
        bucket = _bucket(day, period, today)
        if bucket is None:
            continue
        key, label = bucket
        entry = groups.setdefault(key, [label, Decimal("0")])
        entry[1] += t.amount

    if not groups:
        return [ChartPoint(label=EMPTY_LABEL, value=Decimal("0"))]

    return [ChartPoint(label=groups[key][0], value=groups[key][1]) for key in sorted(groups)]

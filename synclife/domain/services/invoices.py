"""
Invoices - Contabilidad de faturas de tarjeta de crédito.

Funciones puras sobre el snapshot. La fatura "abierta" es la suma de todos
los gastos no pagados de la tarjeta, sin separar ciclos de facturación:
`due_day` es solo un día del mes, sin mes ni año.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Iterable

from synclife.config import get_settings
from synclife.domain.entities import CreditCard, Transaction


class DueStatus(str, Enum):
    """Estado de vencimiento de una fatura."""
    DUE_SOON = "due_soon"
    DUE_TODAY = "due_today"
    OVERDUE = "overdue"


def open_invoice(card_id: str, transactions: Iterable[Transaction]) -> Decimal:
    """Suma de gastos no pagados de la tarjeta."""
    return sum(
        (t.amount for t in transactions
         if t.card_id == card_id and t.is_expense and not t.is_paid),
        Decimal("0"),
    )


def available_credit(card: CreditCard, transactions: Iterable[Transaction]) -> Decimal:
    """Límite menos fatura abierta. Puede ser negativo (sobre el límite)."""
    return card.limit_amount - open_invoice(card.id, transactions)


def classify_due_date(
    due_day: int,
    current_day: int,
    soon_days: int | None = None,
) -> DueStatus | None:
    """
    Clasifica el vencimiento comparando solo días del mes.

    Un `due_day` menor que `current_day` siempre es vencido: el cambio de mes
    no se modela.
    """
    if soon_days is None:
        soon_days = get_settings().invoice_due_soon_days

    diff = due_day - current_day
    if diff == 0:
        return DueStatus.DUE_TODAY
    if 0 < diff <= soon_days:
        return DueStatus.DUE_SOON
    if diff < 0:
        return DueStatus.OVERDUE
    return None


def invoice_status(
    card: CreditCard,
    transactions: Iterable[Transaction],
    current_day: int,
) -> DueStatus | None:
    """Estado de la fatura; None si no hay saldo abierto."""
    if open_invoice(card.id, transactions) <= 0:
        return None
    return classify_due_date(card.due_day, current_day)


@dataclass
class CardSummary:
    """Resumen de una tarjeta para mostrar."""

    card: CreditCard
    open_invoice: Decimal
    available_credit: Decimal
    usage_percent: float
    status: DueStatus | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "card": self.card.to_dict(),
            "open_invoice": float(self.open_invoice),
            "available_credit": float(self.available_credit),
            "usage_percent": self.usage_percent,
            "status": self.status.value if self.status else None,
        }


def _usage_percent(invoice: Decimal, limit_amount: Decimal) -> float:
    if limit_amount <= 0:
        return 100.0 if invoice > 0 else 0.0
    return min(float(invoice / limit_amount * 100), 100.0)


def summarize_cards(
    cards: list[CreditCard],
    transactions: list[Transaction],
    current_day: int,
) -> list[CardSummary]:
    """Resumen por tarjeta, en el orden del store."""
    summaries = []
    for card in cards:
        invoice = open_invoice(card.id, transactions)
        summaries.append(
            CardSummary(
                card=card,
                open_invoice=invoice,
                available_credit=card.limit_amount - invoice,
                usage_percent=_usage_percent(invoice, card.limit_amount),
                status=classify_due_date(card.due_day, current_day) if invoice > 0 else None,
            )
        )
    return summaries

"""
Finance Entities - Transaction y CreditCard.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any


# Fecha literal que usa el asistente al crear transacciones por voz/texto.
TODAY_SENTINEL = "Hoje"


# ==================== TRANSACTIONS ====================


class TransactionType(str, Enum):
    """Tipo de transacción."""
    INCOME = "income"
    EXPENSE = "expense"


class PaymentMethod(str, Enum):
    """Método de pago (solo tiene sentido en gastos)."""
    PIX = "pix"
    CASH = "cash"
    CREDIT_CARD = "credit_card"


@dataclass
class Transaction:
    """
    Entidad de Transacción.

    Representa un ingreso o gasto. `card_id` existe si y solo si
    el método de pago es tarjeta de crédito.
    """

    id: str = ""
    name: str = ""
    amount: Decimal = Decimal("0")
    date: str = TODAY_SENTINEL  # YYYY-MM-DD o TODAY_SENTINEL
    type: TransactionType = TransactionType.EXPENSE
    icon: str = "shopping_bag"
    color: str = "orange"

    # Método de pago
    payment_method: PaymentMethod | None = None
    card_id: str | None = None

    # Solo se marca en bloque al pagar la fatura
    is_paid: bool = False

    @property
    def is_expense(self) -> bool:
        """Verifica si es un gasto."""
        return self.type == TransactionType.EXPENSE

    def to_dict(self) -> dict[str, Any]:
        """Convierte a diccionario."""
        return {
            "id": self.id,
            "name": self.name,
            "amount": float(self.amount),
            "date": self.date,
            "type": self.type.value,
            "icon": self.icon,
            "color": self.color,
            "payment_method": self.payment_method.value if self.payment_method else None,
            "card_id": self.card_id,
            "is_paid": self.is_paid,
        }


# ==================== CREDIT CARDS ====================


@dataclass
class CreditCard:
    """
    Entidad de Tarjeta de Crédito.

    `due_day` y `closing_day` son solo día del mes, sin mes/año.
    """

    id: str = ""
    name: str = ""
    limit_amount: Decimal = Decimal("0")
    due_day: int = 10
    closing_day: int = 3
    color: str = "purple"
    last_digits: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Convierte a diccionario."""
        return {
            "id": self.id,
            "name": self.name,
            "limit_amount": float(self.limit_amount),
            "due_day": self.due_day,
            "closing_day": self.closing_day,
            "color": self.color,
            "last_digits": self.last_digits,
        }

"""
Notifications - Alertas derivadas del snapshot.

Tareas vencidas o que vencen hoy, y faturas próximas, de hoy o atrasadas.
Dentro de cada categoría se respeta el orden del store; ordenar por
urgencia es tarea de quien muestra la lista.
"""

import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import TYPE_CHECKING, Any

from synclife.domain.entities import CreditCard, Task, Transaction
from synclife.domain.services.invoices import DueStatus, classify_due_date, open_invoice
from synclife.utils.errors import NotFoundError
from synclife.utils.text import format_brl

if TYPE_CHECKING:
    from synclife.domain.store import DomainStore, MutationResult

logger = logging.getLogger(__name__)

PAY_ACTION = "pay"


class NotificationKind(str, Enum):
    TASK_OVERDUE = "task_overdue"
    TASK_DUE_TODAY = "task_due_today"
    INVOICE_DUE_SOON = "invoice_due_soon"
    INVOICE_DUE_TODAY = "invoice_due_today"
    INVOICE_OVERDUE = "invoice_overdue"


class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    DANGER = "danger"


@dataclass
class Notification:
    """Alerta accionable o informativa."""

    id: str
    kind: NotificationKind
    severity: Severity
    title: str
    description: str
    icon: str
    entity_id: str
    action: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind.value,
            "severity": self.severity.value,
            "title": self.title,
            "description": self.description,
            "icon": self.icon,
            "entity_id": self.entity_id,
            "action": self.action,
        }


def _task_notification(task: Task, today: date) -> Notification | None:
    if task.is_overdue_on(today):
        kind = NotificationKind.TASK_OVERDUE
        return Notification(
            id=f"{kind.value}:{task.id}",
            kind=kind,
            severity=Severity.DANGER,
            title="Tarefa Atrasada",
            description=f'"{task.title}" venceu em {task.date.isoformat()}.',
            icon="event_busy",
            entity_id=task.id,
        )
    if task.is_due_on(today):
        kind = NotificationKind.TASK_DUE_TODAY
        return Notification(
            id=f"{kind.value}:{task.id}",
            kind=kind,
            severity=Severity.WARNING,
            title="Vence Hoje",
            description=f'"{task.title}" vence hoje.',
            icon="event",
            entity_id=task.id,
        )
    return None


def _card_notification(
    card: CreditCard,
    transactions: list[Transaction],
    current_day: int,
) -> Notification | None:
    invoice = open_invoice(card.id, transactions)
    if invoice <= 0:
        return None

    status = classify_due_date(card.due_day, current_day)
    amount = format_brl(invoice)

    if status == DueStatus.DUE_TODAY:
        kind, severity, icon = NotificationKind.INVOICE_DUE_TODAY, Severity.DANGER, "payments"
        title = "Fatura Vence Hoje"
        description = f"Pagar {amount} do {card.name} hoje!"
    elif status == DueStatus.DUE_SOON:
        kind, severity, icon = NotificationKind.INVOICE_DUE_SOON, Severity.INFO, "credit_card"
        title = "Fatura Próxima"
        description = f"Fatura de {amount} vence dia {card.due_day}."
    elif status == DueStatus.OVERDUE:
        kind, severity, icon = NotificationKind.INVOICE_OVERDUE, Severity.DANGER, "warning"
        title = "Fatura Atrasada?"
        description = f"Dia {card.due_day} já passou. Fatura de {amount} em aberto."
    else:
        return None

    return Notification(
        id=f"{kind.value}:{card.id}",
        kind=kind,
        severity=severity,
        title=title,
        description=description,
        icon=icon,
        entity_id=card.id,
        action=PAY_ACTION,
    )


def derive_notifications(
    tasks: list[Task],
    cards: list[CreditCard],
    transactions: list[Transaction],
    today: date,
) -> list[Notification]:
    """
    Deriva las notificaciones: primero tareas, después tarjetas.

    Args:
        tasks: Tareas en el orden del store
        cards: Tarjetas en el orden del store
        transactions: Todas las transacciones (para calcular faturas)
        today: Fecha local de hoy; para tarjetas solo importa el día del mes
    """
    notifications = []

    for task in tasks:
        notification = _task_notification(task, today)
        if notification:
            notifications.append(notification)

    for card in cards:
        notification = _card_notification(card, transactions, today.day)
        if notification:
            notifications.append(notification)

    return notifications


async def run_notification_action(
    store: "DomainStore",
    notification: Notification,
) -> "MutationResult":
    """
    Ejecuta la acción de una notificación.

    La única acción es `pay`, que dispara el pago de la fatura y nada más.
    """
    if notification.action != PAY_ACTION:
        raise NotFoundError(f"La notificación {notification.id} no tiene acción")

    logger.info(f"Acción '{notification.action}' sobre tarjeta {notification.entity_id}")
    return await store.pay_card_invoice(notification.entity_id)

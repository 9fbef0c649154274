"""Domain Entities - Dataclasses del dominio."""

from synclife.domain.entities.finance import (
    TODAY_SENTINEL,
    CreditCard,
    PaymentMethod,
    Transaction,
    TransactionType,
)
from synclife.domain.entities.project import Project
from synclife.domain.entities.task import SubTask, Task, TaskLog, TaskPriority

__all__ = [
    "TODAY_SENTINEL",
    "CreditCard",
    "PaymentMethod",
    "Transaction",
    "TransactionType",
    "Project",
    "SubTask",
    "Task",
    "TaskLog",
    "TaskPriority",
]

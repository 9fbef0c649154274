"""
Schemas de la API - Request/response bodies con Pydantic.
"""

import base64
import binascii
import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator

from synclife.domain.entities import (
    TODAY_SENTINEL,
    CreditCard,
    PaymentMethod,
    Project,
    SubTask,
    Task,
    TaskLog,
    TaskPriority,
    Transaction,
    TransactionType,
)
from synclife.domain.store import MutationResult


class MutationResponse(BaseModel):
    """Resultado de una mutación: aplicada localmente y/o confirmada en el store remoto."""
    applied: bool
    confirmed: bool
    warning: str | None = None
    entity: Any = None

    @classmethod
    def from_result(cls, result: MutationResult) -> "MutationResponse":
        entity = result.entity
        if hasattr(entity, "to_dict"):
            entity = entity.to_dict()
        return cls(
            applied=result.applied,
            confirmed=result.confirmed,
            warning=result.warning.message if result.warning else None,
            entity=entity,
        )


# ==================== FINANCE ====================


class TransactionCreate(BaseModel):
    name: str
    amount: float
    type: TransactionType = TransactionType.EXPENSE
    date: str = TODAY_SENTINEL
    icon: str | None = None
    color: str | None = None
    payment_method: PaymentMethod | None = PaymentMethod.PIX
    card_id: str | None = None

    def to_entity(self) -> Transaction:
        is_expense = self.type == TransactionType.EXPENSE
        return Transaction(
            name=self.name,
            amount=self.amount,
            date=self.date,
            type=self.type,
            icon=self.icon or ("shopping_bag" if is_expense else "attach_money"),
            color=self.color or ("orange" if is_expense else "green"),
            payment_method=self.payment_method,
            card_id=self.card_id,
        )


class CardCreate(BaseModel):
    name: str
    limit_amount: float = Field(ge=0)
    due_day: int = Field(default=10, ge=1, le=31)
    closing_day: int = Field(default=3, ge=1, le=31)
    color: str = "purple"
    last_digits: str = Field(default="", max_length=4)

    def to_entity(self) -> CreditCard:
        return CreditCard(
            name=self.name,
            limit_amount=self.limit_amount,
            due_day=self.due_day,
            closing_day=self.closing_day,
            color=self.color,
            last_digits=self.last_digits,
        )


# ==================== TASKS ====================


class SubTaskBody(BaseModel):
    id: str = ""
    title: str
    completed: bool = False


class TaskLogBody(BaseModel):
    id: str = ""
    text: str
    timestamp: str


class TaskBody(BaseModel):
    """Tarea completa; en PUT reemplaza el registro entero."""
    title: str
    category: str = "Geral"
    category_icon: str = "check_circle"
    time: str = ""
    date: datetime.date | None = None
    completed: bool = False
    priority: TaskPriority = TaskPriority.NONE
    project_id: str | None = None
    tags: list[str] = Field(default_factory=list)
    subtasks: list[SubTaskBody] = Field(default_factory=list)
    logs: list[TaskLogBody] = Field(default_factory=list)

    def to_entity(self, id: str = "") -> Task:
        return Task(
            id=id,
            title=self.title,
            category=self.category,
            category_icon=self.category_icon,
            time=self.time,
            date=self.date,
            completed=self.completed,
            priority=self.priority,
            project_id=self.project_id,
            tags=list(dict.fromkeys(self.tags)),
            subtasks=[SubTask(id=s.id, title=s.title, completed=s.completed) for s in self.subtasks],
            logs=[TaskLog(id=log.id, text=log.text, timestamp=log.timestamp) for log in self.logs],
        )


class SubTaskCreate(BaseModel):
    title: str


class TaskLogCreate(BaseModel):
    text: str


# ==================== PROJECTS ====================


class ProjectCreate(BaseModel):
    name: str
    logo: str = ""
    color: str = "blue"

    def to_entity(self) -> Project:
        return Project(name=self.name, logo=self.logo, color=self.color)


# ==================== CHAT ====================


class ChatMessageIn(BaseModel):
    text: str


class _MediaIn(BaseModel):
    data: str  # base64

    @field_validator("data")
    @classmethod
    def _check_base64(cls, value: str) -> str:
        try:
            base64.b64decode(value, validate=True)
        except (binascii.Error, ValueError):
            raise ValueError("data debe ser base64 válido")
        return value

    def decoded(self) -> bytes:
        return base64.b64decode(self.data)


class ChatAudioIn(_MediaIn):
    mime_type: str = "audio/webm"


class ChatImageIn(_MediaIn):
    mime_type: str = "image/jpeg"
    caption: str | None = None

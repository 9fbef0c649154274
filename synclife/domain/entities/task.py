"""
Task Entity - Representación de una tarea del dominio.

Una tarea es dueña de sus subtareas y de sus logs: al borrar la tarea
se descartan ambos.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import IntEnum
from typing import Any


class TaskPriority(IntEnum):
    """Prioridades de tarea. 0 = sin prioridad, 1 = la más alta."""
    NONE = 0
    HIGH = 1
    MEDIUM = 2
    LOW = 3

    def cycle(self) -> "TaskPriority":
        """Siguiente prioridad en el ciclo none -> low -> medium -> high -> none."""
        order = {
            TaskPriority.NONE: TaskPriority.LOW,
            TaskPriority.LOW: TaskPriority.MEDIUM,
            TaskPriority.MEDIUM: TaskPriority.HIGH,
            TaskPriority.HIGH: TaskPriority.NONE,
        }
        return order[self]


@dataclass
class SubTask:
    """Subtarea."""

    id: str
    title: str
    completed: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "title": self.title, "completed": self.completed}


@dataclass
class TaskLog:
    """Nota en el historial de la tarea. `timestamp` es texto para mostrar."""

    id: str
    text: str
    timestamp: str

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "text": self.text, "timestamp": self.timestamp}


@dataclass
class Task:
    """
    Entidad de Tarea.

    `logs` se guarda del más nuevo al más viejo.
    """

    id: str = ""
    title: str = ""
    category: str = "Geral"
    category_icon: str = "check_circle"
    time: str = ""  # HH:MM
    date: date | None = None
    completed: bool = False
    priority: TaskPriority = TaskPriority.NONE

    # Relaciones
    project_id: str | None = None

    tags: list[str] = field(default_factory=list)
    subtasks: list[SubTask] = field(default_factory=list)
    logs: list[TaskLog] = field(default_factory=list)

    def is_overdue_on(self, today: date) -> bool:
        """Verifica si la tarea está vencida respecto a `today`."""
        if self.completed or not self.date:
            return False
        return self.date < today

    def is_due_on(self, today: date) -> bool:
        """Verifica si la tarea vence exactamente en `today`."""
        if self.completed or not self.date:
            return False
        return self.date == today

    @property
    def subtask_progress(self) -> tuple[int, int]:
        """(completadas, total)."""
        done = sum(1 for s in self.subtasks if s.completed)
        return done, len(self.subtasks)

    def to_dict(self) -> dict[str, Any]:
        """Convierte a diccionario para serialización."""
        return {
            "id": self.id,
            "title": self.title,
            "category": self.category,
            "category_icon": self.category_icon,
            "time": self.time,
            "date": self.date.isoformat() if self.date else None,
            "completed": self.completed,
            "priority": int(self.priority),
            "project_id": self.project_id,
            "tags": list(self.tags),
            "subtasks": [s.to_dict() for s in self.subtasks],
            "logs": [log.to_dict() for log in self.logs],
        }

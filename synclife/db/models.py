"""
Modelos SQLAlchemy - una fila por entidad del dominio.

Cada fila de nivel superior lleva `user_id`. `card_id` en transacciones
es una columna simple, sin FK: borrar una tarjeta deja su historial.
"""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from synclife.db.database import Base

# ============================================================
# FINANCE
# ============================================================


class TransactionModel(Base):
    """Ingreso o gasto."""

    __tablename__ = "transactions"

    pk: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    user_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    # YYYY-MM-DD o el literal "Hoje"
    date: Mapped[str] = mapped_column(String(10), nullable=False)
    type: Mapped[str] = mapped_column(String(10), nullable=False)
    icon: Mapped[str] = mapped_column(String(50), default="shopping_bag")
    color: Mapped[str] = mapped_column(String(30), default="orange")

    payment_method: Mapped[str | None] = mapped_column(String(20))
    card_id: Mapped[str | None] = mapped_column(String(64), index=True)
    is_paid: Mapped[bool] = mapped_column(Boolean, default=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


class CreditCardModel(Base):
    """Tarjeta de crédito."""

    __tablename__ = "credit_cards"

    pk: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    user_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    limit_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    due_day: Mapped[int] = mapped_column(Integer, default=10)
    closing_day: Mapped[int] = mapped_column(Integer, default=3)
    color: Mapped[str] = mapped_column(String(30), default="purple")
    last_digits: Mapped[str] = mapped_column(String(4), default="")

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


# ============================================================
# PROJECTS
# ============================================================


class ProjectModel(Base):
    """Proyecto."""

    __tablename__ = "projects"

    pk: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    user_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    logo: Mapped[str] = mapped_column(Text, default="")
    color: Mapped[str] = mapped_column(String(30), default="blue")

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


# ============================================================
# TASKS
# ============================================================


class TaskModel(Base):
    """Tarea con sus subtareas y logs."""

    __tablename__ = "tasks"

    pk: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    user_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)

    title: Mapped[str] = mapped_column(String(500), nullable=False)
    category: Mapped[str] = mapped_column(String(100), default="Geral")
    category_icon: Mapped[str] = mapped_column(String(50), default="check_circle")
    time: Mapped[str] = mapped_column(String(5), default="")
    due_date: Mapped[date | None] = mapped_column(Date)
    completed: Mapped[bool] = mapped_column(Boolean, default=False)
    priority: Mapped[int] = mapped_column(Integer, default=0)

    # Sin FK: la desvinculación la hace el repositorio al borrar el proyecto
    project_id: Mapped[str | None] = mapped_column(String(64), index=True)
    tags: Mapped[list[str]] = mapped_column(JSON, default=list)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    # Relationships
    subtasks: Mapped[list["SubTaskModel"]] = relationship(
        back_populates="task",
        cascade="all, delete-orphan",
        order_by="SubTaskModel.position",
        lazy="selectin",
    )
    logs: Mapped[list["TaskLogModel"]] = relationship(
        back_populates="task",
        cascade="all, delete-orphan",
        order_by="TaskLogModel.position",
        lazy="selectin",
    )


class SubTaskModel(Base):
    """Subtarea; vive y muere con su tarea."""

    __tablename__ = "subtasks"

    pk: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    id: Mapped[str] = mapped_column(String(64), nullable=False)
    task_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False
    )

    title: Mapped[str] = mapped_column(String(500), nullable=False)
    completed: Mapped[bool] = mapped_column(Boolean, default=False)
    position: Mapped[int] = mapped_column(Integer, default=0)

    task: Mapped["TaskModel"] = relationship(back_populates="subtasks")


class TaskLogModel(Base):
    """Entrada del historial de una tarea (position 0 = la más nueva)."""

    __tablename__ = "task_logs"

    pk: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    id: Mapped[str] = mapped_column(String(64), nullable=False)
    task_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False
    )

    text: Mapped[str] = mapped_column(Text, nullable=False)
    timestamp: Mapped[str] = mapped_column(String(20), nullable=False)
    position: Mapped[int] = mapped_column(Integer, default=0)

    task: Mapped["TaskModel"] = relationship(back_populates="logs")

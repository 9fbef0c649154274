"""
SqlStoreRepository - Implementación del store remoto con SQLAlchemy.

Cada instancia está atada a un usuario; todas las consultas filtran por
`user_id`.
"""

import logging
from decimal import Decimal

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from synclife.db.database import get_session
from synclife.db.models import (
    CreditCardModel,
    ProjectModel,
    SubTaskModel,
    TaskLogModel,
    TaskModel,
    TransactionModel,
)
from synclife.domain.entities import (
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
from synclife.domain.repositories.base import IStoreRepository, StoreSnapshot
from synclife.utils.errors import retry_database

logger = logging.getLogger(__name__)


class SqlStoreRepository(IStoreRepository):
    """Repositorio de un usuario sobre PostgreSQL (o cualquier engine async)."""

    def __init__(
        self,
        user_id: str,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
    ):
        self.user_id = user_id
        self._session_factory = session_factory

    # ==================== Lectura ====================

    @retry_database()
    async def load_snapshot(self) -> StoreSnapshot:
        async with get_session(self._session_factory) as session:
            transactions = await session.execute(
                select(TransactionModel)
                .where(TransactionModel.user_id == self.user_id)
                .order_by(TransactionModel.date.desc(), TransactionModel.pk.desc())
            )
            tasks = await session.execute(
                select(TaskModel)
                .where(TaskModel.user_id == self.user_id)
                .order_by(TaskModel.pk.desc())
            )
            projects = await session.execute(
                select(ProjectModel)
                .where(ProjectModel.user_id == self.user_id)
                .order_by(ProjectModel.pk.desc())
            )
            cards = await session.execute(
                select(CreditCardModel)
                .where(CreditCardModel.user_id == self.user_id)
                .order_by(CreditCardModel.pk.desc())
            )

            snapshot = StoreSnapshot(
                transactions=[self._to_transaction(m) for m in transactions.scalars()],
                tasks=[self._to_task(m) for m in tasks.scalars()],
                projects=[self._to_project(m) for m in projects.scalars()],
                cards=[self._to_card(m) for m in cards.scalars()],
            )

        logger.debug(
            f"Snapshot cargado para {self.user_id}: "
            f"{len(snapshot.transactions)} transacciones, {len(snapshot.tasks)} tareas"
        )
        return snapshot

    # ==================== Transacciones ====================

    async def create_transaction(self, transaction: Transaction) -> None:
        async with get_session(self._session_factory) as session:
            session.add(
                TransactionModel(
                    id=transaction.id,
                    user_id=self.user_id,
                    name=transaction.name,
                    amount=transaction.amount,
                    date=transaction.date,
                    type=transaction.type.value,
                    icon=transaction.icon,
                    color=transaction.color,
                    payment_method=(
                        transaction.payment_method.value if transaction.payment_method else None
                    ),
                    card_id=transaction.card_id,
                    is_paid=transaction.is_paid,
                )
            )
            await session.commit()

    async def delete_transaction(self, id: str) -> None:
        async with get_session(self._session_factory) as session:
            await session.execute(
                delete(TransactionModel).where(
                    TransactionModel.user_id == self.user_id,
                    TransactionModel.id == id,
                )
            )
            await session.commit()

    async def mark_transactions_paid(self, ids: list[str]) -> None:
        if not ids:
            return
        async with get_session(self._session_factory) as session:
            await session.execute(
                update(TransactionModel)
                .where(
                    TransactionModel.user_id == self.user_id,
                    TransactionModel.id.in_(ids),
                )
                .values(is_paid=True)
            )
            await session.commit()
        logger.info(f"{len(ids)} transacciones marcadas como pagadas")

    # ==================== Tareas ====================

    async def create_task(self, task: Task) -> None:
        async with get_session(self._session_factory) as session:
            model = TaskModel(id=task.id, user_id=self.user_id, subtasks=[], logs=[])
            self._apply_task(model, task)
            session.add(model)
            await session.commit()

    async def update_task(self, task: Task) -> None:
        async with get_session(self._session_factory) as session:
            model = await self._get_task_model(session, task.id)
            if model is None:
                logger.warning(f"update_task: tarea {task.id} no existe, se crea")
                model = TaskModel(id=task.id, user_id=self.user_id, subtasks=[], logs=[])
                session.add(model)
            self._apply_task(model, task)
            await session.commit()

    async def delete_task(self, id: str) -> None:
        async with get_session(self._session_factory) as session:
            model = await self._get_task_model(session, id)
            if model is not None:
                await session.delete(model)
                await session.commit()

    # ==================== Proyectos ====================

    async def create_project(self, project: Project) -> None:
        async with get_session(self._session_factory) as session:
            session.add(
                ProjectModel(
                    id=project.id,
                    user_id=self.user_id,
                    name=project.name,
                    logo=project.logo,
                    color=project.color,
                )
            )
            await session.commit()

    async def delete_project(self, id: str, orphaned_tasks: list[Task]) -> None:
        async with get_session(self._session_factory) as session:
            orphan_ids = [t.id for t in orphaned_tasks]
            if orphan_ids:
                await session.execute(
                    update(TaskModel)
                    .where(TaskModel.user_id == self.user_id, TaskModel.id.in_(orphan_ids))
                    .values(project_id=None)
                )
            await session.execute(
                delete(ProjectModel).where(
                    ProjectModel.user_id == self.user_id,
                    ProjectModel.id == id,
                )
            )
            await session.commit()

    # ==================== Tarjetas ====================

    async def create_card(self, card: CreditCard) -> None:
        async with get_session(self._session_factory) as session:
            session.add(
                CreditCardModel(
                    id=card.id,
                    user_id=self.user_id,
                    name=card.name,
                    limit_amount=card.limit_amount,
                    due_day=card.due_day,
                    closing_day=card.closing_day,
                    color=card.color,
                    last_digits=card.last_digits,
                )
            )
            await session.commit()

    async def delete_card(self, id: str) -> None:
        async with get_session(self._session_factory) as session:
            await session.execute(
                delete(CreditCardModel).where(
                    CreditCardModel.user_id == self.user_id,
                    CreditCardModel.id == id,
                )
            )
            await session.commit()

    # ==================== Helpers ====================

    async def _get_task_model(self, session: AsyncSession, id: str) -> TaskModel | None:
        result = await session.execute(
            select(TaskModel).where(TaskModel.user_id == self.user_id, TaskModel.id == id)
        )
        return result.scalar_one_or_none()

    @staticmethod
    def _apply_task(model: TaskModel, task: Task) -> None:
        """Copia la tarea completa sobre la fila (last-write-wins)."""
        model.title = task.title
        model.category = task.category
        model.category_icon = task.category_icon
        model.time = task.time
        model.due_date = task.date
        model.completed = task.completed
        model.priority = int(task.priority)
        model.project_id = task.project_id
        model.tags = list(task.tags)

        # Reconciliar hijos por id: las filas que ya no existen se descartan
        existing_subtasks = {s.id: s for s in model.subtasks}
        subtasks = []
        for position, subtask in enumerate(task.subtasks):
            row = existing_subtasks.get(subtask.id) or SubTaskModel(id=subtask.id)
            row.title = subtask.title
            row.completed = subtask.completed
            row.position = position
            subtasks.append(row)
        model.subtasks = subtasks

        existing_logs = {log.id: log for log in model.logs}
        logs = []
        for position, log in enumerate(task.logs):
            row = existing_logs.get(log.id) or TaskLogModel(id=log.id)
            row.text = log.text
            row.timestamp = log.timestamp
            row.position = position
            logs.append(row)
        model.logs = logs

    # ==================== Mappers ====================

    @staticmethod
    def _to_transaction(model: TransactionModel) -> Transaction:
        return Transaction(
            id=model.id,
            name=model.name,
            amount=Decimal(str(model.amount)),
            date=model.date,
            type=TransactionType(model.type),
            icon=model.icon,
            color=model.color,
            payment_method=PaymentMethod(model.payment_method) if model.payment_method else None,
            card_id=model.card_id,
            is_paid=bool(model.is_paid),
        )

    @staticmethod
    def _to_task(model: TaskModel) -> Task:
        return Task(
            id=model.id,
            title=model.title,
            category=model.category,
            category_icon=model.category_icon,
            time=model.time or "",
            date=model.due_date,
            completed=bool(model.completed),
            priority=TaskPriority(model.priority or 0),
            project_id=model.project_id,
            tags=list(model.tags or []),
            subtasks=[
                SubTask(id=s.id, title=s.title, completed=bool(s.completed))
                for s in model.subtasks
            ],
            logs=[TaskLog(id=log.id, text=log.text, timestamp=log.timestamp) for log in model.logs],
        )

    @staticmethod
    def _to_project(model: ProjectModel) -> Project:
        return Project(id=model.id, name=model.name, logo=model.logo, color=model.color)

    @staticmethod
    def _to_card(model: CreditCardModel) -> CreditCard:
        return CreditCard(
            id=model.id,
            name=model.name,
            limit_amount=Decimal(str(model.limit_amount)),
            due_day=model.due_day,
            closing_day=model.closing_day,
            color=model.color,
            last_digits=model.last_digits,
        )

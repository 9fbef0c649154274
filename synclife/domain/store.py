"""
DomainStore - Estado en memoria de un usuario, sincronizado con el store remoto.

Cada mutación se aplica primero en memoria y luego se escribe en el
repositorio. Si la escritura remota falla, el estado local se mantiene y
el resultado lleva un `RemoteWriteFailure` como advertencia.
"""

import copy
import logging
import uuid
from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Awaitable, Callable

from synclife.domain.entities import (
    CreditCard,
    PaymentMethod,
    Project,
    SubTask,
    Task,
    TaskLog,
    Transaction,
    TransactionType,
)
from synclife.domain.repositories.base import IStoreRepository
from synclife.utils.dates import now_local, time_label
from synclife.utils.errors import (
    ErrorCategory,
    NotFoundError,
    RemoteWriteFailure,
    ValidationError,
    log_error,
)
from synclife.utils.text import contains_keyword

logger = logging.getLogger(__name__)

Listener = Callable[["DomainStore"], None]


@dataclass
class MutationResult:
    """
    Resultado de una mutación en dos fases.

    Attributes:
        applied: El snapshot local cambió
        confirmed: La escritura remota terminó bien (o no hacía falta)
        entity: Entidad afectada, si aplica
        warning: Falla remota cuando `confirmed` es False
    """

    applied: bool
    confirmed: bool
    entity: Any = None
    warning: RemoteWriteFailure | None = None


def _new_id() -> str:
    return str(uuid.uuid4())


def _to_decimal(value: Any, field: str) -> Decimal:
    """Convierte a Decimal; rechaza valores no numéricos o no finitos."""
    if isinstance(value, bool):
        raise ValidationError(f"'{field}' debe ser numérico", field=field)
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError(f"'{field}' debe ser numérico", field=field)
    if not amount.is_finite():
        raise ValidationError(f"'{field}' debe ser un número finito", field=field)
    return amount


class DomainStore:
    """
    Snapshot de transacciones, tareas, proyectos y tarjetas de un usuario.

    Los listados se mantienen del más nuevo al más viejo. No es un singleton:
    cada sesión de usuario crea el suyo con su repositorio.
    """

    def __init__(
        self,
        repository: IStoreRepository,
        clock: Callable[[], datetime] = now_local,
    ):
        self.repository = repository
        self.clock = clock
        self.transactions: list[Transaction] = []
        self.tasks: list[Task] = []
        self.projects: list[Project] = []
        self.cards: list[CreditCard] = []
        self._listeners: list[Listener] = []

    # ==================== Ciclo de vida ====================

    async def load(self) -> bool:
        """Recarga el snapshot desde el repositorio. Si falla, conserva el actual."""
        try:
            snapshot = await self.repository.load_snapshot()
        except Exception as e:
            log_error(e, "load_snapshot", ErrorCategory.DATABASE)
            return False

        self.transactions = snapshot.transactions
        self.tasks = snapshot.tasks
        self.projects = snapshot.projects
        self.cards = snapshot.cards
        self._notify()
        return True

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Registra un listener; devuelve la función para darlo de baja."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    async def _persist(
        self,
        operation: str,
        write: Callable[[], Awaitable[None]],
        entity: Any = None,
    ) -> MutationResult:
        """Notifica el cambio local y espera la escritura remota."""
        self._notify()
        try:
            await write()
        except Exception as e:
            log_error(e, operation, ErrorCategory.DATABASE)
            warning = RemoteWriteFailure(
                operation,
                f"Cambio guardado localmente pero no sincronizado: {e}",
            )
            return MutationResult(applied=True, confirmed=False, entity=entity, warning=warning)
        return MutationResult(applied=True, confirmed=True, entity=entity)

    @staticmethod
    def _noop() -> MutationResult:
        return MutationResult(applied=False, confirmed=True)

    # ==================== Transacciones ====================

    async def add_transaction(self, draft: Transaction) -> MutationResult:
        """
        Valida y agrega una transacción al inicio de la lista.

        Raises:
            ValidationError: nombre vacío, monto inválido o tarjeta inexistente
        """
        transaction = self._validate_transaction(draft)
        transaction.id = transaction.id or _new_id()
        self.transactions.insert(0, transaction)
        logger.info(f"Transacción agregada: {transaction.name} ({transaction.amount})")
        return await self._persist(
            "create_transaction",
            lambda: self.repository.create_transaction(transaction),
            transaction,
        )

    def _validate_transaction(self, draft: Transaction) -> Transaction:
        if not draft.name or not draft.name.strip():
            raise ValidationError("La transacción necesita un nombre", field="name")

        amount = _to_decimal(draft.amount, "amount")
        if amount <= 0:
            raise ValidationError("El monto debe ser mayor a cero", field="amount")

        try:
            tx_type = TransactionType(draft.type)
            method = PaymentMethod(draft.payment_method) if draft.payment_method else None
        except ValueError as e:
            raise ValidationError(str(e), field="type")

        card_id = draft.card_id if method == PaymentMethod.CREDIT_CARD else None
        if method == PaymentMethod.CREDIT_CARD:
            if not card_id:
                raise ValidationError("Pago con tarjeta sin tarjeta asociada", field="card_id")
            if self.get_card(card_id) is None:
                raise ValidationError(f"Tarjeta {card_id} no existe", field="card_id")

        return replace(
            draft,
            name=draft.name.strip(),
            amount=amount,
            type=tx_type,
            payment_method=method,
            card_id=card_id,
        )

    async def delete_transaction(self, id: str) -> MutationResult:
        """Elimina por id. Si no existe no hace nada."""
        transaction = self.get_transaction(id)
        if transaction is None:
            return self._noop()
        self.transactions.remove(transaction)
        return await self._persist(
            "delete_transaction",
            lambda: self.repository.delete_transaction(id),
            transaction,
        )

    async def pay_card_invoice(self, card_id: str) -> MutationResult:
        """Marca como pagados todos los gastos pendientes de la tarjeta, en un lote."""
        pending = [
            t for t in self.transactions
            if t.card_id == card_id and t.is_expense and not t.is_paid
        ]
        if not pending:
            return self._noop()

        for transaction in pending:
            transaction.is_paid = True
        ids = [t.id for t in pending]
        logger.info(f"Fatura de tarjeta {card_id} pagada: {len(ids)} transacciones")
        return await self._persist(
            "mark_transactions_paid",
            lambda: self.repository.mark_transactions_paid(ids),
            ids,
        )

    # ==================== Tareas ====================

    async def add_task(self, draft: Task) -> MutationResult:
        """Agrega una tarea al inicio de la lista."""
        task = self._prepare_task(draft)
        task.id = task.id or _new_id()
        self.tasks.insert(0, task)
        logger.info(f"Tarea agregada: {task.title}")
        return await self._persist(
            "create_task",
            lambda: self.repository.create_task(task),
            task,
        )

    async def update_task(self, task: Task) -> MutationResult:
        """Reemplaza la tarea completa (last-write-wins)."""
        index = self._task_index(task.id)
        updated = self._prepare_task(task)
        self.tasks[index] = updated
        return await self._persist(
            "update_task",
            lambda: self.repository.update_task(updated),
            updated,
        )

    async def delete_task(self, id: str) -> MutationResult:
        """Elimina la tarea junto con sus subtareas y logs."""
        task = self.get_task(id)
        if task is None:
            return self._noop()
        self.tasks.remove(task)
        return await self._persist(
            "delete_task",
            lambda: self.repository.delete_task(id),
            task,
        )

    async def toggle_task(self, id: str) -> MutationResult:
        task = self._require_task(id)
        return await self.update_task(replace(task, completed=not task.completed))

    async def add_subtask(self, task_id: str, title: str) -> MutationResult:
        if not title or not title.strip():
            raise ValidationError("La subtarea necesita un título", field="title")
        task = copy.deepcopy(self._require_task(task_id))
        task.subtasks.append(SubTask(id=_new_id(), title=title.strip()))
        return await self.update_task(task)

    async def toggle_subtask(self, task_id: str, subtask_id: str) -> MutationResult:
        task = copy.deepcopy(self._require_task(task_id))
        for subtask in task.subtasks:
            if subtask.id == subtask_id:
                subtask.completed = not subtask.completed
                return await self.update_task(task)
        raise NotFoundError(f"Subtarea {subtask_id} no encontrada")

    async def add_task_log(self, task_id: str, text: str) -> MutationResult:
        """Agrega una nota al historial; la más nueva va primero."""
        if not text or not text.strip():
            raise ValidationError("El log necesita texto", field="text")
        task = copy.deepcopy(self._require_task(task_id))
        log = TaskLog(id=_new_id(), text=text.strip(), timestamp=time_label(self.clock()))
        task.logs.insert(0, log)
        return await self.update_task(task)

    async def cycle_priority(self, task_id: str) -> MutationResult:
        task = self._require_task(task_id)
        return await self.update_task(replace(task, priority=task.priority.cycle()))

    def _prepare_task(self, draft: Task) -> Task:
        if not draft.title or not draft.title.strip():
            raise ValidationError("La tarea necesita un título", field="title")
        task = copy.deepcopy(draft)
        task.title = task.title.strip()
        for subtask in task.subtasks:
            subtask.id = subtask.id or _new_id()
        for log in task.logs:
            log.id = log.id or _new_id()
        return task

    def _task_index(self, id: str) -> int:
        for index, task in enumerate(self.tasks):
            if task.id == id:
                return index
        raise NotFoundError(f"Tarea {id} no encontrada")

    def _require_task(self, id: str) -> Task:
        return self.tasks[self._task_index(id)]

    # ==================== Proyectos ====================

    async def add_project(self, draft: Project) -> MutationResult:
        if not draft.name or not draft.name.strip():
            raise ValidationError("El proyecto necesita un nombre", field="name")
        project = replace(draft, id=draft.id or _new_id(), name=draft.name.strip())
        self.projects.insert(0, project)
        return await self._persist(
            "create_project",
            lambda: self.repository.create_project(project),
            project,
        )

    async def delete_project(self, id: str) -> MutationResult:
        """Elimina el proyecto y desvincula sus tareas, local y remotamente."""
        project = self.get_project(id)
        if project is None:
            return self._noop()

        orphaned = []
        for index, task in enumerate(self.tasks):
            if task.project_id == id:
                self.tasks[index] = replace(task, project_id=None)
                orphaned.append(self.tasks[index])
        self.projects.remove(project)

        logger.info(f"Proyecto eliminado: {project.name} ({len(orphaned)} tareas desvinculadas)")
        return await self._persist(
            "delete_project",
            lambda: self.repository.delete_project(id, orphaned),
            project,
        )

    # ==================== Tarjetas ====================

    async def add_card(self, draft: CreditCard) -> MutationResult:
        if not draft.name or not draft.name.strip():
            raise ValidationError("La tarjeta necesita un nombre", field="name")
        limit_amount = _to_decimal(draft.limit_amount, "limit_amount")
        if limit_amount < 0:
            raise ValidationError("El límite no puede ser negativo", field="limit_amount")
        for field in ("due_day", "closing_day"):
            day = getattr(draft, field)
            if not isinstance(day, int) or isinstance(day, bool) or not 1 <= day <= 31:
                raise ValidationError(f"'{field}' debe estar entre 1 y 31", field=field)

        card = replace(
            draft,
            id=draft.id or _new_id(),
            name=draft.name.strip(),
            limit_amount=limit_amount,
        )
        self.cards.insert(0, card)
        return await self._persist(
            "create_card",
            lambda: self.repository.create_card(card),
            card,
        )

    async def delete_card(self, id: str) -> MutationResult:
        """Elimina la tarjeta. Sus transacciones conservan el `card_id`."""
        card = self.get_card(id)
        if card is None:
            return self._noop()
        self.cards.remove(card)
        return await self._persist(
            "delete_card",
            lambda: self.repository.delete_card(id),
            card,
        )

    # ==================== Consultas ====================

    def get_transaction(self, id: str) -> Transaction | None:
        return next((t for t in self.transactions if t.id == id), None)

    def get_task(self, id: str) -> Task | None:
        return next((t for t in self.tasks if t.id == id), None)

    def get_project(self, id: str) -> Project | None:
        return next((p for p in self.projects if p.id == id), None)

    def get_card(self, id: str) -> CreditCard | None:
        return next((c for c in self.cards if c.id == id), None)

    def find_transaction(self, keyword: str) -> Transaction | None:
        """Primera transacción cuyo nombre contiene `keyword`."""
        return next((t for t in self.transactions if contains_keyword(t.name, keyword)), None)

    def find_task(self, keyword: str) -> Task | None:
        """Primera tarea cuyo título contiene `keyword`."""
        return next((t for t in self.tasks if contains_keyword(t.title, keyword)), None)

    def find_card(self, keyword: str) -> CreditCard | None:
        return next((c for c in self.cards if contains_keyword(c.name, keyword)), None)

"""
Repository Interfaces - Contratos para la capa de persistencia.

El DomainStore solo conoce esta interfaz; la implementación concreta
(SQLAlchemy) se inyecta al crear la sesión del usuario.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from synclife.domain.entities import CreditCard, Project, Task, Transaction


@dataclass
class StoreSnapshot:
    """Estado completo de un usuario, en el orden de presentación."""

    transactions: list[Transaction] = field(default_factory=list)
    tasks: list[Task] = field(default_factory=list)
    projects: list[Project] = field(default_factory=list)
    cards: list[CreditCard] = field(default_factory=list)


class IStoreRepository(ABC):
    """
    Interface para el store remoto de un usuario.

    Todas las operaciones pueden fallar (red, auth); el DomainStore
    decide cómo reportar esos fallos.
    """

    # ==================== Lectura ====================

    @abstractmethod
    async def load_snapshot(self) -> StoreSnapshot:
        """Carga transacciones, tareas, proyectos y tarjetas."""
        pass

    # ==================== Transacciones ====================

    @abstractmethod
    async def create_transaction(self, transaction: Transaction) -> None:
        pass

    @abstractmethod
    async def delete_transaction(self, id: str) -> None:
        pass

    @abstractmethod
    async def mark_transactions_paid(self, ids: list[str]) -> None:
        """Marca un lote de transacciones como pagadas."""
        pass

    # ==================== Tareas ====================

    @abstractmethod
    async def create_task(self, task: Task) -> None:
        pass

    @abstractmethod
    async def update_task(self, task: Task) -> None:
        """Reemplaza la tarea completa, incluyendo subtareas y logs."""
        pass

    @abstractmethod
    async def delete_task(self, id: str) -> None:
        pass

    # ==================== Proyectos ====================

    @abstractmethod
    async def create_project(self, project: Project) -> None:
        pass

    @abstractmethod
    async def delete_project(self, id: str, orphaned_tasks: list[Task]) -> None:
        """Elimina el proyecto y desvincula las tareas que lo referencian."""
        pass

    # ==================== Tarjetas ====================

    @abstractmethod
    async def create_card(self, card: CreditCard) -> None:
        pass

    @abstractmethod
    async def delete_card(self, id: str) -> None:
        """Elimina la tarjeta sin tocar sus transacciones."""
        pass

"""
Sesiones de usuario.

Cada usuario autenticado tiene su propio DomainStore y CommandDispatcher;
los resúmenes de tarjetas y las notificaciones se recalculan cada vez que
el store cambia. El registro vive en `app.state`, no en un global.
"""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Callable

from synclife.brain.core import CommandDispatcher
from synclife.brain.llm import ChatSessionFactory
from synclife.config import get_settings
from synclife.domain.repositories.base import IStoreRepository
from synclife.domain.services.invoices import CardSummary, summarize_cards
from synclife.domain.services.notifications import (
    Notification,
    derive_notifications,
    run_notification_action,
)
from synclife.domain.store import DomainStore, MutationResult
from synclife.utils.dates import now_local
from synclife.utils.errors import NotFoundError

logger = logging.getLogger(__name__)

RepositoryFactory = Callable[[str], IStoreRepository]


class UserSession:
    """Store, dispatcher y salidas derivadas de un usuario."""

    def __init__(
        self,
        user_id: str,
        store: DomainStore,
        dispatcher: CommandDispatcher,
        clock: Callable[[], datetime] = now_local,
    ):
        self.user_id = user_id
        self.store = store
        self.dispatcher = dispatcher
        self.clock = clock
        self.loaded = False
        self.last_seen = clock()
        self.card_summaries: list[CardSummary] = []
        self.notifications: list[Notification] = []
        self._unsubscribe = store.subscribe(self._recompute)
        self._recompute(store)

    def _recompute(self, store: DomainStore) -> None:
        today = self.clock().date()
        self.card_summaries = summarize_cards(store.cards, store.transactions, today.day)
        self.notifications = derive_notifications(
            store.tasks, store.cards, store.transactions, today
        )

    def refresh(self) -> None:
        """Recalcula las salidas derivadas (p.ej. si cambió el día)."""
        self._recompute(self.store)

    def get_notification(self, notification_id: str) -> Notification:
        for notification in self.notifications:
            if notification.id == notification_id:
                return notification
        raise NotFoundError(f"Notificación {notification_id} no encontrada")

    async def run_action(self, notification_id: str) -> MutationResult:
        self.refresh()
        return await run_notification_action(self.store, self.get_notification(notification_id))

    def close(self) -> None:
        self.dispatcher.close_chat()
        self._unsubscribe()


class SessionRegistry:
    """
    Crea y descarta sesiones de usuario.

    Las sesiones sin uso durante `idle_timeout` se descartan en el siguiente
    `get()`. Si la carga inicial del snapshot falló, se reintenta en cada
    `get()` hasta que funcione.

    Uso:
        registry = SessionRegistry(SqlStoreRepository, GeminiChatFactory())
        session = await registry.get("user-123")
        await registry.close("user-123")
    """

    def __init__(
        self,
        repository_factory: RepositoryFactory,
        chat_factory: ChatSessionFactory,
        clock: Callable[[], datetime] = now_local,
        idle_timeout: timedelta | None = None,
    ):
        self.repository_factory = repository_factory
        self.chat_factory = chat_factory
        self.clock = clock
        self.idle_timeout = idle_timeout or timedelta(
            minutes=get_settings().session_idle_minutes
        )
        self._sessions: dict[str, UserSession] = {}
        self._lock = asyncio.Lock()

    def __contains__(self, user_id: str) -> bool:
        return user_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    async def get(self, user_id: str) -> UserSession:
        """Devuelve la sesión del usuario, creándola y cargando su snapshot si no existe."""
        async with self._lock:
            now = self.clock()
            self._evict_idle(now, keep=user_id)

            session = self._sessions.get(user_id)
            if session is None:
                store = DomainStore(self.repository_factory(user_id), clock=self.clock)
                dispatcher = CommandDispatcher(store, self.chat_factory, clock=self.clock)
                session = UserSession(user_id, store, dispatcher, clock=self.clock)
                self._sessions[user_id] = session
                logger.info(f"Sesión creada para {user_id}")

            if not session.loaded:
                session.loaded = await session.store.load()
                if not session.loaded:
                    logger.warning(f"Snapshot de {user_id} no cargado; se reintentará")

            session.last_seen = now
            return session

    def _evict_idle(self, now: datetime, keep: str) -> None:
        expired = [
            user_id
            for user_id, session in self._sessions.items()
            if user_id != keep and now - session.last_seen > self.idle_timeout
        ]
        for user_id in expired:
            self._sessions.pop(user_id).close()
            logger.info(f"Sesión de {user_id} descartada por inactividad")

    async def close(self, user_id: str) -> None:
        async with self._lock:
            session = self._sessions.pop(user_id, None)
        if session:
            session.close()
            logger.info(f"Sesión cerrada para {user_id}")

    async def close_all(self) -> None:
        async with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for session in sessions:
            session.close()
        logger.info(f"{len(sessions)} sesiones cerradas")

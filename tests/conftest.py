"""Pytest configuration and fixtures for SyncLife tests."""

import os
from datetime import date, datetime
from decimal import Decimal

import pytest
import pytz

# Set test environment
os.environ["APP_ENV"] = "test"
os.environ["DEBUG"] = "false"
os.environ["GEMINI_API_KEY"] = "test_gemini_key"
os.environ["DATABASE_DSN"] = "sqlite+aiosqlite://"
os.environ["TZ"] = "America/Sao_Paulo"

from synclife.brain.llm import ChatSession, ChatSessionFactory, LLMReply, ToolCall  # noqa: E402
from synclife.domain.entities import (  # noqa: E402
    CreditCard,
    PaymentMethod,
    Project,
    Task,
    Transaction,
    TransactionType,
)
from synclife.domain.repositories.base import IStoreRepository, StoreSnapshot  # noqa: E402
from synclife.domain.store import DomainStore  # noqa: E402

FIXED_NOW = pytz.timezone("America/Sao_Paulo").localize(datetime(2026, 10, 18, 9, 30))
TODAY = FIXED_NOW.date()


def fixed_clock() -> datetime:
    return FIXED_NOW


# ==================== FAKES ====================


class FakeRepository(IStoreRepository):
    """Repositorio en memoria que registra cada llamada."""

    def __init__(self, snapshot: StoreSnapshot | None = None):
        self.snapshot = snapshot or StoreSnapshot()
        self.calls: list[tuple] = []
        self.fail = False
        self.fail_load = False

    async def _record(self, name: str, *args) -> None:
        self.calls.append((name, *args))
        if self.fail:
            raise ConnectionError("remote store unavailable")

    def call_names(self) -> list[str]:
        return [c[0] for c in self.calls]

    async def load_snapshot(self) -> StoreSnapshot:
        if self.fail_load:
            raise ConnectionError("remote store unavailable")
        return StoreSnapshot(
            transactions=list(self.snapshot.transactions),
            tasks=list(self.snapshot.tasks),
            projects=list(self.snapshot.projects),
            cards=list(self.snapshot.cards),
        )

    async def create_transaction(self, transaction):
        await self._record("create_transaction", transaction)

    async def delete_transaction(self, id):
        await self._record("delete_transaction", id)

    async def mark_transactions_paid(self, ids):
        await self._record("mark_transactions_paid", list(ids))

    async def create_task(self, task):
        await self._record("create_task", task)

    async def update_task(self, task):
        await self._record("update_task", task)

    async def delete_task(self, id):
        await self._record("delete_task", id)

    async def create_project(self, project):
        await self._record("create_project", project)

    async def delete_project(self, id, orphaned_tasks):
        await self._record("delete_project", id, list(orphaned_tasks))

    async def create_card(self, card):
        await self._record("create_card", card)

    async def delete_card(self, id):
        await self._record("delete_card", id)


class FakeChatSession(ChatSession):
    """Sesión con respuestas guionadas; registra lo enviado."""

    def __init__(self, replies: list[LLMReply | Exception] | None = None):
        self.replies = list(replies or [])
        self.sent: list[dict] = []
        self.tool_results: list[list] = []

    def _next(self) -> LLMReply:
        if not self.replies:
            return LLMReply(text="Ok.")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply

    async def send(self, text=None, media=None) -> LLMReply:
        self.sent.append({"text": text, "media": media})
        return self._next()

    async def send_tool_results(self, outputs) -> LLMReply:
        self.tool_results.append(list(outputs))
        return self._next()


class FakeChatFactory(ChatSessionFactory):
    """Entrega sesiones guionadas y guarda la instrucción de sistema."""

    def __init__(self, *sessions: FakeChatSession):
        self.sessions = list(sessions)
        self.created: list[FakeChatSession] = []
        self.instructions: list[str] = []
        self.declarations: list[list[dict]] = []

    def create(self, system_instruction, tool_declarations) -> ChatSession:
        self.instructions.append(system_instruction)
        self.declarations.append(tool_declarations)
        session = self.sessions.pop(0) if self.sessions else FakeChatSession()
        self.created.append(session)
        return session


def tool_reply(*calls: tuple[str, dict], text: str | None = None) -> LLMReply:
    """LLMReply con tool calls `(name, args)` numerados en orden."""
    return LLMReply(
        text=text,
        tool_calls=[ToolCall(id=f"call_{i}", name=name, args=args) for i, (name, args) in enumerate(calls)],
    )


# ==================== FIXTURES ====================


@pytest.fixture
def clock():
    return fixed_clock


@pytest.fixture
def repository():
    return FakeRepository()


@pytest.fixture
def store(repository):
    return DomainStore(repository, clock=fixed_clock)


@pytest.fixture
def sample_card():
    return CreditCard(
        id="card_nubank",
        name="Nubank",
        limit_amount=Decimal("1000"),
        due_day=10,
        closing_day=3,
        last_digits="1234",
    )


@pytest.fixture
def sample_cards(sample_card):
    return [
        sample_card,
        CreditCard(id="card_inter", name="Inter", limit_amount=Decimal("500"), due_day=25, last_digits="9876"),
    ]


@pytest.fixture
def sample_transactions():
    return [
        Transaction(
            id="tx_uber",
            name="Uber",
            amount=Decimal("32.50"),
            date="2026-10-17",
            type=TransactionType.EXPENSE,
            payment_method=PaymentMethod.CREDIT_CARD,
            card_id="card_nubank",
        ),
        Transaction(
            id="tx_salario",
            name="Salário",
            amount=Decimal("5000"),
            date="2026-10-05",
            type=TransactionType.INCOME,
            payment_method=PaymentMethod.PIX,
        ),
        Transaction(
            id="tx_mercado",
            name="Mercado",
            amount=Decimal("250"),
            date="2026-10-02",
            type=TransactionType.EXPENSE,
            payment_method=PaymentMethod.PIX,
        ),
    ]


@pytest.fixture
def sample_project():
    return Project(id="proj_casa", name="Casa", logo="🏠", color="green")


@pytest.fixture
def sample_tasks():
    return [
        Task(id="task_relatorio", title="Enviar relatório", date=date(2026, 10, 15), time="10:00"),
        Task(id="task_academia", title="Academia", date=TODAY, time="18:00", project_id="proj_casa"),
        Task(id="task_dentista", title="Dentista", date=date(2026, 10, 25), time="14:00"),
    ]


@pytest.fixture
def loaded_repository(sample_transactions, sample_tasks, sample_project, sample_cards):
    return FakeRepository(
        StoreSnapshot(
            transactions=sample_transactions,
            tasks=sample_tasks,
            projects=[sample_project],
            cards=sample_cards,
        )
    )


@pytest.fixture
async def loaded_store(loaded_repository):
    store = DomainStore(loaded_repository, clock=fixed_clock)
    await store.load()
    return store

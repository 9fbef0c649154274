"""Tests for the assistant tools."""

from datetime import date
from decimal import Decimal

import pytest

from conftest import TODAY
from synclife.brain.tools import GENERIC_FAILURE, SYNC_PENDING_SUFFIX, ToolRegistry
from synclife.domain.entities import TODAY_SENTINEL, PaymentMethod, TransactionType


@pytest.fixture
def tools(store, clock):
    return ToolRegistry(store, clock)


@pytest.fixture
def loaded_tools(loaded_store, clock):
    return ToolRegistry(loaded_store, clock)


class TestRegistry:
    """Test suite for the tool registry."""

    def test_fixed_tool_set(self, tools):
        assert tools.names == [
            "createTransaction",
            "deleteTransaction",
            "createTask",
            "updateTask",
        ]

    def test_declarations_shape(self, tools):
        declarations = {d["name"]: d for d in tools.get_declarations()}

        assert declarations["createTransaction"]["parameters"]["required"] == ["name", "amount", "type"]
        assert declarations["updateTask"]["parameters"]["properties"]["action"]["enum"] == [
            "complete",
            "delete",
            "reschedule",
        ]

    @pytest.mark.asyncio
    async def test_unknown_tool(self, tools, repository):
        result = await tools.execute("sendEmail", {"to": "x"})

        assert result.success is False
        assert result.message == 'Ação desconhecida: "sendEmail".'
        assert repository.calls == []

    @pytest.mark.asyncio
    async def test_validation_error_becomes_generic_message(self, tools, store):
        """Test tool failures are narrated, never raised."""
        result = await tools.execute("createTransaction", {"name": "Café", "amount": -3, "type": "expense"})

        assert result.success is False
        assert result.message == GENERIC_FAILURE
        assert store.transactions == []


class TestCreateTransaction:
    """Test suite for createTransaction."""

    @pytest.mark.asyncio
    async def test_coffee_expense(self, tools, store, repository):
        result = await tools.execute(
            "createTransaction",
            {"name": "Café", "amount": 20, "type": "expense"},
        )

        assert result.success is True
        assert result.message == "Transação salva: Café - R$ 20,00"
        transaction = store.transactions[0]
        assert transaction.amount == Decimal("20")
        assert transaction.date == TODAY_SENTINEL
        assert transaction.payment_method == PaymentMethod.PIX
        assert transaction.card_id is None
        assert repository.call_names() == ["create_transaction"]

    @pytest.mark.asyncio
    async def test_credit_card_by_keyword(self, loaded_tools, loaded_store):
        result = await loaded_tools.execute(
            "createTransaction",
            {
                "name": "Cinema",
                "amount": 45.9,
                "type": "expense",
                "paymentMethod": "credit_card",
                "cardKeyword": "inter",
            },
        )

        assert result.message == "Transação salva: Cinema - R$ 45,90 (Cartão)"
        assert loaded_store.transactions[0].card_id == "card_inter"

    @pytest.mark.asyncio
    async def test_credit_card_falls_back_to_first_card(self, loaded_tools, loaded_store):
        await loaded_tools.execute(
            "createTransaction",
            {"name": "Livro", "amount": 30, "type": "expense", "paymentMethod": "credit_card"},
        )

        assert loaded_store.transactions[0].card_id == "card_nubank"

    @pytest.mark.asyncio
    async def test_credit_card_without_cards_becomes_pix(self, tools, store):
        result = await tools.execute(
            "createTransaction",
            {"name": "Livro", "amount": 30, "type": "expense", "paymentMethod": "credit_card"},
        )

        assert result.success is True
        assert store.transactions[0].payment_method == PaymentMethod.PIX
        assert store.transactions[0].card_id is None

    @pytest.mark.asyncio
    async def test_income_defaults(self, tools, store):
        await tools.execute("createTransaction", {"name": "Freela", "amount": "800", "type": "income"})

        transaction = store.transactions[0]
        assert transaction.type == TransactionType.INCOME
        assert transaction.icon == "attach_money"
        assert transaction.color == "green"

    @pytest.mark.asyncio
    async def test_remote_failure_is_flagged(self, tools, store, repository):
        repository.fail = True

        result = await tools.execute("createTransaction", {"name": "Café", "amount": 20, "type": "expense"})

        assert result.success is True
        assert result.message.endswith(SYNC_PENDING_SUFFIX)
        assert len(store.transactions) == 1


class TestDeleteTransaction:
    """Test suite for deleteTransaction."""

    @pytest.mark.asyncio
    async def test_delete_by_keyword(self, loaded_tools, loaded_store):
        result = await loaded_tools.execute("deleteTransaction", {"keyword": "merc"})

        assert result.message == "Transação removida: Mercado"
        assert loaded_store.get_transaction("tx_mercado") is None

    @pytest.mark.asyncio
    async def test_not_found(self, loaded_tools, loaded_store, loaded_repository):
        result = await loaded_tools.execute("deleteTransaction", {"keyword": "pizza"})

        assert result.success is False
        assert result.message == 'Não encontrei transação com nome "pizza".'
        assert len(loaded_store.transactions) == 3
        assert loaded_repository.calls == []


class TestTaskTools:
    """Test suite for createTask and updateTask."""

    @pytest.mark.asyncio
    async def test_create_task_defaults_to_today(self, tools, store):
        result = await tools.execute("createTask", {"title": "Ligar pro banco"})

        task = store.tasks[0]
        assert result.message == "Tarefa criada: Ligar pro banco"
        assert task.date == TODAY
        assert task.time == "09:30"
        assert task.category == "Geral"

    @pytest.mark.asyncio
    async def test_create_task_with_date(self, tools, store):
        await tools.execute(
            "createTask",
            {"title": "Consulta", "date": "2026-11-03", "category": "Saúde", "categoryIcon": "favorite"},
        )

        task = store.tasks[0]
        assert task.date == date(2026, 11, 3)
        assert task.category_icon == "favorite"

    @pytest.mark.asyncio
    async def test_create_task_bad_date(self, tools, store):
        result = await tools.execute("createTask", {"title": "Consulta", "date": "amanhã"})

        assert result.message == GENERIC_FAILURE
        assert store.tasks == []

    @pytest.mark.asyncio
    async def test_complete(self, loaded_tools, loaded_store):
        result = await loaded_tools.execute("updateTask", {"keyword": "dentista", "action": "complete"})

        assert result.message == "Tarefa concluída: Dentista"
        assert loaded_store.get_task("task_dentista").completed is True

    @pytest.mark.asyncio
    async def test_delete(self, loaded_tools, loaded_store):
        result = await loaded_tools.execute("updateTask", {"keyword": "academia", "action": "delete"})

        assert result.message == "Tarefa apagada: Academia"
        assert loaded_store.get_task("task_academia") is None

    @pytest.mark.asyncio
    async def test_reschedule(self, loaded_tools, loaded_store):
        result = await loaded_tools.execute(
            "updateTask",
            {"keyword": "relat", "action": "reschedule", "newDate": "2026-10-20"},
        )

        assert result.message == "Tarefa reagendada: Enviar relatório para 2026-10-20"
        assert loaded_store.get_task("task_relatorio").date == date(2026, 10, 20)

    @pytest.mark.asyncio
    async def test_reschedule_without_date(self, loaded_tools, loaded_repository):
        result = await loaded_tools.execute("updateTask", {"keyword": "relat", "action": "reschedule"})

        assert result.success is False
        assert result.message == 'Preciso de uma nova data para reagendar "Enviar relatório".'
        assert loaded_repository.calls == []

    @pytest.mark.asyncio
    async def test_task_not_found(self, loaded_tools):
        result = await loaded_tools.execute("updateTask", {"keyword": "viagem", "action": "complete"})

        assert result.message == 'Não encontrei a tarefa "viagem".'

    @pytest.mark.asyncio
    async def test_invalid_action(self, loaded_tools, loaded_store):
        result = await loaded_tools.execute("updateTask", {"keyword": "dentista", "action": "archive"})

        assert result.message == GENERIC_FAILURE
        assert loaded_store.get_task("task_dentista").completed is False

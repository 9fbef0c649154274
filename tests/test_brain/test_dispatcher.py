"""Tests for CommandDispatcher."""

import asyncio

import pytest

from conftest import FakeChatFactory, FakeChatSession, fixed_clock, tool_reply
from synclife.brain.core import (
    AUDIO_FAILURE,
    AUDIO_PLACEHOLDER,
    IMAGE_PLACEHOLDER,
    TURN_FAILURE,
    CommandDispatcher,
    MessageRole,
)
from synclife.brain.llm import LLMReply
from synclife.brain.prompts import AUDIO_PROMPT
from synclife.domain.entities import Task
from synclife.utils.errors import ConversationBusyError, ExternalServiceFailure, ValidationError


def _dispatcher(store, *sessions, max_tool_iterations=None):
    factory = FakeChatFactory(*sessions)
    dispatcher = CommandDispatcher(
        store,
        factory,
        clock=fixed_clock,
        max_tool_iterations=max_tool_iterations,
    )
    return dispatcher, factory


def _roles(messages):
    return [(m.role, m.is_action) for m in messages]


class TestTurns:
    """Test suite for a full conversational turn."""

    @pytest.mark.asyncio
    async def test_plain_text_reply(self, store):
        session = FakeChatSession([LLMReply(text="Oi! Como posso ajudar?")])
        dispatcher, _ = _dispatcher(store, session)

        messages = await dispatcher.handle_message("Oi")

        assert [(m.role, m.text) for m in messages] == [
            (MessageRole.USER, "Oi"),
            (MessageRole.MODEL, "Oi! Como posso ajudar?"),
        ]
        assert session.sent == [{"text": "Oi", "media": None}]

    @pytest.mark.asyncio
    async def test_blank_message_ignored(self, store):
        dispatcher, factory = _dispatcher(store)

        assert await dispatcher.handle_message("   ") == []
        assert factory.created == []
        assert dispatcher.transcript == []

    @pytest.mark.asyncio
    async def test_coffee_expense_end_to_end(self, store, repository):
        """Test a single tool call is executed and narrated."""
        session = FakeChatSession([
            tool_reply(("createTransaction", {"name": "Café", "amount": 20, "type": "expense"})),
            LLMReply(text="Pronto, anotei o café."),
        ])
        dispatcher, _ = _dispatcher(store, session)

        messages = await dispatcher.handle_message("Gastei 20 reais num café")

        assert _roles(messages) == [
            (MessageRole.USER, False),
            (MessageRole.SYSTEM, True),
            (MessageRole.MODEL, False),
        ]
        assert messages[1].text == "Transação salva: Café - R$ 20,00"
        assert store.transactions[0].name == "Café"
        assert repository.call_names() == ["create_transaction"]
        outputs = session.tool_results[0]
        assert [(o.call_id, o.name, o.result) for o in outputs] == [
            ("call_0", "createTransaction", "Transação salva: Café - R$ 20,00"),
        ]

    @pytest.mark.asyncio
    async def test_batch_results_in_order(self, loaded_store):
        """Test a mixed batch runs in order and returns one output per call."""
        session = FakeChatSession([
            tool_reply(
                ("createTask", {"title": "Pagar luz"}),
                ("launchRocket", {}),
                ("deleteTransaction", {"keyword": "pizza"}),
            ),
            LLMReply(text="Feito em parte."),
        ])
        dispatcher, _ = _dispatcher(loaded_store, session)

        messages = await dispatcher.handle_message("Várias coisas")

        actions = [m.text for m in messages if m.is_action]
        assert actions == [
            "Tarefa criada: Pagar luz",
            'Ação desconhecida: "launchRocket".',
            'Não encontrei transação com nome "pizza".',
        ]
        assert len(session.tool_results) == 1
        assert [o.call_id for o in session.tool_results[0]] == ["call_0", "call_1", "call_2"]
        assert loaded_store.tasks[0].title == "Pagar luz"

    @pytest.mark.asyncio
    async def test_multiple_rounds(self, store):
        session = FakeChatSession([
            tool_reply(("createTask", {"title": "Um"})),
            tool_reply(("createTask", {"title": "Dois"})),
            LLMReply(text="Criei as duas."),
        ])
        dispatcher, _ = _dispatcher(store, session)

        await dispatcher.handle_message("Cria duas tarefas")

        assert [t.title for t in store.tasks] == ["Dois", "Um"]
        assert len(session.tool_results) == 2

    @pytest.mark.asyncio
    async def test_service_failure_narrated(self, store):
        session = FakeChatSession([ExternalServiceFailure("quota exceeded")])
        dispatcher, _ = _dispatcher(store, session)

        messages = await dispatcher.handle_message("Oi")

        assert messages[-1].role == MessageRole.SYSTEM
        assert messages[-1].text == TURN_FAILURE
        assert dispatcher.is_busy is False

    @pytest.mark.asyncio
    async def test_failure_after_tools_keeps_mutations(self, store):
        session = FakeChatSession([
            tool_reply(("createTask", {"title": "Salva"})),
            ExternalServiceFailure("timeout"),
        ])
        dispatcher, _ = _dispatcher(store, session)

        messages = await dispatcher.handle_message("Cria tarefa")

        assert store.tasks[0].title == "Salva"
        assert messages[-1].text == TURN_FAILURE

    @pytest.mark.asyncio
    async def test_tool_loop_is_bounded(self, store):
        """Test a model that never stops calling tools is cut off."""
        session = FakeChatSession([
            tool_reply(("createTask", {"title": f"Loop {i}"})) for i in range(5)
        ])
        dispatcher, _ = _dispatcher(store, session, max_tool_iterations=2)

        messages = await dispatcher.handle_message("Loop")

        assert len(store.tasks) == 2
        assert messages[-1].text == TURN_FAILURE
        assert len(session.tool_results) == 2


class TestMedia:
    """Test suite for audio and image turns."""

    @pytest.mark.asyncio
    async def test_audio_turn(self, store):
        session = FakeChatSession([LLMReply(text="Entendi.")])
        dispatcher, _ = _dispatcher(store, session)

        messages = await dispatcher.handle_audio(b"\x00\x01", "audio/ogg")

        assert messages[0].text == AUDIO_PLACEHOLDER
        sent = session.sent[0]
        assert sent["text"] == AUDIO_PROMPT
        assert sent["media"][0].mime_type == "audio/ogg"
        assert sent["media"][0].data == b"\x00\x01"

    @pytest.mark.asyncio
    async def test_audio_failure_message(self, store):
        session = FakeChatSession([ExternalServiceFailure("bad audio")])
        dispatcher, _ = _dispatcher(store, session)

        messages = await dispatcher.handle_audio(b"\x00")

        assert messages[-1].text == AUDIO_FAILURE
        assert session.sent[0]["media"][0].mime_type == "audio/webm"

    @pytest.mark.asyncio
    async def test_empty_audio_rejected(self, store):
        dispatcher, _ = _dispatcher(store)

        with pytest.raises(ValidationError):
            await dispatcher.handle_audio(b"")

    @pytest.mark.asyncio
    async def test_image_with_caption(self, store):
        session = FakeChatSession()
        dispatcher, _ = _dispatcher(store, session)

        messages = await dispatcher.handle_image(b"\xff\xd8", "image/jpeg", caption="almoço")

        assert messages[0].text == f"{IMAGE_PLACEHOLDER}: almoço"
        assert session.sent[0]["text"].endswith("Legenda do usuário: almoço")


class TestChatWindow:
    """Test suite for session lifetime."""

    @pytest.mark.asyncio
    async def test_session_reused_within_window(self, store):
        dispatcher, factory = _dispatcher(store)

        await dispatcher.handle_message("Um")
        await dispatcher.handle_message("Dois")

        assert len(factory.created) == 1
        assert len(dispatcher.transcript) == 4

    @pytest.mark.asyncio
    async def test_close_discards_session_and_transcript(self, loaded_store):
        dispatcher, factory = _dispatcher(loaded_store)
        await dispatcher.handle_message("Um")

        dispatcher.close_chat()
        await loaded_store.add_task(Task(title="Nova"))
        await dispatcher.handle_message("Dois")

        assert len(factory.created) == 2
        assert len(dispatcher.transcript) == 2
        assert "Nova" not in factory.instructions[0]
        assert "Nova" in factory.instructions[1]

    @pytest.mark.asyncio
    async def test_declarations_passed_to_session(self, store):
        dispatcher, factory = _dispatcher(store)

        await dispatcher.handle_message("Oi")

        assert [d["name"] for d in factory.declarations[0]] == dispatcher.tools.names

    @pytest.mark.asyncio
    async def test_close_during_send_drops_turn(self, store, repository):
        """Test a reply arriving after close is neither executed nor shown."""
        dispatcher, _ = _dispatcher(store)

        class ClosingSession(FakeChatSession):
            async def send(self, text=None, media=None):
                dispatcher.close_chat()
                return tool_reply(("createTask", {"title": "Tarde demais"}))

        dispatcher.session_factory = FakeChatFactory(ClosingSession())

        messages = await dispatcher.handle_message("Cria tarefa")

        assert messages == []
        assert dispatcher.transcript == []
        assert store.tasks == []
        assert repository.calls == []

    @pytest.mark.asyncio
    async def test_close_between_tools_stops_batch(self, store):
        """Test mutations already applied stay and the rest of the batch is skipped."""
        session = FakeChatSession([
            tool_reply(("createTask", {"title": "Primeira"}), ("createTask", {"title": "Segunda"})),
        ])
        dispatcher, _ = _dispatcher(store, session)
        store.subscribe(lambda s: dispatcher.close_chat())

        messages = await dispatcher.handle_message("Cria duas")

        assert messages == []
        assert [t.title for t in store.tasks] == ["Primeira"]
        assert session.tool_results == []
        assert dispatcher.is_busy is False

    @pytest.mark.asyncio
    async def test_busy_rejects_concurrent_turn(self, store):
        release = asyncio.Event()

        class SlowSession(FakeChatSession):
            async def send(self, text=None, media=None):
                await release.wait()
                return LLMReply(text="Terminei.")

        dispatcher, _ = _dispatcher(store, SlowSession())

        first = asyncio.create_task(dispatcher.handle_message("Um"))
        await asyncio.sleep(0)
        assert dispatcher.is_busy is True

        with pytest.raises(ConversationBusyError):
            await dispatcher.handle_message("Dois")

        release.set()
        messages = await first
        assert messages[-1].text == "Terminei."
        assert dispatcher.is_busy is False

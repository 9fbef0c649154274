"""Tests for the Gemini adapter."""

from unittest.mock import AsyncMock, MagicMock, patch

import google.generativeai as genai
import pytest

from synclife.brain.llm import (
    GeminiChatFactory,
    GeminiChatSession,
    MediaPart,
    ToolOutput,
    _parse_response,
)
from synclife.utils.errors import ExternalServiceFailure


def _response(*parts):
    response = MagicMock()
    response.candidates = [MagicMock(content=MagicMock(parts=list(parts)))]
    return response


def _call_part(name, args):
    return genai.protos.Part(function_call=genai.protos.FunctionCall(name=name, args=args))


class TestParseResponse:
    """Test suite for response parsing."""

    def test_text_only(self):
        reply = _parse_response(_response(genai.protos.Part(text="Olá! ")))

        assert reply.text == "Olá!"
        assert reply.tool_calls == []

    def test_function_calls_keep_order(self):
        reply = _parse_response(
            _response(
                _call_part("createTask", {"title": "Pagar luz"}),
                _call_part("deleteTransaction", {"keyword": "uber"}),
            )
        )

        assert reply.text is None
        assert [(c.id, c.name) for c in reply.tool_calls] == [
            ("call_0", "createTask"),
            ("call_1", "deleteTransaction"),
        ]
        assert reply.tool_calls[0].args == {"title": "Pagar luz"}

    def test_empty_candidates(self):
        response = MagicMock()
        response.candidates = []

        with pytest.raises(ExternalServiceFailure):
            _parse_response(response)


class TestGeminiChatSession:
    """Test suite for the chat session wrapper."""

    @pytest.mark.asyncio
    async def test_send_media_then_text(self):
        chat = MagicMock()
        chat.send_message_async = AsyncMock(return_value=_response(genai.protos.Part(text="Ok")))
        session = GeminiChatSession(chat)

        reply = await session.send(text="Transcreva", media=[MediaPart(data=b"abc", mime_type="audio/webm")])

        assert reply.text == "Ok"
        content = chat.send_message_async.call_args[0][0]
        assert content == [{"mime_type": "audio/webm", "data": b"abc"}, "Transcreva"]

    @pytest.mark.asyncio
    async def test_tool_results_as_function_responses(self):
        chat = MagicMock()
        chat.send_message_async = AsyncMock(return_value=_response(genai.protos.Part(text="Feito")))
        session = GeminiChatSession(chat)

        await session.send_tool_results([
            ToolOutput(call_id="call_0", name="createTask", result="Tarefa criada: X"),
        ])

        part = chat.send_message_async.call_args[0][0][0]
        data = type(part).to_dict(part)["function_response"]
        assert data["name"] == "createTask"
        assert data["response"] == {"result": "Tarefa criada: X"}

    @pytest.mark.asyncio
    async def test_errors_wrapped(self):
        chat = MagicMock()
        chat.send_message_async = AsyncMock(side_effect=RuntimeError("429 quota"))
        session = GeminiChatSession(chat)

        with pytest.raises(ExternalServiceFailure):
            await session.send(text="Oi")


class TestGeminiChatFactory:
    """Test suite for session creation."""

    def test_create_configures_once(self):
        with patch("synclife.brain.llm.genai") as mock_genai:
            factory = GeminiChatFactory(api_key="key", model_name="gemini-test", temperature=0.2)

            factory.create("instrução", [{"name": "createTask"}])
            session = factory.create("outra", [])

            mock_genai.configure.assert_called_once_with(api_key="key")
            kwargs = mock_genai.GenerativeModel.call_args_list[0].kwargs
            assert kwargs["model_name"] == "gemini-test"
            assert kwargs["system_instruction"] == "instrução"
            assert kwargs["tools"] == [{"function_declarations": [{"name": "createTask"}]}]
            mock_genai.GenerativeModel.return_value.start_chat.assert_called_with(
                enable_automatic_function_calling=False
            )
            assert isinstance(session, GeminiChatSession)

    def test_defaults_from_settings(self):
        factory = GeminiChatFactory()

        assert factory.api_key == "test_gemini_key"

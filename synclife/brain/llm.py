"""
LLM - Puerto del servicio de lenguaje y adaptador de Gemini.

El dispatcher solo conoce `ChatSession` y `ChatSessionFactory`; el
adaptador traduce a `google.generativeai` y de vuelta.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

import google.generativeai as genai

from synclife.config import get_settings
from synclife.utils.errors import ExternalServiceFailure

logger = logging.getLogger(__name__)


@dataclass
class ToolCall:
    """Invocación de tool pedida por el modelo."""
    id: str
    name: str
    args: dict[str, Any] = field(default_factory=dict)


@dataclass
class LLMReply:
    """Respuesta del modelo: texto, tool calls, o ambos."""
    text: str | None = None
    tool_calls: list[ToolCall] = field(default_factory=list)


@dataclass
class ToolOutput:
    """Resultado de un tool, atado al id de su invocación."""
    call_id: str
    name: str
    result: str


@dataclass
class MediaPart:
    """Binario inline (audio o imagen)."""
    data: bytes
    mime_type: str


class ChatSession(ABC):
    """Una conversación abierta con el modelo."""

    @abstractmethod
    async def send(
        self,
        text: str | None = None,
        media: list[MediaPart] | None = None,
    ) -> LLMReply:
        """Envía un turno del usuario."""
        pass

    @abstractmethod
    async def send_tool_results(self, outputs: list[ToolOutput]) -> LLMReply:
        """Devuelve al modelo los resultados de un lote de tool calls."""
        pass


class ChatSessionFactory(ABC):
    """Crea sesiones con instrucción de sistema y tools fijos."""

    @abstractmethod
    def create(
        self,
        system_instruction: str,
        tool_declarations: list[dict[str, Any]],
    ) -> ChatSession:
        pass


# ==================== GEMINI ====================


def _parse_response(response: Any) -> LLMReply:
    """Convierte un GenerateContentResponse en LLMReply."""
    try:
        parts = response.candidates[0].content.parts
    except (AttributeError, IndexError) as e:
        raise ExternalServiceFailure("Respuesta de Gemini sin contenido") from e

    texts = []
    tool_calls = []
    for index, part in enumerate(parts):
        if "function_call" in part:
            fn = part.function_call
            args = type(fn).to_dict(fn).get("args") or {}
            # Gemini no siempre manda id; usar la posición en el lote
            call_id = getattr(fn, "id", "") or f"call_{index}"
            tool_calls.append(ToolCall(id=call_id, name=fn.name, args=dict(args)))
        elif getattr(part, "text", ""):
            texts.append(part.text)

    return LLMReply(text="".join(texts).strip() or None, tool_calls=tool_calls)


def _function_response(output: ToolOutput) -> Any:
    kwargs = {"name": output.name, "response": {"result": output.result}}
    if "id" in genai.protos.FunctionResponse.meta.fields:
        kwargs["id"] = output.call_id
    return genai.protos.Part(function_response=genai.protos.FunctionResponse(**kwargs))


class GeminiChatSession(ChatSession):
    """Sesión sobre `ChatSession` de google-generativeai."""

    def __init__(self, chat: Any):
        self._chat = chat

    async def send(
        self,
        text: str | None = None,
        media: list[MediaPart] | None = None,
    ) -> LLMReply:
        content: list[Any] = [
            {"mime_type": part.mime_type, "data": part.data} for part in media or []
        ]
        if text:
            content.append(text)
        return await self._send(content)

    async def send_tool_results(self, outputs: list[ToolOutput]) -> LLMReply:
        return await self._send([_function_response(o) for o in outputs])

    async def _send(self, content: list[Any]) -> LLMReply:
        try:
            response = await self._chat.send_message_async(content)
        except Exception as e:
            logger.error(f"Error llamando a Gemini: {e}")
            raise ExternalServiceFailure(f"Error llamando a Gemini: {e}") from e
        return _parse_response(response)


class GeminiChatFactory(ChatSessionFactory):
    """
    Factory de sesiones Gemini.

    Uso:
        factory = GeminiChatFactory()
        session = factory.create(system_instruction, TOOL_DECLARATIONS)
        reply = await session.send(text="Gastei 20 reais num café")
    """

    def __init__(
        self,
        api_key: str | None = None,
        model_name: str | None = None,
        temperature: float | None = None,
    ):
        settings = get_settings()
        self.api_key = api_key or settings.gemini_api_key
        self.model_name = model_name or settings.gemini_model
        self.temperature = settings.gemini_temperature if temperature is None else temperature
        self._configured = False

    def _ensure_configured(self) -> None:
        if not self._configured:
            genai.configure(api_key=self.api_key)
            self._configured = True
            logger.info(f"Gemini configurado con modelo {self.model_name}")

    def create(
        self,
        system_instruction: str,
        tool_declarations: list[dict[str, Any]],
    ) -> ChatSession:
        self._ensure_configured()
        try:
            model = genai.GenerativeModel(
                model_name=self.model_name,
                generation_config={"temperature": self.temperature},
                system_instruction=system_instruction,
                tools=[{"function_declarations": tool_declarations}],
            )
            chat = model.start_chat(enable_automatic_function_calling=False)
        except Exception as e:
            raise ExternalServiceFailure(f"No se pudo abrir la sesión de Gemini: {e}") from e
        return GeminiChatSession(chat)

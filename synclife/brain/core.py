"""
Command Dispatcher - Convierte mensajes del usuario en mutaciones del store.

Un turno: se envía el mensaje (texto, audio o imagen) a la sesión de chat,
se ejecutan en orden los tool calls que devuelva el modelo, se le devuelven
los resultados en un solo lote y se repite hasta que responda solo con texto.
La sesión vive lo que dura la ventana de chat: cerrarla descarta sesión y
transcript, y un turno en curso deja de escribir en ellos.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Awaitable, Callable

from synclife.brain.llm import (
    ChatSession,
    ChatSessionFactory,
    LLMReply,
    MediaPart,
    ToolOutput,
)
from synclife.brain.prompts import AUDIO_PROMPT, build_system_instruction, image_prompt
from synclife.brain.tools import ToolRegistry
from synclife.config import get_settings
from synclife.domain.store import DomainStore
from synclife.utils.dates import now_local
from synclife.utils.errors import (
    ConversationBusyError,
    ErrorCategory,
    ExternalServiceFailure,
    ValidationError,
    log_error,
)

logger = logging.getLogger(__name__)

TURN_FAILURE = "Tive um problema técnico. Pode tentar de novo?"
AUDIO_FAILURE = "Erro ao processar áudio. Tente novamente."
AUDIO_PLACEHOLDER = "🎤 Áudio enviado..."
IMAGE_PLACEHOLDER = "📷 Imagem enviada"
DEFAULT_AUDIO_MIME = "audio/webm"


class MessageRole(str, Enum):
    USER = "user"
    MODEL = "model"
    SYSTEM = "system"


@dataclass
class ChatMessage:
    """Entrada del transcript. Los avisos de acción son `system` con `is_action`."""
    id: str
    role: MessageRole
    text: str
    is_action: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "role": self.role.value,
            "text": self.text,
            "is_action": self.is_action,
        }


class _WindowClosed(Exception):
    """La ventana de chat se cerró durante el turno."""


class CommandDispatcher:
    """
    Dispatcher de comandos conversacionales de un usuario.

    Uso:
        dispatcher = CommandDispatcher(store, GeminiChatFactory())
        messages = await dispatcher.handle_message("Gastei 20 reais num café")
        dispatcher.close_chat()
    """

    def __init__(
        self,
        store: DomainStore,
        session_factory: ChatSessionFactory,
        clock: Callable[[], datetime] = now_local,
        max_tool_iterations: int | None = None,
    ):
        self.store = store
        self.session_factory = session_factory
        self.clock = clock
        self.max_tool_iterations = (
            max_tool_iterations
            if max_tool_iterations is not None
            else get_settings().max_tool_iterations
        )
        self.tools = ToolRegistry(store, clock)
        self.transcript: list[ChatMessage] = []

        self._session: ChatSession | None = None
        self._window = 0
        self._busy = False

    @property
    def is_open(self) -> bool:
        return self._session is not None

    @property
    def is_busy(self) -> bool:
        return self._busy

    # ==================== Ventana de chat ====================

    def open_chat(self) -> ChatSession:
        """Devuelve la sesión activa o crea una con el contexto actual del store."""
        if self._session is None:
            instruction = build_system_instruction(self.store, self.clock())
            self._session = self.session_factory.create(
                instruction, self.tools.get_declarations()
            )
            logger.info("Sesión de chat abierta")
        return self._session

    def close_chat(self) -> None:
        """Descarta sesión y transcript. Lo ya aplicado al store se mantiene."""
        self._session = None
        self.transcript = []
        self._window += 1
        logger.info("Sesión de chat cerrada")

    # ==================== Entradas ====================

    async def handle_message(self, text: str) -> list[ChatMessage]:
        """Procesa un mensaje de texto. Devuelve los mensajes agregados en el turno."""
        if not text or not text.strip():
            return []
        return await self._run_turn(
            user_text=text,
            send=lambda session: session.send(text=text),
            failure_text=TURN_FAILURE,
        )

    async def handle_audio(
        self,
        data: bytes,
        mime_type: str = DEFAULT_AUDIO_MIME,
    ) -> list[ChatMessage]:
        """Procesa un audio: el modelo lo transcribe y ejecuta el comando."""
        if not data:
            raise ValidationError("Audio vacío", field="data")
        media = [MediaPart(data=data, mime_type=mime_type or DEFAULT_AUDIO_MIME)]
        return await self._run_turn(
            user_text=AUDIO_PLACEHOLDER,
            send=lambda session: session.send(text=AUDIO_PROMPT, media=media),
            failure_text=AUDIO_FAILURE,
        )

    async def handle_image(
        self,
        data: bytes,
        mime_type: str,
        caption: str | None = None,
    ) -> list[ChatMessage]:
        """Procesa una imagen con leyenda opcional."""
        if not data:
            raise ValidationError("Imagen vacía", field="data")
        label = IMAGE_PLACEHOLDER
        if caption and caption.strip():
            label = f"{IMAGE_PLACEHOLDER}: {caption.strip()}"
        media = [MediaPart(data=data, mime_type=mime_type)]
        return await self._run_turn(
            user_text=label,
            send=lambda session: session.send(text=image_prompt(caption), media=media),
            failure_text=TURN_FAILURE,
        )

    # ==================== Turno ====================

    async def _run_turn(
        self,
        user_text: str,
        send: Callable[[ChatSession], Awaitable[LLMReply]],
        failure_text: str,
    ) -> list[ChatMessage]:
        if self._busy:
            raise ConversationBusyError()

        self._busy = True
        window = self._window
        start = len(self.transcript)
        self._add(MessageRole.USER, user_text)

        try:
            session = self.open_chat()
            reply = await send(session)
            self._check_window(window)
            reply = await self._resolve_tool_calls(session, reply, window)
            if reply.text:
                self._add(MessageRole.MODEL, reply.text)
        except _WindowClosed:
            logger.info("Turno abandonado: la ventana de chat se cerró")
            return []
        except Exception as e:
            log_error(e, "dispatcher_turn", ErrorCategory.API_GEMINI)
            if window != self._window:
                return []
            self._add(MessageRole.SYSTEM, failure_text)
        finally:
            self._busy = False

        return self.transcript[start:]

    async def _resolve_tool_calls(
        self,
        session: ChatSession,
        reply: LLMReply,
        window: int,
    ) -> LLMReply:
        """Ejecuta lotes de tool calls hasta que el modelo responda sin pedir más."""
        batches = 0
        while reply.tool_calls:
            batches += 1
            if batches > self.max_tool_iterations:
                raise ExternalServiceFailure(
                    f"El modelo pidió más de {self.max_tool_iterations} lotes de tools"
                )

            outputs = []
            for call in reply.tool_calls:
                self._check_window(window)
                result = await self.tools.execute(call.name, call.args)
                self._check_window(window)
                self._add(MessageRole.SYSTEM, result.message, is_action=True)
                outputs.append(ToolOutput(call_id=call.id, name=call.name, result=result.message))

            reply = await session.send_tool_results(outputs)
            self._check_window(window)

        return reply

    def _check_window(self, window: int) -> None:
        if window != self._window:
            raise _WindowClosed()

    def _add(self, role: MessageRole, text: str, is_action: bool = False) -> ChatMessage:
        message = ChatMessage(id=uuid.uuid4().hex[:8], role=role, text=text, is_action=is_action)
        self.transcript.append(message)
        return message

"""
SyncLife Brain - Asistente conversacional.

Traduce mensajes de texto, audio o imagen en mutaciones del DomainStore
usando function calling de Gemini con cuatro tools fijos.
"""

from synclife.brain.core import ChatMessage, CommandDispatcher, MessageRole
from synclife.brain.llm import (
    ChatSession,
    ChatSessionFactory,
    GeminiChatFactory,
    LLMReply,
    MediaPart,
    ToolCall,
    ToolOutput,
)
from synclife.brain.tools import ToolRegistry, ToolResult

__all__ = [
    "ChatMessage",
    "CommandDispatcher",
    "MessageRole",
    "ChatSession",
    "ChatSessionFactory",
    "GeminiChatFactory",
    "LLMReply",
    "MediaPart",
    "ToolCall",
    "ToolOutput",
    "ToolRegistry",
    "ToolResult",
]

"""Manejo centralizado de errores y excepciones."""

import logging
import traceback
from dataclasses import dataclass
from enum import Enum
from typing import Any

from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log,
)

logger = logging.getLogger(__name__)


class ErrorCategory(str, Enum):
    """Categorías de errores."""

    DATABASE = "database"
    API_GEMINI = "api_gemini"
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    TOOL = "tool"
    CONVERSATION = "conversation"
    UNKNOWN = "unknown"


@dataclass
class ErrorContext:
    """Contexto de un error para logging."""

    category: ErrorCategory
    operation: str
    error_type: str
    message: str
    details: dict[str, Any] | None = None
    traceback_str: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convierte a diccionario para logging."""
        return {
            "category": self.category.value,
            "operation": self.operation,
            "error_type": self.error_type,
            "message": self.message,
            "details": self.details,
        }


class SyncLifeError(Exception):
    """Excepción base para SyncLife."""

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.UNKNOWN,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category
        self.details = details or {}

    def __str__(self) -> str:
        return f"[{self.category.value}] {self.message}"


class ValidationError(SyncLifeError):
    """Datos de entrada inválidos; se rechazan antes de tocar el store remoto."""

    def __init__(self, message: str, field: str | None = None, details: dict[str, Any] | None = None):
        details = details or {}
        if field:
            details["field"] = field
        super().__init__(message, ErrorCategory.VALIDATION, details)
        self.field = field


class NotFoundError(SyncLifeError):
    """Entidad no encontrada."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, ErrorCategory.NOT_FOUND, details)


class RemoteWriteFailure(SyncLifeError):
    """Falló la escritura remota después de aplicar el cambio local."""

    def __init__(self, operation: str, message: str, details: dict[str, Any] | None = None):
        details = details or {}
        details["operation"] = operation
        super().__init__(message, ErrorCategory.DATABASE, details)
        self.operation = operation


class ExternalServiceFailure(SyncLifeError):
    """Error del servicio de lenguaje (Gemini)."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, ErrorCategory.API_GEMINI, details)


class UnknownToolError(SyncLifeError):
    """El servicio de lenguaje pidió un tool que no existe."""

    def __init__(self, tool_name: str):
        super().__init__(
            f"Tool '{tool_name}' no encontrado",
            ErrorCategory.TOOL,
            {"tool_name": tool_name},
        )
        self.tool_name = tool_name


class ConversationBusyError(SyncLifeError):
    """Ya hay un turno en curso para esta conversación."""

    def __init__(self, message: str = "Hay un comando en proceso"):
        super().__init__(message, ErrorCategory.CONVERSATION)


def log_error(
    error: Exception,
    operation: str,
    category: ErrorCategory = ErrorCategory.UNKNOWN,
    extra: dict[str, Any] | None = None,
) -> ErrorContext:
    """
    Registra un error con contexto estructurado.

    Args:
        error: La excepción capturada
        operation: Nombre de la operación que falló
        category: Categoría del error
        extra: Información adicional

    Returns:
        ErrorContext con los detalles del error
    """
    if isinstance(error, SyncLifeError):
        category = error.category
        details = {**(error.details or {}), **(extra or {})}
    else:
        details = extra or {}

    context = ErrorContext(
        category=category,
        operation=operation,
        error_type=type(error).__name__,
        message=str(error),
        details=details,
        traceback_str=traceback.format_exc(),
    )

    logger.error(
        f"Error en {operation}: {error}",
        extra={"error_context": context.to_dict()},
    )

    return context


def retry_database():
    """Retry para lecturas de la base de datos. Las escrituras nunca se reintentan."""
    return retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=5),
        retry=retry_if_exception_type((ConnectionError, TimeoutError, OSError)),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )

"""Utilidades de SyncLife."""

from synclife.utils.errors import (
    SyncLifeError,
    ValidationError,
    NotFoundError,
    RemoteWriteFailure,
    ExternalServiceFailure,
    UnknownToolError,
    ConversationBusyError,
    ErrorCategory,
    ErrorContext,
    log_error,
    retry_database,
)

from synclife.utils.text import (
    format_brl,
    contains_keyword,
    camel_to_snake,
)

from synclife.utils.dates import (
    now_local,
    time_label,
    parse_iso_date,
)

__all__ = [
    # Errors
    "SyncLifeError",
    "ValidationError",
    "NotFoundError",
    "RemoteWriteFailure",
    "ExternalServiceFailure",
    "UnknownToolError",
    "ConversationBusyError",
    "ErrorCategory",
    "ErrorContext",
    "log_error",
    "retry_database",
    # Text
    "format_brl",
    "contains_keyword",
    "camel_to_snake",
    # Dates
    "now_local",
    "time_label",
    "parse_iso_date",
]

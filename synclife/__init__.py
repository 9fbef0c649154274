"""SyncLife - Finanzas personales, tareas y asistente conversacional."""

__version__ = "1.0.0"

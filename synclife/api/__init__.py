"""API HTTP de SyncLife."""

from synclife.api.routes import router

__all__ = ["router"]

"""
SyncLife - Finanzas, tareas y asistente conversacional.

FastAPI application. PostgreSQL como store remoto, Gemini como asistente.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from synclife.api.routes import router
from synclife.config import get_settings
from synclife.session import SessionRegistry
from synclife.utils.errors import (
    ConversationBusyError,
    NotFoundError,
    SyncLifeError,
    ValidationError,
)

# Configurar logging
settings = get_settings()
logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def build_default_registry() -> SessionRegistry:
    """Registro con repositorio SQL y sesiones de Gemini."""
    from synclife.brain.llm import GeminiChatFactory
    from synclife.domain.repositories import SqlStoreRepository

    return SessionRegistry(SqlStoreRepository, GeminiChatFactory())


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifecycle de la aplicación."""
    logger.info("=" * 50)
    logger.info("Iniciando SyncLife")
    logger.info("=" * 50)

    # ==================== STARTUP ====================

    logger.info("Inicializando base de datos...")
    from synclife.db.database import init_db
    await init_db()

    if getattr(app.state, "registry", None) is None:
        app.state.registry = build_default_registry()

    logger.info("SyncLife listo!")

    yield

    # ==================== SHUTDOWN ====================

    logger.info("Deteniendo SyncLife...")

    await app.state.registry.close_all()

    from synclife.db.database import close_db
    await close_db()

    logger.info("SyncLife detenido.")


def _error_response(status_code: int, error: SyncLifeError) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": error.category.value,
            "message": error.message,
            "details": error.details,
        },
    )


def create_app(registry: SessionRegistry | None = None) -> FastAPI:
    """Crea la aplicación. `registry` permite inyectar sesiones en tests."""
    app = FastAPI(
        title="SyncLife",
        description="Finanzas, tareas y asistente conversacional",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.registry = registry
    app.include_router(router)

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        return _error_response(422, exc)

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return _error_response(404, exc)

    @app.exception_handler(ConversationBusyError)
    async def busy_handler(request: Request, exc: ConversationBusyError):
        return _error_response(409, exc)

    @app.get("/health")
    async def health_check():
        """Health check básico."""
        return {"status": "healthy", "service": "synclife"}

    @app.get("/health/detailed")
    async def health_check_detailed():
        """Health check con estado de la base de datos."""
        from synclife.db.database import check_db_connection

        db_ok = await check_db_connection()
        return {
            "status": "healthy" if db_ok else "degraded",
            "service": "synclife",
            "version": "1.0.0",
            "environment": settings.app_env,
            "checks": {"database": {"status": "healthy" if db_ok else "unhealthy"}},
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "synclife.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.is_development,
    )

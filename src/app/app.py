"""Entrypoint da aplicação github-relay.

Inicializa o bootstrap e expõe a aplicação ASGI (FastAPI). O lifespan
constrói os serviços, provisiona as credenciais, inicializa o
DeliveryGate e o desliga no shutdown.

Uso (produção):
    uvicorn app.app:app --host 0.0.0.0 --port 8080

Uso (desenvolvimento):
    uvicorn app.app:app --reload --host 0.0.0.0 --port 8080
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI

from api.routes import create_api_router
from app.bootstrap import initialize_app, validate_runtime_settings
from app.bootstrap.clients import create_async_redis_client
from app.bootstrap.dependencies import build_relay_services, start_relay, stop_relay
from config.logging import get_logger
from config.settings import get_base_settings, get_store_settings

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

# Inicializar logging ANTES de qualquer import que use logger
initialize_app()

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Gerencia ciclo de vida da aplicação.

    Startup:
    - Valida configurações
    - Constrói serviços e provisiona credenciais
    - Inicializa o DeliveryGate (sonda + timers)

    Shutdown:
    - Para os timers do gate
    - Fecha o cliente Redis
    """
    logger.info("app_starting", extra={"service": "github-relay"})
    validate_runtime_settings()

    services = build_relay_services()
    app.state.services = services
    await start_relay(services)

    yield

    logger.info("app_shutting_down", extra={"service": "github-relay"})
    await stop_relay(services)
    if get_store_settings().backend == "redis":
        await create_async_redis_client(get_base_settings().redis_url).aclose()


def create_app() -> FastAPI:
    """Cria e configura a aplicação FastAPI."""
    fastapi_app = FastAPI(
        title="github-relay",
        description="Relay resiliente de eventos do GitHub (polling + webhooks)",
        version="1.0.0",
        lifespan=lifespan,
    )

    fastapi_app.include_router(create_api_router())

    logger.info("app_configured", extra={"service": "github-relay"})

    return fastapi_app


# Aplicação ASGI exposta para uvicorn
app = create_app()


def main() -> None:
    """Entrypoint para execução direta (desenvolvimento)."""
    import uvicorn

    logger.info("Starting github-relay in development mode")
    uvicorn.run(
        "app.app:app",
        host="0.0.0.0",
        port=8080,
        reload=True,
    )


if __name__ == "__main__":
    main()

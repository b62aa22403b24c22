import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from kanban.config import get_settings
from kanban.infrastructure.database import engine, initialize_database
from kanban.infrastructure.notifications import ChannelRegistry, RealtimeEventPublisher
from kanban.interfaces.api.routes import register_routes


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Inicializa la base de datos y el registro de canales; los libera al cerrar."""

    settings = get_settings()
    initialize_database()
    registry = ChannelRegistry(queue_size=settings.push_queue_size)
    realtime = RealtimeEventPublisher(registry)
    app.state.channel_registry = registry
    app.state.realtime_publisher = realtime
    try:
        yield
    finally:
        await realtime.drain()
        await registry.close()
        engine.dispose()


def create_app() -> FastAPI:
    """Crea y configura la aplicación principal de FastAPI."""

    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title="Kanban Push API", lifespan=lifespan)

    # El frontend del tablero consume la API desde otro origen.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Refreshed-Token"],
    )

    register_routes(app)
    return app


app = create_app()

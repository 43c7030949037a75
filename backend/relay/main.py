from contextlib import asynccontextmanager
from typing import Optional
import logging

from fastapi import FastAPI
import uvicorn

from relay.core.config import Settings, get_settings
from relay.core.log import setup_logging
from relay.api.health import router as health_router
from relay.ws.manager import ConnectionManager
from relay.ws.router import MessageRouter
from relay.ws.routes import router as ws_router


logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        monitor = app.state.ws_manager.monitor
        monitor.start()
        try:
            yield
        finally:
            await monitor.stop()

    app = FastAPI(title="Room Relay", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.ws_manager = ConnectionManager(
        allowed_origins=settings.allowed_origins,
        max_messages=settings.rate_limit_max_messages,
        window_ms=settings.rate_limit_window_ms,
        ping_interval_s=settings.ping_interval_ms / 1000.0,
    )
    app.state.message_router = MessageRouter(app.state.ws_manager)

    if settings.allowed_origins:
        logger.info("origin allow-list enabled origins=%s", ",".join(settings.allowed_origins))

    app.include_router(health_router)
    app.include_router(ws_router)
    return app


app = create_app()


def run() -> None:
    settings = get_settings()
    logger.info("WS listening on %s", settings.port)
    ping_interval_s = settings.ping_interval_ms / 1000.0
    # Native WebSocket ping/pong; a peer missing one pong is dropped by the server
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level,
        ws_ping_interval=ping_interval_s,
        ws_ping_timeout=ping_interval_s,
    )


if __name__ == "__main__":
    run()

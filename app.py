from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, WebSocket
from fastapi.middleware.cors import CORSMiddleware

import constants
from backend import SessionBackend, create_session_backend
from gateway import ConnectionGateway
from logging_config import get_logger, setup_logging
from routers.admin import admin_router
from routers.pages import pages_router
from services.engine import ChatEngine, EngineSettings
from services.notifier import PeriodicPublisher

# Setup logging
setup_logging(log_level=constants.LOG_LEVEL, log_file=constants.LOG_FILE)
logger = get_logger(__name__)


def create_app(
    settings: Optional[EngineSettings] = None,
    sessions: Optional[SessionBackend] = None,
    public_dir: str = constants.PUBLIC_DIR,
) -> FastAPI:
    if settings is None:
        settings = EngineSettings(
            admin_secret=constants.ADMIN_SECRET,
            broadcast_interval_seconds=constants.BROADCAST_INTERVAL_SECONDS,
        )
    if not settings.admin_secret:
        logger.warning("ADMIN_SECRET is not set, admin authentication is disabled")

    gateway = ConnectionGateway()
    engine = ChatEngine(gateway, settings)
    gateway.bind(engine)
    publisher = PeriodicPublisher(
        settings.broadcast_interval_seconds,
        engine.publish,
        is_idle=lambda: not engine.has_observers(),
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        publisher.start()
        logger.info("Chat engine started")
        try:
            yield
        finally:
            await publisher.stop()
            logger.info("Chat engine stopped")

    app = FastAPI(lifespan=lifespan)

    # Configure CORS to allow all origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    app.state.engine = engine
    app.state.gateway = gateway
    app.state.publisher = publisher
    app.state.sessions = sessions if sessions is not None else create_session_backend()
    app.state.admin_username = constants.ADMIN_USERNAME
    app.state.session_cookie_name = constants.SESSION_COOKIE_NAME
    app.state.session_cookie_secure = constants.SESSION_COOKIE_SECURE
    app.state.session_ttl = constants.SESSION_TTL_SECONDS
    app.state.public_dir = public_dir

    app.include_router(pages_router)
    app.include_router(admin_router)

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket):
        """Push channel for chat participants and admin observers."""
        await gateway.serve(websocket)

    logger.info("FastAPI application initialized")
    return app


app = create_app()

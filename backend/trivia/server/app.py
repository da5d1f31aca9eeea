from __future__ import annotations

import contextlib
from collections.abc import AsyncIterator
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING

import structlog
from starlette.applications import Starlette
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse
from starlette.routing import Mount, Route, WebSocketRoute
from starlette.staticfiles import StaticFiles

from shared.logging import setup_logging
from trivia.messaging.router import MessageRouter
from trivia.server.settings import TriviaServerSettings
from trivia.server.websocket import websocket_endpoint
from trivia.session.manager import SessionManager

logger = structlog.get_logger()

if TYPE_CHECKING:
    from starlette.requests import Request
    from starlette.websockets import WebSocket


async def ping(_request: Request) -> JSONResponse:
    return JSONResponse({"status": "ok", "time": datetime.now(tz=UTC).isoformat()})


async def status(request: Request) -> JSONResponse:
    session_manager: SessionManager = request.app.state.session_manager
    settings: TriviaServerSettings = request.app.state.settings
    return JSONResponse(
        {
            "status": "ok",
            "active_sessions": session_manager.session_count,
            "max_sessions": settings.max_sessions,
        },
    )


def create_app(
    settings: TriviaServerSettings | None = None,
    session_manager: SessionManager | None = None,
    message_router: MessageRouter | None = None,
) -> Starlette:
    if settings is None:  # pragma: no cover
        settings = TriviaServerSettings()

    if session_manager is None:
        session_manager = SessionManager(settings.round_settings(), max_sessions=settings.max_sessions)

    if message_router is None:
        message_router = MessageRouter(session_manager)

    async def ws_endpoint(websocket: WebSocket) -> None:
        await websocket_endpoint(websocket, message_router)

    routes: list[Route | WebSocketRoute | Mount] = [
        Route("/ping", ping, methods=["GET"]),
        Route("/status", status, methods=["GET"]),
        WebSocketRoute("/ws", ws_endpoint),
    ]

    static_dir = Path(settings.static_dir)
    if static_dir.is_dir():
        # Mounted last so the API routes above take precedence.
        routes.append(Mount("/", app=StaticFiles(directory=static_dir, html=True), name="static"))
    else:
        logger.warning("static directory not found, serving API only", static_dir=str(static_dir))

    @contextlib.asynccontextmanager
    async def lifespan(_app: Starlette) -> AsyncIterator[None]:
        yield
        session_manager.cancel_all_timers()
        logger.info("trivia server stopped")

    app = Starlette(routes=routes, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=settings.cors_origins,
        allow_methods=["GET"],
        allow_headers=["Content-Type"],
    )
    app.state.settings = settings
    app.state.session_manager = session_manager

    logger.info("trivia server ready", max_sessions=settings.max_sessions)
    return app


def get_app() -> Starlette:  # pragma: no cover
    """ASGI application factory for production use (e.g., uvicorn --factory)."""
    _settings = TriviaServerSettings()
    setup_logging(log_dir=_settings.log_dir)
    return create_app(settings=_settings)

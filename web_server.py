"""
Web server for the memory match game.

This server:
- Handles WebSocket connections for real-time play (/ws)
- Serves the difficulty table to the frontend (/api/config)
- Exposes Prometheus metrics (/metrics)
- Owns the shared HTTP client used to source deck images
"""

from __future__ import annotations

import json
import logging
from typing import Any, AsyncIterator, Optional

import aiohttp
from aiohttp import web
from dotenv import load_dotenv
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

# Load environment variables from .env file
load_dotenv()

from asset_source import AssetSource
from catalog_client import ImageProber, PokeApiCatalog, create_http_session
from config import get_default_pair_count, get_difficulty_levels
from constants import DEFAULT_SERVER_HOST, DEFAULT_SERVER_PORT, SERVER_ERROR_MESSAGE
from deck_builder import DeckBuilder
from error_tracking import init_sentry
from exceptions import InvalidMessageError, UnknownDifficultyError
from logging_config import setup_logging
from metrics import track_error, update_active_sessions
from sessions.session_orchestrator import SessionOrchestrator

logger = logging.getLogger(__name__)

DECK_BUILDER_KEY = web.AppKey("deck_builder", DeckBuilder)
SESSION_OPTIONS_KEY = web.AppKey("session_options", dict)
CONNECTIONS_KEY = web.AppKey("connections", set)


async def websocket_handler(request: web.Request) -> web.WebSocketResponse:
    """Handle WebSocket connections."""
    ws = web.WebSocketResponse()
    await ws.prepare(request)

    orchestrator = SessionOrchestrator(
        ws,
        request.app[DECK_BUILDER_KEY],
        **request.app[SESSION_OPTIONS_KEY],
    )
    connections = request.app[CONNECTIONS_KEY]
    connections.add(orchestrator)
    update_active_sessions(len(connections))
    orchestrator.logger.info_event("websocket_connected", "Client connected")

    try:
        await ws.send_json({
            "type": "available_options",
            "difficulties": get_difficulty_levels(),
            "default_pair_count": get_default_pair_count(),
        })

        async for msg in ws:
            if msg.type == aiohttp.WSMsgType.TEXT:
                try:
                    data = json.loads(msg.data)
                    if not isinstance(data, dict):
                        raise InvalidMessageError(msg.data, "expected a JSON object")
                    await orchestrator.handle_message(data)

                except json.JSONDecodeError as e:
                    logger.warning("Invalid JSON received: %s", e)
                    track_error("invalid_json")
                    orchestrator.send_error("Invalid message.")
                except InvalidMessageError as e:
                    logger.warning("Rejected message: %s", e.reason)
                    track_error("invalid_message")
                    orchestrator.send_error("Invalid message.", reason=e.reason)
                except UnknownDifficultyError as e:
                    logger.warning("Unsupported difficulty: %d pairs", e.pair_count)
                    track_error("unknown_difficulty")
                    orchestrator.send_error(str(e))
                except Exception as e:
                    logger.exception("Error handling message: %s", e)
                    track_error("server_error")
                    orchestrator.send_error(SERVER_ERROR_MESSAGE)

            elif msg.type == aiohttp.WSMsgType.ERROR:
                logger.error("WebSocket error: %s", ws.exception())

    finally:
        await orchestrator.close()
        connections.discard(orchestrator)
        update_active_sessions(len(connections))
        orchestrator.logger.info_event("websocket_disconnected", "Client disconnected")

    return ws


async def config_handler(request: web.Request) -> web.Response:
    """Serve the difficulty table so the frontend never hard-codes it."""
    return web.json_response({
        "difficulties": get_difficulty_levels(),
        "default_pair_count": get_default_pair_count(),
    })


async def metrics_handler(request: web.Request) -> web.Response:
    return web.Response(body=generate_latest(), headers={"Content-Type": CONTENT_TYPE_LATEST})


async def _deck_builder_ctx(app: web.Application) -> AsyncIterator[None]:
    """Create the shared HTTP client and deck builder for the app's lifetime."""
    async with create_http_session() as http:
        source = AssetSource(PokeApiCatalog(http), ImageProber(http))
        app[DECK_BUILDER_KEY] = DeckBuilder(source)
        yield


async def _close_connections(app: web.Application) -> None:
    """Send a close frame to every client; each handler's finally tears its session down."""
    for orchestrator in list(app[CONNECTIONS_KEY]):
        await orchestrator.ws.close(code=aiohttp.WSCloseCode.GOING_AWAY, message=b"Server shutdown")


# Create app
async def create_app(
    deck_builder: Optional[DeckBuilder] = None,
    **session_options: Any,
) -> web.Application:
    """
    Create and configure the web application.

    Args:
        deck_builder: Deck builder to use; by default one backed by the
            remote catalog is created on startup
        **session_options: Forwarded to every SessionOrchestrator
            (tick_seconds, mismatch_delay, power_up_duration)
    """
    app = web.Application()
    app[SESSION_OPTIONS_KEY] = session_options
    app[CONNECTIONS_KEY] = set()

    if deck_builder is not None:
        app[DECK_BUILDER_KEY] = deck_builder
    else:
        app.cleanup_ctx.append(_deck_builder_ctx)
    app.on_shutdown.append(_close_connections)

    app.router.add_get("/api/config", config_handler)
    app.router.add_get("/metrics", metrics_handler)
    app.router.add_get("/ws", websocket_handler)

    return app


# Main entry point
def main() -> None:
    """Start the web server."""
    setup_logging()
    init_sentry()

    logger.info("Starting memory match server on http://%s:%d", DEFAULT_SERVER_HOST, DEFAULT_SERVER_PORT)
    web.run_app(create_app(), host=DEFAULT_SERVER_HOST, port=DEFAULT_SERVER_PORT)


if __name__ == "__main__":
    main()

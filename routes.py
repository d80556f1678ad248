"""
FastAPI routes for Twilio webhooks and the media stream socket.
"""
from typing import Iterable, Optional

from fastapi import FastAPI, Request, WebSocket, status
from fastapi.responses import HTMLResponse, JSONResponse
from twilio.twiml.voice_response import VoiceResponse, Connect

from agents import AgentRegistry
from config import CORS_WHITELIST, IS_DEV, MEDIA_STREAM_PATH
from logging_config import get_logger
from websocket_handler import WebSocketHandler

log = get_logger(__name__)


def is_origin_allowed(origin: Optional[str], whitelist: Iterable[str], is_dev: bool) -> bool:
    """Whitelisted origins only; a missing Origin header is accepted in development."""
    if not origin:
        return is_dev
    return origin in whitelist


class Routes:
    """Contains all FastAPI route handlers."""

    def __init__(
        self,
        app: FastAPI,
        registry: AgentRegistry,
        cors_whitelist: Iterable[str] = CORS_WHITELIST,
        is_dev: bool = IS_DEV,
        connector=None,
    ):
        self.app = app
        self.registry = registry
        self.cors_whitelist = list(cors_whitelist)
        self.is_dev = is_dev
        self.connector = connector
        self._setup_routes()

    def _setup_routes(self):
        """Setup all route handlers."""
        self.app.get("/", response_class=JSONResponse)(self.index_page)
        self.app.api_route("/incoming-call", methods=["GET", "POST"])(self.handle_incoming_call)
        self.app.websocket(MEDIA_STREAM_PATH)(self.media_stream)

    async def index_page(self):
        """Root endpoint returning status information."""
        return {
            "message": "Realtime agent bridge is running.",
            "agents": self.registry.names,
        }

    async def handle_incoming_call(self, request: Request):
        """Handle incoming call webhook from Twilio."""
        response = VoiceResponse()
        host = request.url.hostname
        if "ngrok" in request.headers.get("host", ""):
            host = request.headers["host"]
        connect = Connect()
        connect.stream(url=f"wss://{host}{MEDIA_STREAM_PATH}")
        response.append(connect)
        log.info("Using WebSocket URL", url=f"wss://{host}{MEDIA_STREAM_PATH}")
        return HTMLResponse(content=str(response), media_type="application/xml")

    async def media_stream(self, websocket: WebSocket):
        """Media stream socket; rejected before accept unless the origin is allowed."""
        origin = websocket.headers.get("origin")
        if not is_origin_allowed(origin, self.cors_whitelist, self.is_dev):
            log.warning("Rejected media stream connection", origin=origin)
            await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
            return
        await WebSocketHandler.handle_media_stream(websocket, self.registry, connector=self.connector)

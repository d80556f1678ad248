"""
WebSocket handler for the Twilio media stream leg of a call.
"""
from fastapi import WebSocket

from agents import AgentRegistry
from logging_config import bind_call_context, get_logger
from session_bridge import SessionBridge

log = get_logger(__name__)


class WebSocketHandler:
    """Handles WebSocket connections for realtime voice communication."""

    @staticmethod
    async def handle_media_stream(websocket: WebSocket, registry: AgentRegistry, connector=None):
        """Accept a Twilio media stream and bridge it to OpenAI until the call ends."""
        await websocket.accept()
        call_id = bind_call_context()
        log.info("Client connected", call_id=call_id, agent=registry.default.name)

        bridge = SessionBridge(websocket, registry, connector=connector)
        await bridge.run()
        log.info("Call ended", stream_sid=bridge.session.stream_id, agent=bridge.session.current_agent.name)

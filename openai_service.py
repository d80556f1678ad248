"""
OpenAI service for the realtime connection, session configuration and function results.
"""
import json
from typing import Any, Dict, List

import websockets

from config import (
    AUDIO_FORMAT,
    GREETING_TEXT,
    MODALITIES,
    OPENAI_API_KEY,
    OPENAI_REALTIME_URL,
    TRANSCRIPTION_MODEL,
    TURN_DETECTION,
    VOICE,
)
from event_translator import (
    ConversationItemCreate,
    OpenAIOutboundEvent,
    ResponseCreate,
    SessionUpdate,
)
from models import AgentProfile
from utils import short_id


class OpenAIService:
    """Service for the OpenAI realtime leg of a call."""

    @staticmethod
    async def connect(url: str = OPENAI_REALTIME_URL, api_key: str = OPENAI_API_KEY):
        """
        Establish a websocket connection to OpenAI Realtime with the proper headers.
        Returns an *open* websockets client.
        """
        return await websockets.connect(
            url,
            additional_headers={
                "Authorization": f"Bearer {api_key}",
                "OpenAI-Beta": "realtime=v1",
            },
        )

    @staticmethod
    def session_update(agent: AgentProfile) -> SessionUpdate:
        """Session configuration for the given agent."""
        return SessionUpdate(session={
            "modalities": list(MODALITIES),
            "instructions": agent.instructions or "",
            "voice": VOICE,
            "input_audio_format": AUDIO_FORMAT,
            "output_audio_format": AUDIO_FORMAT,
            "input_audio_transcription": {"model": TRANSCRIPTION_MODEL},
            "turn_detection": dict(TURN_DETECTION),
            "tools": list(agent.tools),
        })

    @staticmethod
    def initial_conversation_items() -> List[OpenAIOutboundEvent]:
        """A synthetic user turn plus a response request, so the agent greets first."""
        return [
            ConversationItemCreate(item={
                "id": short_id(),
                "type": "message",
                "role": "user",
                "content": [{"type": "input_text", "text": GREETING_TEXT}],
            }),
            ResponseCreate(),
        ]

    @staticmethod
    def function_result(call_id: str, result: Dict[str, Any]) -> List[OpenAIOutboundEvent]:
        """Function call output followed by a request to continue the response."""
        return [
            ConversationItemCreate(item={
                "type": "function_call_output",
                "call_id": call_id,
                "output": json.dumps(result),
            }),
            ResponseCreate(),
        ]

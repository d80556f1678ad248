"""
Configuration and constants for the realtime agent bridge.
"""
import os
from dotenv import load_dotenv

load_dotenv()

# =============================
# Server Configuration
# =============================
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 8080))

APP_ENV = os.getenv("APP_ENV", "development")
IS_DEV = APP_ENV != "production"

# Allowed Origin headers for the media stream socket
cors_string = os.environ.get("CORS_WHITELIST", "")
CORS_WHITELIST = [origin.strip() for origin in cors_string.split(",") if origin.strip()]

# =============================
# OpenAI Configuration
# =============================
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
OPENAI_REALTIME_MODEL = os.getenv("OPENAI_REALTIME_MODEL", "gpt-4o-realtime-preview-2024-12-17")
OPENAI_REALTIME_URL = f"wss://api.openai.com/v1/realtime?model={OPENAI_REALTIME_MODEL}"

if not OPENAI_API_KEY:
    raise ValueError("Missing the OpenAI API key. Please set it in the .env file.")

# =============================
# Session Constants
# =============================
VOICE = "coral"
AUDIO_FORMAT = "g711_ulaw"  # Twilio media streams are 8kHz mu-law
TRANSCRIPTION_MODEL = "whisper-1"
MODALITIES = ["text", "audio"]

TURN_DETECTION = {
    "type": "server_vad",
    "threshold": 0.5,
    "prefix_padding_ms": 300,
    "silence_duration_ms": 200,
    "create_response": True,
}

# Synthetic first user turn so the agent speaks first
GREETING_TEXT = "Hi"

# =============================
# Agent Configuration
# =============================
AGENT_SET = os.getenv("AGENT_SET", "simpleExample")

LOG_EVENT_TYPES = [
    "error",
    "response.content.done",
    "rate_limits.updated",
    "response.done",
    "input_audio_buffer.committed",
    "input_audio_buffer.speech_stopped",
    "input_audio_buffer.speech_started",
    "session.created",
    "session.updated",
    "conversation.item.created",
]

# =============================
# Twilio Configuration
# =============================
MEDIA_STREAM_PATH = "/media-stream"
MARK_NAME = "responsePart"

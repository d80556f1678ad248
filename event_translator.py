"""
Translation between the Twilio media stream and OpenAI Realtime JSON vocabularies
and the bridge's internal events.

Inbound frames decode into one variant of a closed union per leg. Types the bridge
does not act on decode to IgnoredEvent rather than failing.
"""
import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple, Union

from utils import parse_json_object


class EventDecodeError(ValueError):
    """A frame was not valid JSON or lacked fields its event type requires."""


@dataclass(frozen=True)
class IgnoredEvent:
    type: Optional[str]


# =============================
# Twilio -> bridge
# =============================
@dataclass(frozen=True)
class TwilioStart:
    stream_sid: str
    start: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class TwilioMedia:
    timestamp: int
    payload: str


@dataclass(frozen=True)
class TwilioMark:
    name: Optional[str] = None


TwilioInboundEvent = Union[TwilioStart, TwilioMedia, TwilioMark, IgnoredEvent]


# =============================
# OpenAI -> bridge
# =============================
@dataclass(frozen=True)
class FunctionCall:
    name: str
    arguments: str
    call_id: Optional[str] = None


@dataclass(frozen=True)
class SessionUpdated:
    session: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class SpeechStarted:
    audio_start_ms: Optional[int] = None


@dataclass(frozen=True)
class AudioDelta:
    delta: str
    item_id: Optional[str] = None


@dataclass(frozen=True)
class TranscriptionCompleted:
    transcript: str
    item_id: Optional[str] = None


@dataclass(frozen=True)
class ResponseDone:
    function_calls: Tuple[FunctionCall, ...] = ()


@dataclass(frozen=True)
class ErrorEvent:
    error: Dict[str, Any] = field(default_factory=dict)


OpenAIInboundEvent = Union[
    SessionUpdated, SpeechStarted, AudioDelta, TranscriptionCompleted,
    ResponseDone, ErrorEvent, IgnoredEvent,
]


# =============================
# bridge -> Twilio
# =============================
class TwilioOutboundEvent:
    """Base for frames sent to the Twilio media stream."""

    def to_dict(self) -> Dict[str, Any]:
        raise NotImplementedError


@dataclass(frozen=True)
class TwilioMediaOut(TwilioOutboundEvent):
    stream_sid: Optional[str]
    payload: str

    def to_dict(self):
        return {"event": "media", "streamSid": self.stream_sid, "media": {"payload": self.payload}}


@dataclass(frozen=True)
class TwilioMarkOut(TwilioOutboundEvent):
    stream_sid: str
    name: str

    def to_dict(self):
        return {"event": "mark", "streamSid": self.stream_sid, "mark": {"name": self.name}}


@dataclass(frozen=True)
class TwilioClear(TwilioOutboundEvent):
    stream_sid: Optional[str]

    def to_dict(self):
        return {"event": "clear", "streamSid": self.stream_sid}


# =============================
# bridge -> OpenAI
# =============================
class OpenAIOutboundEvent:
    """Base for client events sent to the OpenAI Realtime socket."""

    def to_dict(self) -> Dict[str, Any]:
        raise NotImplementedError


@dataclass(frozen=True)
class SessionUpdate(OpenAIOutboundEvent):
    session: Dict[str, Any]

    def to_dict(self):
        return {"type": "session.update", "session": self.session}


@dataclass(frozen=True)
class ConversationItemCreate(OpenAIOutboundEvent):
    item: Dict[str, Any]

    def to_dict(self):
        return {"type": "conversation.item.create", "item": self.item}


@dataclass(frozen=True)
class ConversationItemTruncate(OpenAIOutboundEvent):
    item_id: str
    audio_end_ms: int
    content_index: int = 0

    def to_dict(self):
        return {
            "type": "conversation.item.truncate",
            "item_id": self.item_id,
            "content_index": self.content_index,
            "audio_end_ms": self.audio_end_ms,
        }


@dataclass(frozen=True)
class ResponseCreate(OpenAIOutboundEvent):

    def to_dict(self):
        return {"type": "response.create"}


@dataclass(frozen=True)
class InputAudioAppend(OpenAIOutboundEvent):
    audio: str

    def to_dict(self):
        return {"type": "input_audio_buffer.append", "audio": self.audio}


OutboundEvent = Union[TwilioOutboundEvent, OpenAIOutboundEvent]


def _load(raw) -> Dict[str, Any]:
    try:
        return parse_json_object(raw)
    except ValueError as e:
        raise EventDecodeError(f"malformed frame: {e}") from e


def decode_twilio_message(raw) -> TwilioInboundEvent:
    """Decode one Twilio media stream frame."""
    data = _load(raw)
    event = data.get("event")
    try:
        if event == "start":
            start = data["start"]
            return TwilioStart(stream_sid=start["streamSid"], start=start)
        if event == "media":
            media = data["media"]
            return TwilioMedia(timestamp=int(media["timestamp"]), payload=media["payload"])
        if event == "mark":
            return TwilioMark(name=(data.get("mark") or {}).get("name"))
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise EventDecodeError(f"invalid Twilio {event!r} event: {e!r}") from e
    return IgnoredEvent(type=event)


def _object(data: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = data.get(key) or {}
    if not isinstance(value, dict):
        raise TypeError(f"{key!r} must be an object, got {type(value).__name__}")
    return value


def _function_calls(response: Dict[str, Any]) -> Tuple[FunctionCall, ...]:
    calls = []
    for item in response.get("output") or []:
        # malformed items are skipped so the well-formed calls still get answered
        if not isinstance(item, dict) or not isinstance(item.get("name"), str):
            continue
        if item.get("type") == "function_call" and item["name"] and item.get("arguments"):
            calls.append(FunctionCall(
                name=item["name"],
                arguments=item["arguments"],
                call_id=item.get("call_id"),
            ))
    return tuple(calls)


def decode_openai_message(raw) -> OpenAIInboundEvent:
    """Decode one OpenAI Realtime server event."""
    data = _load(raw)
    t = data.get("type")
    try:
        if t == "session.updated":
            return SessionUpdated(session=_object(data, "session"))
        if t == "input_audio_buffer.speech_started":
            return SpeechStarted(audio_start_ms=data.get("audio_start_ms"))
        if t == "response.audio.delta":
            return AudioDelta(delta=data.get("delta") or "", item_id=data.get("item_id"))
        if t == "conversation.item.input_audio_transcription.completed":
            return TranscriptionCompleted(transcript=data.get("transcript") or "", item_id=data.get("item_id"))
        if t == "response.done":
            return ResponseDone(function_calls=_function_calls(_object(data, "response")))
        if t == "error":
            return ErrorEvent(error=data.get("error") or {})
    except (AttributeError, KeyError, TypeError) as e:
        raise EventDecodeError(f"invalid OpenAI {t!r} event: {e!r}") from e
    return IgnoredEvent(type=t)


def encode_event(event: OutboundEvent) -> str:
    """Serialize an outbound event for either leg."""
    return json.dumps(event.to_dict())

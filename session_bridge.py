"""
Per-call bridge between a Twilio media stream and an OpenAI Realtime session.
"""
import asyncio
from typing import Awaitable, Callable, List, Optional

from fastapi import WebSocket
from fastapi.websockets import WebSocketDisconnect
from starlette.websockets import WebSocketState
from websockets.exceptions import ConnectionClosed, WebSocketException
from websockets.protocol import State

from agents import AgentRegistry
from config import LOG_EVENT_TYPES
from event_translator import (
    AudioDelta,
    ErrorEvent,
    EventDecodeError,
    IgnoredEvent,
    InputAudioAppend,
    OpenAIOutboundEvent,
    OutboundEvent,
    ResponseDone,
    SessionUpdated,
    SpeechStarted,
    TranscriptionCompleted,
    TwilioMark,
    TwilioMedia,
    TwilioMediaOut,
    TwilioStart,
    decode_openai_message,
    decode_twilio_message,
    encode_event,
)
from function_call_dispatcher import FunctionCallDispatcher, FunctionCallError
from interruption_controller import InterruptionController
from logging_config import get_logger
from mark_tracker import MarkTracker
from models import CallSession
from openai_service import OpenAIService

log = get_logger(__name__)

Connector = Callable[[], Awaitable]


class SessionBridge:
    """
    Owns one call: the Twilio socket, the OpenAI socket and the CallSession between
    them. Both legs feed messages through a per-session lock, so every message is
    applied (state change plus the sends it causes) before the next one starts.
    """

    def __init__(
        self,
        twilio_ws: WebSocket,
        registry: AgentRegistry,
        connector: Optional[Connector] = None,
        dispatcher: Optional[FunctionCallDispatcher] = None,
    ):
        self.twilio_ws = twilio_ws
        self.session = CallSession(current_agent=registry.default)
        self.dispatcher = dispatcher or FunctionCallDispatcher(registry)
        self._connector = connector or OpenAIService.connect
        self._openai_ws = None
        self._lock = asyncio.Lock()

    @property
    def openai_open(self) -> bool:
        return self._openai_ws is not None and self._openai_ws.state is State.OPEN

    async def run(self) -> None:
        """Bridge until Twilio hangs up. Closing Twilio always tears down the OpenAI leg."""
        openai_task = asyncio.create_task(self._run_openai_leg(), name="openai->twilio")
        try:
            await self._receive_from_twilio()
        finally:
            await self._close_openai_leg(openai_task)

    # =============================
    # Socket loops
    # =============================
    async def _receive_from_twilio(self) -> None:
        try:
            async for message in self.twilio_ws.iter_text():
                await self.handle_twilio_message(message)
        except WebSocketDisconnect:
            pass
        log.info("Twilio client disconnected", stream_sid=self.session.stream_id)

    async def _run_openai_leg(self) -> None:
        try:
            self._openai_ws = await self._connector()
        except (OSError, WebSocketException, asyncio.TimeoutError) as e:
            log.error("Error during WS connection with OpenAI", error=str(e))
            return

        log.info("Connected to OpenAI", agent=self.session.current_agent.name)
        async with self._lock:
            await self._send_all(
                [OpenAIService.session_update(self.session.current_agent)]
                + OpenAIService.initial_conversation_items()
            )

        try:
            async for message in self._openai_ws:
                await self.handle_openai_message(message)
        except ConnectionClosed as e:
            log.warning("OpenAI WS connection error", error=str(e))
        except Exception:
            log.exception("OpenAI leg failed")
        finally:
            log.info("OpenAI WS connection closed")

    async def _close_openai_leg(self, task: asyncio.Task) -> None:
        if self._openai_ws is None:
            # still connecting
            task.cancel()
        elif self._openai_ws.state in (State.CONNECTING, State.OPEN):
            await self._openai_ws.close()
        try:
            await task
        except asyncio.CancelledError:
            pass
        except Exception:
            log.exception("OpenAI leg failed during setup")

    # =============================
    # Twilio -> OpenAI
    # =============================
    async def handle_twilio_message(self, message) -> None:
        async with self._lock:
            try:
                outbound = self.apply_twilio_event(decode_twilio_message(message))
            except EventDecodeError as e:
                log.warning("Error processing Twilio client message", error=str(e))
                return
            except Exception:
                log.exception("Error processing Twilio client message")
                return
            await self._send_all(outbound)

    def apply_twilio_event(self, event) -> List[OutboundEvent]:
        session = self.session
        if isinstance(event, TwilioStart):
            if session.stream_id is not None:
                log.warning("Ignoring repeated stream start", stream_sid=event.stream_sid, bound=session.stream_id)
                return []
            session.start_stream(event.stream_sid)
            log.info("Stream started", stream_sid=event.stream_sid, start=event.start)

        elif isinstance(event, TwilioMedia):
            session.latest_media_timestamp = event.timestamp
            if self.openai_open:
                return [InputAudioAppend(audio=event.payload)]

        elif isinstance(event, TwilioMark):
            MarkTracker.acknowledge(session)

        return []

    # =============================
    # OpenAI -> Twilio
    # =============================
    async def handle_openai_message(self, message) -> None:
        async with self._lock:
            try:
                outbound = self.apply_openai_event(decode_openai_message(message))
            except EventDecodeError as e:
                log.warning("Error processing OpenAI message", error=str(e))
                return
            except Exception:
                log.exception("Error processing OpenAI message")
                return
            await self._send_all(outbound)

    def apply_openai_event(self, event) -> List[OutboundEvent]:
        session = self.session

        if isinstance(event, AudioDelta):
            events: List[OutboundEvent] = [TwilioMediaOut(stream_sid=session.stream_id, payload=event.delta)]
            events.extend(MarkTracker.on_audio_forwarded(session, event.item_id))
            return events

        if isinstance(event, SpeechStarted):
            log.info("OpenAI event", type="input_audio_buffer.speech_started")
            return InterruptionController.on_speech_started(session)

        if isinstance(event, ResponseDone):
            log.info("OpenAI event", type="response.done", function_calls=len(event.function_calls))
            return self._dispatch_function_calls(event)

        if isinstance(event, SessionUpdated):
            log.info("Session updated", session=event.session)
        elif isinstance(event, TranscriptionCompleted):
            log.info("Transcript", transcript=event.transcript, item_id=event.item_id)
        elif isinstance(event, ErrorEvent):
            log.error("OpenAI error event", error=event.error)
        elif isinstance(event, IgnoredEvent) and event.type in LOG_EVENT_TYPES:
            log.info("OpenAI event", type=event.type)
        return []

    def _dispatch_function_calls(self, event: ResponseDone) -> List[OutboundEvent]:
        events: List[OutboundEvent] = []
        for call in event.function_calls:
            try:
                result = self.dispatcher.dispatch(call, self.session.current_agent)
            except FunctionCallError as e:
                log.error("Function call failed", error=str(e), name=call.name, call_id=call.call_id)
                continue
            except Exception:
                log.exception("Function call failed", name=call.name, call_id=call.call_id)
                continue
            if result.agent is not None:
                self.session.current_agent = result.agent
            events.extend(result.events)
        return events

    # =============================
    # Sending
    # =============================
    async def _send_all(self, events: List[OutboundEvent]) -> None:
        for event in events:
            if isinstance(event, OpenAIOutboundEvent):
                await self._send_to_openai(event)
            else:
                await self._send_to_twilio(event)

    async def _send_to_openai(self, event: OpenAIOutboundEvent) -> None:
        if not self.openai_open:
            log.debug("Dropping event for closed OpenAI leg", type=event.to_dict()["type"])
            return
        try:
            await self._openai_ws.send(encode_event(event))
        except ConnectionClosed as e:
            log.warning("OpenAI send failed", error=str(e))

    async def _send_to_twilio(self, event) -> None:
        if self.twilio_ws.client_state != WebSocketState.CONNECTED:
            return
        try:
            await self.twilio_ws.send_text(encode_event(event))
        except (WebSocketDisconnect, RuntimeError) as e:
            log.warning("Twilio send failed", error=str(e))

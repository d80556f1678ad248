"""
Barge-in handling: the caller started talking over the assistant.
"""
from typing import List

from event_translator import ConversationItemTruncate, OutboundEvent, TwilioClear
from logging_config import get_logger
from models import CallSession

log = get_logger(__name__)


class InterruptionController:
    """Truncates the assistant item upstream and flushes Twilio's playback buffer."""

    @staticmethod
    def is_utterance_playing(session: CallSession) -> bool:
        return bool(session.mark_queue) and session.response_start_timestamp is not None

    @staticmethod
    def on_speech_started(session: CallSession) -> List[OutboundEvent]:
        """
        If assistant audio is still playing, cut the assistant item at the point the
        caller actually heard and clear whatever Twilio has buffered. Otherwise no-op.
        """
        if not InterruptionController.is_utterance_playing(session):
            return []

        elapsed = session.latest_media_timestamp - session.response_start_timestamp
        events: List[OutboundEvent] = []
        if session.last_assistant_item_id:
            events.append(ConversationItemTruncate(
                item_id=session.last_assistant_item_id,
                content_index=0,
                audio_end_ms=elapsed,
            ))
        events.append(TwilioClear(stream_sid=session.stream_id))

        log.info(
            "Caller interrupted assistant",
            item_id=session.last_assistant_item_id,
            audio_end_ms=elapsed,
            pending_marks=len(session.mark_queue),
        )
        session.reset_response()
        return events

"""
Playback acknowledgement tracking for assistant audio sent to Twilio.
"""
from typing import List, Optional

from config import MARK_NAME
from event_translator import TwilioMarkOut, TwilioOutboundEvent
from models import CallSession


class MarkTracker:
    """
    Every assistant audio chunk forwarded to Twilio is followed by a mark; Twilio
    echoes the mark back once that chunk has played. The length of the mark queue
    is the number of chunks still buffered on the Twilio side.
    """

    @staticmethod
    def on_audio_forwarded(session: CallSession, item_id: Optional[str]) -> List[TwilioOutboundEvent]:
        """Record one forwarded audio chunk and return the mark to send after it."""
        if session.response_start_timestamp is None:
            session.response_start_timestamp = session.latest_media_timestamp
        if item_id:
            session.last_assistant_item_id = item_id

        # marks need a stream to be addressed to
        if not session.stream_id:
            return []
        session.mark_queue.append(MARK_NAME)
        return [TwilioMarkOut(stream_sid=session.stream_id, name=MARK_NAME)]

    @staticmethod
    def acknowledge(session: CallSession) -> Optional[str]:
        """Pop the oldest outstanding mark, if any."""
        if session.mark_queue:
            return session.mark_queue.pop(0)
        return None

"""
Data models for the realtime agent bridge.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class AgentProfile:
    """An agent the speech API can be configured as. Never mutated once registered."""
    name: str
    instructions: str
    tools: Tuple[Dict[str, Any], ...] = ()
    public_description: str = ""
    downstream_agents: Tuple[str, ...] = ()


@dataclass
class CallSession:
    """
    Mutable per-call state shared between the Twilio and OpenAI event streams.
    Only the owning SessionBridge mutates it, one message at a time.
    """
    current_agent: AgentProfile
    stream_id: Optional[str] = None
    latest_media_timestamp: int = 0  # ms (from Twilio media events)
    response_start_timestamp: Optional[int] = None  # ms, on the Twilio clock
    last_assistant_item_id: Optional[str] = None
    mark_queue: List[str] = field(default_factory=list)

    def start_stream(self, stream_id: str) -> None:
        """Bind the Twilio stream and reset the call clock."""
        self.stream_id = stream_id
        self.response_start_timestamp = None
        self.latest_media_timestamp = 0

    def reset_response(self) -> None:
        """Forget the in-flight assistant utterance and its pending marks."""
        self.mark_queue.clear()
        self.last_assistant_item_id = None
        self.response_start_timestamp = None

"""
Dispatch of function calls requested by the OpenAI Realtime API.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from agents import TRANSFER_AGENTS_TOOL, AgentRegistry
from event_translator import FunctionCall, OpenAIOutboundEvent
from logging_config import get_logger
from models import AgentProfile
from openai_service import OpenAIService
from utils import parse_json_object

log = get_logger(__name__)


class FunctionCallError(Exception):
    """A single function call could not be handled."""

    def __init__(self, call: FunctionCall, message: str):
        super().__init__(f"{call.name} ({call.call_id}): {message}")
        self.call = call


@dataclass
class DispatchResult:
    """
    Events to send upstream for one function call, in order, and the agent the
    session should switch to (None to keep the current one).
    """
    events: List[OpenAIOutboundEvent] = field(default_factory=list)
    agent: Optional[AgentProfile] = None


class FunctionCallDispatcher:
    """Resolves tool invocations against the agent registry."""

    def __init__(self, registry: AgentRegistry):
        self.registry = registry
        self._handlers = {
            TRANSFER_AGENTS_TOOL: self._transfer_agents,
        }

    def dispatch(self, call: FunctionCall, current_agent: AgentProfile) -> DispatchResult:
        """
        Handle one function call. Raises FunctionCallError if its arguments cannot be
        parsed; the caller decides what that means for the rest of the response.
        """
        try:
            args = parse_json_object(call.arguments)
        except ValueError as e:
            raise FunctionCallError(call, f"unparseable arguments: {e}") from e

        log.info("Function call", name=call.name, call_id=call.call_id, agent=current_agent.name, args=args)

        handler = self._handlers.get(call.name)
        if handler is None:
            return self._fallback(call)
        return handler(call, args)

    def _transfer_agents(self, call: FunctionCall, args: Dict[str, Any]) -> DispatchResult:
        destination = args.get("destination_agent")
        # anything but a name is treated as an unknown destination
        new_agent = self.registry.get(destination) if isinstance(destination, str) else None

        result = DispatchResult(agent=new_agent)
        if new_agent is not None:
            # the continuation must run with the new agent's instructions
            result.events.append(OpenAIService.session_update(new_agent))
            log.info("Transferring call", destination=destination)
        else:
            log.warning("Transfer to unknown agent", destination=destination, known=self.registry.names)

        output = {"destination": destination, "transferred": new_agent is not None}
        result.events.extend(OpenAIService.function_result(call.call_id, output))
        log.info("Function call response", name=call.name, call_id=call.call_id, output=output)
        return result

    def _fallback(self, call: FunctionCall) -> DispatchResult:
        # never leave the model waiting on a tool result
        output = {"result": True}
        log.info("Function call fallback", name=call.name, call_id=call.call_id, output=output)
        return DispatchResult(events=OpenAIService.function_result(call.call_id, output))

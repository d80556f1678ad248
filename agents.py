"""
Agent registry: the ordered, read-only set of agents a call can be handed between.
"""
from dataclasses import replace
from typing import Dict, Iterable, List, Optional, Sequence

from models import AgentProfile

TRANSFER_AGENTS_TOOL = "transferAgents"


class AgentRegistry:
    """Name lookup over an ordered agent list. The first agent is the default."""

    def __init__(self, agents: Sequence[AgentProfile]):
        if not agents:
            raise ValueError("An agent registry needs at least one agent.")
        self._agents = tuple(agents)
        self._by_name = {agent.name: agent for agent in self._agents}

    @property
    def default(self) -> AgentProfile:
        return self._agents[0]

    @property
    def names(self) -> List[str]:
        return [agent.name for agent in self._agents]

    def get(self, name: Optional[str]) -> Optional[AgentProfile]:
        if not isinstance(name, str):
            return None
        return self._by_name.get(name)

    def __iter__(self):
        return iter(self._agents)

    def __len__(self):
        return len(self._agents)


def build_transfer_tool(agent: AgentProfile, agents: Iterable[AgentProfile]) -> Dict:
    """Function declaration letting `agent` hand the caller to one of its downstream agents."""
    by_name = {a.name: a for a in agents}
    available = "\n".join(
        f"- {name}: {by_name[name].public_description}"
        for name in agent.downstream_agents
        if name in by_name
    )
    return {
        "type": "function",
        "name": TRANSFER_AGENTS_TOOL,
        "description": (
            "Triggers a transfer of the user to a more specialized agent. "
            "Only call this function if one of the available agents is appropriate. "
            "Let the user know you're about to transfer them before doing so.\n"
            f"Available Agents:\n{available}"
        ),
        "parameters": {
            "type": "object",
            "properties": {
                "rationale_for_transfer": {
                    "type": "string",
                    "description": "The reasoning why this transfer is needed.",
                },
                "conversation_context": {
                    "type": "string",
                    "description": "Relevant context from the conversation that will help the recipient perform the correct action.",
                },
                "destination_agent": {
                    "type": "string",
                    "description": "The more specialized destination_agent that should handle the user's intended request.",
                    "enum": list(agent.downstream_agents),
                },
            },
            "required": ["rationale_for_transfer", "conversation_context", "destination_agent"],
        },
    }


def inject_transfer_tools(agents: Sequence[AgentProfile]) -> List[AgentProfile]:
    """Return copies of `agents` where each agent with downstream agents can call transferAgents."""
    result = []
    for agent in agents:
        if agent.downstream_agents:
            tool = build_transfer_tool(agent, agents)
            agent = replace(agent, tools=tuple(agent.tools) + (tool,))
        result.append(agent)
    return result


# =============================
# Bundled agent sets
# =============================
HAIKU_WRITER = AgentProfile(
    name="haikuWriter",
    public_description="Agent that writes haikus.",
    instructions="Ask the user for a topic, then reply with a haiku about that topic.",
)

GREETER = AgentProfile(
    name="greeter",
    public_description="Agent that greets the user.",
    instructions=(
        "Please greet the user and ask them if they'd like a Haiku. "
        "If yes, transfer them to the 'haikuWriter' agent."
    ),
    downstream_agents=(HAIKU_WRITER.name,),
)

ALL_AGENT_SETS: Dict[str, List[AgentProfile]] = {
    "simpleExample": inject_transfer_tools([GREETER, HAIKU_WRITER]),
}

DEFAULT_AGENT_SET_KEY = "simpleExample"


def load_registry(key: str = DEFAULT_AGENT_SET_KEY) -> AgentRegistry:
    """Build the registry for a bundled agent set. Raises KeyError for unknown keys."""
    if key not in ALL_AGENT_SETS:
        raise KeyError(f"Unknown agent set {key!r}; expected one of {sorted(ALL_AGENT_SETS)}")
    return AgentRegistry(ALL_AGENT_SETS[key])

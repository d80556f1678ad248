import asyncio
import json
import os

os.environ.setdefault("OPENAI_API_KEY", "test-key")

import pytest
from starlette.websockets import WebSocketState
from websockets.protocol import State

from agents import GREETER, HAIKU_WRITER, AgentRegistry, inject_transfer_tools
from models import CallSession


class FakeTwilioSocket:
    """Stands in for the FastAPI WebSocket on the Twilio leg."""

    def __init__(self, messages=(), wait_for=None):
        self.messages = list(messages)
        self.wait_for = wait_for
        self.sent = []
        self.client_state = WebSocketState.CONNECTED

    async def iter_text(self):
        if self.wait_for is not None:
            await self.wait_for.wait()
        for message in self.messages:
            await asyncio.sleep(0)
            yield message

    async def send_text(self, data):
        self.sent.append(json.loads(data))


class FakeOpenAISocket:
    """Stands in for the websockets client connection on the OpenAI leg."""

    def __init__(self, messages=()):
        self.messages = list(messages)
        self.sent = []
        self.state = State.OPEN
        self._closed = asyncio.Event()

    async def send(self, data):
        self.sent.append(json.loads(data))

    async def close(self):
        self.state = State.CLOSED
        self._closed.set()

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for message in self.messages:
            yield message
        await self._closed.wait()


@pytest.fixture
def registry():
    return AgentRegistry(inject_transfer_tools([GREETER, HAIKU_WRITER]))


@pytest.fixture
def session(registry):
    return CallSession(current_agent=registry.default)


@pytest.fixture
def twilio_ws():
    return FakeTwilioSocket()


@pytest.fixture
def openai_ws():
    return FakeOpenAISocket()

"""
Realtime agent bridge: Twilio media streams <-> OpenAI Realtime.
"""
from fastapi import FastAPI

from agents import load_registry
from config import AGENT_SET, HOST, PORT
from logging_config import configure_logging
from routes import Routes

configure_logging()

app = FastAPI(title="Realtime Agent Bridge")

registry = load_registry(AGENT_SET)
Routes(app, registry)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=HOST, port=PORT)

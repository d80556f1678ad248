"""
Utility functions for the realtime agent bridge.
"""
import json
import uuid
from typing import Any, Dict, Union


def parse_json_object(raw: Union[str, bytes, bytearray, Dict[str, Any], None]) -> Dict[str, Any]:
    """
    Parse a JSON object from a websocket frame or function-call argument string.
    Raises ValueError when the payload is not valid JSON or not an object.
    """
    if isinstance(raw, dict):
        return raw
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode()
    if not isinstance(raw, str):
        raise ValueError(f"expected a JSON string, got {type(raw).__name__}")
    data = json.loads(raw)
    if not isinstance(data, dict):
        raise ValueError(f"expected a JSON object, got {type(data).__name__}")
    return data


def short_id() -> str:
    """Item ids on the Realtime API are limited to 32 characters."""
    return uuid.uuid4().hex[:32]

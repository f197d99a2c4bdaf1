"""
Wire format: every frame in both directions is a JSON object
{"type": <string>, "payload": <object>}.
"""
import json
from dataclasses import dataclass
from typing import Any, Dict, Union

from pydantic import ValidationError

from errors import MalformedMessage, PollError
from logging_config import get_logger
from schemas.messages import ERROR, STATE, Envelope, ErrorPayload, StatePayload

logger = get_logger(__name__)


@dataclass(frozen=True)
class Command:
    type: str
    payload: Dict[str, Any]


def decode(raw: Union[str, bytes]) -> Command:
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError:
            raise MalformedMessage("Message is not valid UTF-8 text.")
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        raise MalformedMessage("Message is not valid JSON.")

    try:
        envelope = Envelope.model_validate(data)
    except ValidationError as e:
        logger.debug(f"Rejected envelope: {e.error_count()} validation errors")
        raise MalformedMessage()
    return Command(type=envelope.type, payload=envelope.payload)


def encode(message_type: str, payload: Dict[str, Any]) -> str:
    return json.dumps({"type": message_type, "payload": payload})


def encode_state(snapshot: Dict[str, Any]) -> str:
    """Serialize a room snapshot as a STATE frame."""
    payload = StatePayload.model_validate(snapshot)
    return encode(STATE, payload.model_dump())


def encode_error(error: PollError) -> str:
    payload = ErrorPayload(message=error.message, code=error.code)
    return encode(ERROR, payload.model_dump())

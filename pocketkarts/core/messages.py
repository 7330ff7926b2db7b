"""
Message kinds exchanged with clients.

Every message is a JSON object {"type": <kind>, "data": <payload>}. Client
payloads are validated with pydantic; anything that cannot be understood
raises MessageError for the transport to log and skip.
"""

import json
from enum import Enum
from typing import Any, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from pocketkarts.core.vehicle import InputIntent, Vehicle


class MessageKind(str, Enum):
    """All message kinds, both directions."""
    # client -> server
    JOIN = "join"
    INPUT = "input"
    # server -> client
    JOINED = "joined"
    SNAPSHOT = "snapshot"
    PLAYER_JOINED = "playerJoined"
    PLAYER_LEFT = "playerLeft"
    RACE_OVER = "raceOver"


CLIENT_KINDS = (MessageKind.JOIN, MessageKind.INPUT)


class MessageError(Exception):
    """Raised when a client message cannot be parsed."""
    pass


# ===== Pydantic Models =====

class JoinPayload(BaseModel):
    """Request to enter the session."""
    name: str = Field(default="", description="Requested display name")

    @field_validator("name", mode="before")
    @classmethod
    def coerce_name(cls, value: Any) -> str:
        if value is None:
            return ""
        return str(value)


class InputPayload(BaseModel):
    """Latest control intent. Missing or non-boolean fields mean 'not pressed'."""
    model_config = ConfigDict(populate_by_name=True)

    turn_left: bool = Field(default=False, alias="turnLeft")
    turn_right: bool = Field(default=False, alias="turnRight")
    throttle_forward: bool = Field(default=False, alias="throttleForward")
    throttle_reverse: bool = Field(default=False, alias="throttleReverse")

    @field_validator("*", mode="before")
    @classmethod
    def strict_flag(cls, value: Any) -> bool:
        return value is True

    def to_intent(self) -> InputIntent:
        return InputIntent(
            turn_left=self.turn_left,
            turn_right=self.turn_right,
            throttle_forward=self.throttle_forward,
            throttle_reverse=self.throttle_reverse,
        )


ClientPayload = Union[JoinPayload, InputPayload]


def parse_client_message(raw: Union[str, bytes, dict]) -> Tuple[MessageKind, ClientPayload]:
    """
    Parse a client frame into its kind and validated payload.

    Args:
        raw: JSON text or an already-decoded object

    Returns:
        Tuple of (kind, payload)

    Raises:
        MessageError: If the frame is not JSON, has no known client kind,
            or its payload is not an object
    """
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise MessageError(f"Invalid JSON: {e}") from e

    if not isinstance(raw, dict):
        raise MessageError("Message must be a JSON object")

    try:
        kind = MessageKind(raw.get("type"))
    except ValueError:
        raise MessageError(f"Unknown message type: {raw.get('type')!r}")

    if kind not in CLIENT_KINDS:
        raise MessageError(f"Message type {kind.value} is server-only")

    data = raw.get("data")
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise MessageError(f"Payload of {kind.value} must be an object")

    try:
        if kind == MessageKind.JOIN:
            return kind, JoinPayload.model_validate(data)
        return kind, InputPayload.model_validate(data)
    except ValidationError as e:
        raise MessageError(str(e)) from e


def make_message(kind: MessageKind, data: dict) -> dict:
    """Wrap a payload for sending."""
    return {'type': kind.value, 'data': data}


def joined_message(vehicle: Vehicle, snapshot: dict) -> dict:
    return make_message(MessageKind.JOINED, {'player_id': vehicle.id, 'snapshot': snapshot})


def player_joined_message(vehicle: Vehicle) -> dict:
    return make_message(MessageKind.PLAYER_JOINED, {'player': vehicle.to_dict()})


def player_left_message(player_id: str) -> dict:
    return make_message(MessageKind.PLAYER_LEFT, {'player_id': player_id})

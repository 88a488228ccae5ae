"""
Command Envelopes

Type-safe structures for operator commands.

An operator request is {"command": name, "parameters": {...}}. Routing keys
("node_id", or "node id" as sent by older CLIs) are pulled out of the
parameters here, once, so nothing downstream has to look at raw dicts.
What is queued for the node is the envelope without the routing key.
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .exceptions import ValidationError


# Accepted spellings of the routing key, in lookup order
NODE_ID_KEYS = ("node_id", "node id")

# Largest value an SQLite INTEGER column holds; node ids and cursors above it
# cannot be stored or compared
MAX_ID = 2**63 - 1

# Longest accepted reporting period, in seconds (one year)
MAX_PERIOD_SECONDS = 365 * 24 * 60 * 60


class CommandName(str, Enum):
    """Commands the hub itself reacts to"""
    SET_UPDATE_INTERVAL = "set_update_interval"


class CommandScope(str, Enum):
    """Who receives a command"""
    TARGETED = "targeted"
    BROADCAST = "broadcast"


@dataclass
class CommandEnvelope:
    """Serialized form of a command as delivered to a probe"""
    command: str
    parameters: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"command": self.command}
        if self.parameters is not None:
            data["parameters"] = self.parameters
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"))

    @classmethod
    def from_json(cls, raw: str) -> "CommandEnvelope":
        """Decode a stored envelope. Raises ValueError on malformed rows."""
        data = json.loads(raw)
        if not isinstance(data, dict) or not isinstance(data.get("command"), str):
            raise ValueError("stored command is not an envelope object")
        parameters = data.get("parameters")
        if parameters is not None and not isinstance(parameters, dict):
            raise ValueError("stored command parameters are not an object")
        return cls(command=data["command"], parameters=parameters)


@dataclass
class GenericCommand:
    """Any command; the hub only routes it"""
    envelope: CommandEnvelope
    node_id: int | None = None

    @property
    def scope(self) -> CommandScope:
        if self.node_id is None:
            return CommandScope.BROADCAST
        return CommandScope.TARGETED

    @property
    def name(self) -> str:
        return self.envelope.command


@dataclass
class SetUpdateInterval(GenericCommand):
    """Reporting cadence change; also moves the tracked max interval"""
    active_period: int | None = None
    inactive_period: int | None = None

    @property
    def candidate_interval(self) -> int | None:
        """max(active, inactive), or None unless both are integers"""
        if self.active_period is None or self.inactive_period is None:
            return None
        return max(self.active_period, self.inactive_period)


@dataclass
class _Parsed:
    node_id: int | None = None
    parameters: dict[str, Any] = field(default_factory=dict)


def _is_int(value: Any) -> bool:
    # JSON true/false decode to bool, which is an int subclass
    return isinstance(value, int) and not isinstance(value, bool)


def _split_routing(parameters: dict[str, Any]) -> _Parsed:
    parsed = _Parsed(parameters=dict(parameters))
    for key in NODE_ID_KEYS:
        if key not in parsed.parameters:
            continue
        value = parsed.parameters.pop(key)
        if parsed.node_id is not None:
            continue
        if not _is_int(value) or not 0 <= value <= MAX_ID:
            raise ValidationError("node_id must be a non-negative integer", field=key)
        parsed.node_id = value
    return parsed


def _period(parameters: dict[str, Any], key: str) -> int | None:
    # Non-integers are not a cadence the hub can track; the node still gets
    # the command, the tracked interval is left alone
    value = parameters.get(key)
    if not _is_int(value):
        return None
    if not 0 <= value <= MAX_PERIOD_SECONDS:
        raise ValidationError(
            f"{key} must be between 0 and {MAX_PERIOD_SECONDS} seconds", field=key
        )
    return value


def parse_command(
    command: Any,
    parameters: dict[str, Any] | None = None,
) -> GenericCommand:
    """
    Build the tagged command variant for an operator request.

    Args:
        command: Command name
        parameters: Optional parameters object, may carry the routing key

    Returns:
        SetUpdateInterval for cadence changes, GenericCommand otherwise

    Raises:
        ValidationError: Empty name, non-object parameters, bad node id, or
            an integer period that is negative, too long or zero for both
    """
    if not isinstance(command, str) or not command.strip():
        raise ValidationError("command must be a non-empty string", field="command")
    if parameters is not None and not isinstance(parameters, dict):
        raise ValidationError("parameters must be an object", field="parameters")

    parsed = _split_routing(parameters or {})
    payload = parsed.parameters or None
    envelope = CommandEnvelope(command=command, parameters=payload)

    if command == CommandName.SET_UPDATE_INTERVAL.value:
        result = SetUpdateInterval(
            envelope=envelope,
            node_id=parsed.node_id,
            active_period=_period(parsed.parameters, "active_period"),
            inactive_period=_period(parsed.parameters, "inactive_period"),
        )
        if result.candidate_interval == 0:
            raise ValidationError("update interval must be positive", field="active_period")
        return result

    return GenericCommand(envelope=envelope, node_id=parsed.node_id)

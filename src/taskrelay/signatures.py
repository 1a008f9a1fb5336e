"""Task signatures and their JSON wire encoding."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from typing import Any
from uuid import uuid4

from taskrelay.errors import EncodingError


@dataclass(slots=True)
class TaskArg:
    """One typed positional argument carried on the wire."""

    type: str
    value: Any


@dataclass(slots=True)
class TaskSignature:
    """Serializable description of one unit of work."""

    name: str
    routing_key: str = ""
    args: list[TaskArg] = field(default_factory=list)
    uuid: str = ""
    headers: dict[str, str] = field(default_factory=dict)
    immutable: bool = False

    def ensure_uuid(self) -> str:
        """Assign a random identifier once; keep a caller-supplied one."""

        if not self.uuid:
            self.uuid = str(uuid4())
        return self.uuid


def encode_signature(signature: TaskSignature) -> bytes:
    """Serialize a signature into a UTF-8 JSON payload."""

    try:
        document = json.dumps(asdict(signature), ensure_ascii=False, sort_keys=True)
    except (TypeError, ValueError) as error:
        raise EncodingError(f"JSON encode task {signature.name!r}: {error}") from error
    return document.encode("utf-8")


def decode_signature(payload: bytes) -> TaskSignature:
    """Deserialize and validate a payload produced by `encode_signature`."""

    try:
        raw = json.loads(payload.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as error:
        raise EncodingError(f"JSON decode task payload: {error}") from error
    if not isinstance(raw, dict):
        raise EncodingError("Task payload must be a JSON object")

    name = raw.get("name")
    uuid = raw.get("uuid", "")
    routing_key = raw.get("routing_key", "")
    raw_args = raw.get("args", [])
    headers = raw.get("headers", {})
    if not isinstance(name, str) or not name.strip():
        raise EncodingError("task.name must be a non-empty string")
    if not isinstance(uuid, str):
        raise EncodingError("task.uuid must be a string")
    if not isinstance(routing_key, str):
        raise EncodingError("task.routing_key must be a string")
    if not isinstance(raw_args, list):
        raise EncodingError("task.args must be an array")
    if not isinstance(headers, dict):
        raise EncodingError("task.headers must be an object")

    args: list[TaskArg] = []
    for index, item in enumerate(raw_args):
        if not isinstance(item, dict) or not isinstance(item.get("type"), str):
            raise EncodingError(f"task.args[{index}] must be an object with a string type")
        args.append(TaskArg(type=item["type"], value=item.get("value")))

    return TaskSignature(
        name=name,
        routing_key=routing_key,
        args=args,
        uuid=uuid,
        headers={str(key): str(value) for key, value in headers.items()},
        immutable=bool(raw.get("immutable", False)),
    )

"""Transport messages and their JSON package form."""

from __future__ import annotations

import base64
import binascii
import json
from dataclasses import dataclass, field
from typing import Any

from anonpeer.encoding import (
    MAX_UINT64,
    UINT64_SIZE,
    bytes_to_uint64,
    uint64_to_bytes,
)


@dataclass
class Head:
    """Header of a message: sender key, session key and salt."""

    sender: bytes = b""
    session: bytes = b""
    salt: bytes = b""


@dataclass
class Body:
    """Body of a message: payload, its hash, signature and proof of work."""

    data: bytes = b""
    hash: bytes = b""
    sign: bytes = b""
    proof: int = 0


@dataclass
class Message:
    """A message made of a head and a body."""

    head: Head = field(default_factory=Head)
    body: Body = field(default_factory=Body)

    def export_title(self) -> bytes:
        """Split the body data (len||title||data): keep data, return title.

        Raise ValueError if the data does not hold a valid title prefix.
        """
        raw = self.body.data
        if len(raw) < UINT64_SIZE:
            raise ValueError("message data is too short to hold a title")
        length = bytes_to_uint64(raw)
        rest = raw[UINT64_SIZE:]
        if length > len(rest):
            raise ValueError("message title is longer than the data")
        self.body.data = rest[length:]
        return rest[:length]

    def to_package(self) -> Package:
        """Serialise the message as a JSON package."""
        document = {
            "head": {
                "sender": _encode(self.head.sender),
                "session": _encode(self.head.session),
                "salt": _encode(self.head.salt),
            },
            "body": {
                "data": _encode(self.body.data),
                "hash": _encode(self.body.hash),
                "sign": _encode(self.body.sign),
                "proof": self.body.proof,
            },
        }
        return Package(json.dumps(document, separators=(",", ":")).encode("ascii"))


class Package(bytes):
    """Serialised form of a message as it travels over the network."""

    def size(self) -> int:
        return len(self)

    def size_to_bytes(self) -> bytes:
        """Length of the package as eight big-endian bytes."""
        return uint64_to_bytes(len(self))

    def bytes_to_size(self) -> int:
        """Read the package content as a big-endian length prefix."""
        return bytes_to_uint64(self)

    def to_message(self) -> Message:
        """Parse the JSON package; raise ValueError when it is malformed."""
        document = json.loads(bytes(self))
        if not isinstance(document, dict):
            raise ValueError("package is not a JSON object")
        head = _section(document, "head")
        body = _section(document, "body")
        return Message(
            head=Head(
                sender=_decode(head, "sender"),
                session=_decode(head, "session"),
                salt=_decode(head, "salt"),
            ),
            body=Body(
                data=_decode(body, "data"),
                hash=_decode(body, "hash"),
                sign=_decode(body, "sign"),
                proof=_proof(body),
            ),
        )


def new_message(title: bytes, data: bytes) -> Message:
    """Build a message whose body data is len(title)||title||data."""
    title = bytes(title)
    return Message(
        head=Head(),
        body=Body(data=uint64_to_bytes(len(title)) + title + bytes(data)),
    )


def _encode(value: bytes) -> str:
    return base64.b64encode(bytes(value)).decode("ascii")


def _section(document: dict[str, Any], name: str) -> dict[str, Any]:
    value = document.get(name)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"package field {name!r} is not an object")
    return value


def _decode(section: dict[str, Any], name: str) -> bytes:
    value = section.get(name)
    if value is None:
        return b""
    if not isinstance(value, str):
        raise ValueError(f"package field {name!r} is not a base64 string")
    try:
        return base64.b64decode(value, validate=True)
    except binascii.Error as exc:
        raise ValueError(f"package field {name!r} holds invalid base64") from exc


def _proof(section: dict[str, Any]) -> int:
    value = section.get("proof")
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError("package proof is not an integer")
    if not 0 <= value <= MAX_UINT64:
        raise ValueError("package proof does not fit in 64 bits")
    return value
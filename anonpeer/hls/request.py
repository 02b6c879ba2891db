"""HTTP requests carried inside hidden lake messages."""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass, field
from typing import Any

from anonpeer.fileutils import deserialize, serialize


@dataclass
class Request:
    """An HTTP request addressed to a named hidden service."""

    host: str
    path: str
    method: str
    head: dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    def with_head(self, head: dict[str, str]) -> Request:
        """Replace the headers with a copy of head and return self."""
        self.head = dict(head)
        return self

    def with_body(self, body: bytes) -> Request:
        """Replace the body and return self."""
        self.body = bytes(body)
        return self

    def to_bytes(self) -> bytes:
        """Serialise the request as indented JSON."""
        return serialize(
            {
                "host": self.host,
                "path": self.path,
                "methos": self.method,
                "head": dict(sorted(self.head.items())),
                "body": self.body,
            }
        )


def _lookup(document: dict[str, Any], name: str) -> Any:
    found = None
    for key, value in document.items():
        if key.lower() == name:
            found = value
    return found


def _text(document: dict[str, Any], name: str) -> str:
    value = _lookup(document, name)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"request field {name!r} is not a string")
    return value


def load_request(data: bytes | str) -> Request:
    """Parse a serialised request; raise ValueError when it is malformed."""
    document = deserialize(data)
    if document is None:
        return Request("", "", "")
    if not isinstance(document, dict):
        raise ValueError("request is not a JSON object")

    head = _lookup(document, "head")
    if head is None:
        head = {}
    if not isinstance(head, dict) or not all(isinstance(v, str) for v in head.values()):
        raise ValueError("request head is not an object of strings")

    raw_body = _lookup(document, "body")
    if raw_body is None:
        body = b""
    elif isinstance(raw_body, str):
        try:
            body = base64.b64decode(
                raw_body.replace("\r", "").replace("\n", ""), validate=True
            )
        except binascii.Error as exc:
            raise ValueError("request body holds invalid base64") from exc
    else:
        raise ValueError("request body is not a base64 string")

    return Request(
        host=_text(document, "host"),
        path=_text(document, "path"),
        method=_text(document, "methos"),
        head=dict(head),
        body=body,
    )
"""Small file, prompt and JSON helpers used by the services."""

from __future__ import annotations

import base64
import dataclasses
import json
import os
import sys
from typing import Any

_JSON_ESCAPES = (
    ("<", "\\u003c"),
    (">", "\\u003e"),
    ("&", "\\u0026"),
    ("\u2028", "\\u2028"),
    ("\u2029", "\\u2029"),
)


def file_is_exist(path: str | os.PathLike) -> bool:
    """Return False only when the path definitely does not exist."""
    try:
        os.stat(path)
    except FileNotFoundError:
        return False
    except OSError:
        return True
    return True


def input_string(prompt: str) -> str:
    """Print a prompt, read one line from stdin and strip surrounding space."""
    print(prompt, end="", flush=True)
    line = sys.stdin.readline()
    if not line.endswith("\n"):
        raise EOFError("input ended before a newline")
    return line.strip()


def read_file(path: str | os.PathLike) -> bytes:
    """Return the whole content of a file."""
    with open(path, "rb") as handle:
        return handle.read()


def write_file(path: str | os.PathLike, data: bytes) -> None:
    """Replace the content of a file, creating it with mode 0644."""
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o644)
    with os.fdopen(fd, "wb") as handle:
        handle.write(data)


def _json_default(obj: Any) -> Any:
    if isinstance(obj, (bytes, bytearray, memoryview)):
        return base64.b64encode(bytes(obj)).decode("ascii")
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return dataclasses.asdict(obj)
    raise TypeError(f"object of type {type(obj).__name__} is not JSON serializable")


def serialize(data: Any) -> bytes:
    """Encode data as tab-indented JSON; bytes become standard base64 strings."""
    text = json.dumps(data, indent="\t", ensure_ascii=False, default=_json_default)
    for char, escape in _JSON_ESCAPES:
        text = text.replace(char, escape)
    return text.encode("utf-8")


def deserialize(data: bytes | str) -> Any:
    """Decode JSON text; raise ValueError when it is malformed."""
    return json.loads(data)
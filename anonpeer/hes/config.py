"""Configuration file of the hidden email service."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any

from anonpeer.fileutils import deserialize, file_is_exist, read_file, serialize, write_file

DEFAULT_ADDRESS = "localhost:9572"


@dataclass(frozen=True)
class Config:
    """Settings of the service: the address it listens on."""

    address: str = DEFAULT_ADDRESS


def _lookup(document: dict[str, Any], name: str) -> Any:
    """Return the value of the last key matching name without regard to case."""
    found = None
    for key, value in document.items():
        if key.lower() == name:
            found = value
    return found


def load_config(path: str | os.PathLike) -> Config:
    """Read the config at path, writing a default one first if it is missing.

    Raise ValueError when the file does not hold a valid configuration.
    """
    if not file_is_exist(path):
        config = Config()
        write_file(path, serialize({"address": config.address}))
        return config

    document = deserialize(read_file(path))
    if document is None:
        return Config(address="")
    if not isinstance(document, dict):
        raise ValueError("config is not a JSON object")
    address = _lookup(document, "address")
    if address is None:
        return Config(address="")
    if not isinstance(address, str):
        raise ValueError("config address is not a string")
    return Config(address=address)
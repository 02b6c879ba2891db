"""Configuration file of the hidden lake service."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from anonpeer.fileutils import deserialize, file_is_exist, read_file, serialize, write_file

DEFAULT_ADDRESS = "localhost:9571"
DEFAULT_CONNECTS: tuple[str, ...] = ("127.0.0.2:9571",)
DEFAULT_SERVICES: Mapping[str, str] = {
    "hidden-default-service": "http://localhost:8080",
}


@dataclass(frozen=True)
class Config:
    """Listen address, peers to connect to, and service name to URL mapping."""

    address: str = DEFAULT_ADDRESS
    connects: tuple[str, ...] = DEFAULT_CONNECTS
    services: Mapping[str, str] = field(default_factory=lambda: dict(DEFAULT_SERVICES))

    def __post_init__(self) -> None:
        object.__setattr__(self, "connects", tuple(self.connects))
        object.__setattr__(self, "services", dict(self.services))

    def get_service(self, name: str) -> str | None:
        """Return the network address of a named service, or None."""
        return self.services.get(name)


def _lookup(document: dict[str, Any], name: str) -> Any:
    """Return the value of the last key matching name without regard to case."""
    found = None
    for key, value in document.items():
        if key.lower() == name:
            found = value
    return found


def _string_list(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ValueError("config connects is not a list of strings")
    return tuple(value)


def _string_map(value: Any) -> dict[str, str]:
    if value is None:
        return {}
    if not isinstance(value, dict) or not all(isinstance(item, str) for item in value.values()):
        raise ValueError("config services is not an object of strings")
    return dict(value)


def load_config(path: str | os.PathLike) -> Config:
    """Read the config at path, writing a default one first if it is missing.

    Raise ValueError when the file does not hold a valid configuration.
    """
    if not file_is_exist(path):
        config = Config()
        write_file(
            path,
            serialize(
                {
                    "address": config.address,
                    "connects": list(config.connects),
                    "services": dict(sorted(config.services.items())),
                }
            ),
        )
        return config

    document = deserialize(read_file(path))
    if document is None:
        return Config(address="", connects=(), services={})
    if not isinstance(document, dict):
        raise ValueError("config is not a JSON object")
    address = _lookup(document, "address")
    if address is None:
        address = ""
    if not isinstance(address, str):
        raise ValueError("config address is not a string")
    return Config(
        address=address,
        connects=_string_list(_lookup(document, "connects")),
        services=_string_map(_lookup(document, "services")),
    )
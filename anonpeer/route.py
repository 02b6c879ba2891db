"""Routes that describe how a message reaches its receiver."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from anonpeer.asymmetric import PrivKey, PubKey


@dataclass(frozen=True)
class Route:
    """Receiver of a message, with an optional pseudo sender and relay nodes.

    The message is wrapped once for every node in ``nodes``, in order, and
    the wrapping layers are signed by ``psender``.
    """

    receiver: PubKey
    psender: PrivKey | None = None
    nodes: Sequence[PubKey] = field(default=())

    def __post_init__(self) -> None:
        if self.receiver is None:
            raise ValueError("route needs a receiver")
        object.__setattr__(self, "nodes", tuple(self.nodes or ()))
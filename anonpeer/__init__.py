"""Anonymous peer-to-peer messaging: crypto primitives, messages, routing, storage and nodes."""

__version__ = "0.1.0"
"""Hidden lake service: forwards requests from the network to local HTTP services."""

from __future__ import annotations

import argparse
import os
import threading
import urllib.error
import urllib.request
from collections.abc import Callable

from anonpeer.asymmetric import KeyError_, PrivKey, load_priv_key
from anonpeer.client import Client
from anonpeer.fileutils import input_string
from anonpeer.hls.config import Config, load_config
from anonpeer.hls.request import load_request
from anonpeer.message import Message
from anonpeer.node import Node, NodeError
from anonpeer.settings import Settings
from anonpeer.storage import Storage, StorageError

AKEY_SIZE = 4096
PATTERN_HLS = "hidden-lake-service"
CONFIG_PATH = "hls.cfg"
STORAGE_PATH = "hls.stg"
OBJECT_IDENTIFIER = "private_key"


def make_route_handler(config: Config) -> Callable[[Client, Message], bytes | None]:
    """Build a node handler that performs the carried HTTP request."""

    def route(client: Client, msg: Message) -> bytes | None:
        try:
            request = load_request(msg.body.data)
        except ValueError:
            return None
        address = config.get_service(request.host)
        if address is None:
            return None
        try:
            http_request = urllib.request.Request(
                address + request.path,
                data=request.body or None,
                headers=request.head,
                method=request.method,
            )
            with urllib.request.urlopen(http_request) as response:
                return response.read()
        except urllib.error.HTTPError as exc:
            with exc:
                return exc.read()
        except (OSError, ValueError):
            return None

    return route


def get_priv_key(
    settings: Settings,
    filepath: str | os.PathLike,
    storage_password: str,
    object_password: str,
) -> PrivKey:
    """Load the private key from the storage, creating and saving one if absent."""
    storage = Storage(settings, filepath, storage_password)
    try:
        stored = storage.read(OBJECT_IDENTIFIER, object_password)
    except StorageError:
        priv = PrivKey.generate(AKEY_SIZE)
        storage.write(OBJECT_IDENTIFIER, object_password, bytes(priv))
        return priv
    return load_priv_key(stored)


def main(argv: list[str] | None = None) -> int:
    """Run the hidden lake service."""
    parser = argparse.ArgumentParser(prog="hls", description="Hidden lake service.")
    parser.add_argument("--init-only", action="store_true", help="run initialization only")
    args = parser.parse_args(argv)

    try:
        config = load_config(CONFIG_PATH)
        settings = Settings()
        priv = get_priv_key(
            settings,
            STORAGE_PATH,
            input_string("Storage password: "),
            input_string("Object password: "),
        )
    except (OSError, ValueError, EOFError, StorageError, KeyError_) as exc:
        print(f"failed load private key: {exc}")
        return 1

    client = Client(priv, settings)
    print(f"Public key: {priv.pub_key()}")
    if args.init_only:
        return 0
    print(f"Service is listening [{config.address}]...")

    node = Node(client).handle(PATTERN_HLS.encode("utf-8"), make_route_handler(config))
    for address in config.connects:
        try:
            node.connect(address)
        except NodeError as exc:
            print(exc)

    try:
        if not config.address:
            threading.Event().wait()
            return 0
        node.listen(config.address)
    except NodeError as exc:
        print(exc)
        return 2
    except KeyboardInterrupt:
        pass
    finally:
        node.close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
"""HTTP front end of the hidden email service."""

from __future__ import annotations

import argparse
import base64
import binascii
import json
import logging
import threading
from collections.abc import Callable
from datetime import datetime, timedelta, tzinfo
from enum import IntEnum
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any
from urllib.parse import urlsplit
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from anonpeer.encoding import MAX_UINT64, uint64_to_bytes
from anonpeer.hashing import HASH_SIZE
from anonpeer.hes.config import load_config
from anonpeer.hes.database import DatabaseError, KeyValueDB
from anonpeer.message import Package

CONFIG_PATH = "hes.cfg"
DB_PATH = "hes.db"
CLEAN_TIMEZONE = "Asia/Jakarta"
INDEX_CODE = 0
INDEX_TEXT = b"hidden email service"

_log = logging.getLogger(__name__)


class ErrorCode(IntEnum):
    """Values of the "return" field of a response."""

    NONE = 1
    METHOD = 2
    DECODE = 3
    SIZE = 4
    LOAD = 5
    PUSH = 6
    MESSAGE = 7


class _Failure(Exception):
    def __init__(self, code: ErrorCode, text: str) -> None:
        super().__init__(text)
        self.code = code
        self.text = text


def _reply(code: int, result: bytes) -> bytes:
    document = {"result": base64.b64encode(result).decode("ascii"), "return": int(code)}
    return (json.dumps(document, separators=(",", ":")) + "\n").encode("ascii")


def _decode_document(body: bytes) -> dict[str, Any]:
    try:
        text = body.decode("utf-8").lstrip(" \t\r\n")
        document, _ = json.JSONDecoder().raw_decode(text)
    except ValueError:
        raise _Failure(ErrorCode.DECODE, "failed: decode request") from None
    if document is None:
        return {}
    if not isinstance(document, dict):
        raise _Failure(ErrorCode.DECODE, "failed: decode request")
    return document


def _field(document: dict[str, Any], name: str) -> Any:
    found = None
    for key, value in document.items():
        if key.lower() == name:
            found = value
    return found


def _bytes_field(document: dict[str, Any], name: str) -> bytes:
    value = _field(document, name)
    if value is None:
        return b""
    if not isinstance(value, str):
        raise _Failure(ErrorCode.DECODE, "failed: decode request")
    try:
        return base64.b64decode(value.replace("\r", "").replace("\n", ""), validate=True)
    except binascii.Error:
        raise _Failure(ErrorCode.DECODE, "failed: decode request") from None


def _uint_field(document: dict[str, Any], name: str) -> int:
    value = _field(document, name)
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= MAX_UINT64:
        raise _Failure(ErrorCode.DECODE, "failed: decode request")
    return value


def _receiver(document: dict[str, Any]) -> bytes:
    receiver = _bytes_field(document, "receiver")
    if len(receiver) != HASH_SIZE:
        raise _Failure(ErrorCode.SIZE, "failed: receiver size")
    return receiver


def _size_page(db: KeyValueDB, document: dict[str, Any]) -> bytes:
    return uint64_to_bytes(db.size(_receiver(document)))


def _load_page(db: KeyValueDB, document: dict[str, Any]) -> bytes:
    receiver = _receiver(document)
    index = _uint_field(document, "index")
    try:
        msg = db.load(receiver, index)
    except DatabaseError:
        raise _Failure(ErrorCode.LOAD, "failed: load message") from None
    return bytes(msg.to_package())


def _push_page(db: KeyValueDB, document: dict[str, Any]) -> bytes:
    receiver = _receiver(document)
    package = _bytes_field(document, "package")
    try:
        msg = Package(package).to_message()
    except ValueError:
        raise _Failure(ErrorCode.MESSAGE, "failed: decode message") from None
    try:
        db.push(receiver, msg)
    except DatabaseError:
        raise _Failure(ErrorCode.PUSH, "failed: push message") from None
    return b"success"


_PAGES: dict[str, Callable[[KeyValueDB, dict[str, Any]], bytes]] = {
    "/size": _size_page,
    "/load": _load_page,
    "/push": _push_page,
}


def handle_request(db: KeyValueDB, method: str, path: str, body: bytes) -> bytes:
    """Answer one HTTP request and return the JSON response body."""
    page = _PAGES.get(urlsplit(path).path)
    if page is None:
        return _reply(INDEX_CODE, INDEX_TEXT)
    try:
        if method != "POST":
            raise _Failure(ErrorCode.METHOD, "failed: method POST")
        result = page(db, _decode_document(body))
    except _Failure as failure:
        return _reply(failure.code, failure.text.encode("utf-8"))
    return _reply(ErrorCode.NONE, result)


def _split_address(address: str) -> tuple[str, int]:
    host, sep, port = address.rpartition(":")
    if not sep:
        raise ValueError(f"missing port in address {address!r}")
    return host.strip("[]"), int(port)


def create_server(address: str, db: KeyValueDB) -> ThreadingHTTPServer:
    """Build an HTTP server bound to address that serves the mailbox pages."""

    class _Handler(BaseHTTPRequestHandler):
        def _serve(self) -> None:
            try:
                length = int(self.headers.get("Content-Length") or 0)
            except ValueError:
                length = 0
            body = self.rfile.read(length) if length > 0 else b""
            payload = handle_request(db, self.command, self.path, body)
            self.send_response(200)
            self.send_header("Content-Type", "application/json")
            self.send_header("Content-Length", str(len(payload)))
            self.end_headers()
            self.wfile.write(payload)

        do_GET = do_POST = do_PUT = do_DELETE = do_PATCH = do_OPTIONS = _serve

        def log_message(self, format: str, *args: Any) -> None:
            _log.debug("%s - " + format, self.address_string(), *args)

    return ThreadingHTTPServer(_split_address(address), _Handler)


def _seconds_until_midnight(zone: tzinfo) -> float:
    now = datetime.now(zone)
    midnight = (now + timedelta(days=1)).replace(hour=0, minute=0, second=0, microsecond=0)
    return max((midnight - now).total_seconds(), 0.0)


def _clean_daily(db: KeyValueDB, zone: tzinfo, stop: threading.Event) -> None:
    while not stop.wait(_seconds_until_midnight(zone)):
        try:
            db.clean()
        except (DatabaseError, OSError) as exc:
            _log.warning("daily clean failed: %s", exc)


def main(argv: list[str] | None = None) -> int:
    """Run the hidden email service until interrupted."""
    parser = argparse.ArgumentParser(prog="hes", description="Hidden email service.")
    parser.parse_args(argv)

    try:
        config = load_config(CONFIG_PATH)
        db = KeyValueDB(DB_PATH)
    except (OSError, ValueError, DatabaseError) as exc:
        print(exc)
        return 1
    try:
        zone = ZoneInfo(CLEAN_TIMEZONE)
    except ZoneInfoNotFoundError as exc:
        print(exc)
        db.close()
        return 1

    stop = threading.Event()
    threading.Thread(target=_clean_daily, args=(db, zone, stop), daemon=True).start()
    print(f"Service is listening [{config.address}]...")

    try:
        server = create_server(config.address, db)
    except (OSError, ValueError) as exc:
        print(exc)
        stop.set()
        db.close()
        return 2
    with server:
        try:
            server.serve_forever()
        except KeyboardInterrupt:
            pass
        finally:
            stop.set()
            db.close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
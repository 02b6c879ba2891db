"""Network node that floods, decrypts, routes and answers messages."""

from __future__ import annotations

import queue
import socket
import threading
import time
from collections.abc import Callable
from typing import Optional

from anonpeer.asymmetric import PrivKey, load_pub_key
from anonpeer.client import Client
from anonpeer.encoding import UINT64_SIZE, bytes_to_uint64, uint64_to_bytes
from anonpeer.f2f import F2F
from anonpeer.hashing import HASH_SIZE
from anonpeer.message import Message, Package, new_message
from anonpeer.prng import random_bytes, random_string, random_uint64
from anonpeer.puzzle import Puzzle
from anonpeer.route import Route
from anonpeer.settings import Key

Handler = Callable[[Client, Message], Optional[bytes]]

_ACCEPT_POLL = 0.25
_PSEUDO_EXTRA = 10 << 10  # up to 10 KiB of noise


class NodeError(Exception):
    """Raised when a node cannot listen, connect or get a response."""


class _Connection:
    """A socket with serialised writes."""

    def __init__(self, sock: socket.socket) -> None:
        self.sock = sock
        self._write_lock = threading.Lock()

    def write(self, data: bytes) -> None:
        with self._write_lock:
            try:
                self.sock.sendall(data)
            except OSError:
                pass

    def read_exact(self, size: int) -> bytes | None:
        buffer = bytearray()
        while len(buffer) < size:
            try:
                chunk = self.sock.recv(min(size - len(buffer), 1 << 16))
            except OSError:
                return None
            if not chunk:
                return None
            buffer += chunk
        return bytes(buffer)

    def close(self) -> None:
        try:
            self.sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        self.sock.close()


def _split_address(address: str) -> tuple[str, int]:
    host, sep, port = address.rpartition(":")
    if not sep:
        raise NodeError(f"missing port in address {address!r}")
    try:
        number = int(port)
    except ValueError:
        raise NodeError(f"invalid port in address {address!r}") from None
    return host.strip("[]"), number


def _spawn(target: Callable[..., object], *args: object) -> None:
    threading.Thread(target=target, args=args, daemon=True).start()


def _rand_size(length: int) -> int:
    return length + random_uint64() % _PSEUDO_EXTRA


def _rand_millis(limit: int) -> int:
    return random_uint64() % limit if limit else 0


class Node:
    """A peer that relays every message it sees and serves its own handlers."""

    def __init__(self, client: Client) -> None:
        if client is None:
            raise ValueError("node needs a client")
        self.client = client
        self.f2f = F2F()
        self._preceiver = PrivKey.generate(client.pub_key().size()).pub_key()
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._listener: socket.socket | None = None
        self._handlers: dict[bytes, Handler | None] = {}
        self._mapping: dict[bytes, None] = {}
        self._connections: dict[str, _Connection] = {}
        self._actions: dict[bytes, queue.Queue] = {}

    # public interface

    def listen(self, address: str) -> None:
        """Accept connections on address until the node is closed."""
        host, port = _split_address(address)
        try:
            listener = socket.create_server((host, port))
        except OSError as exc:
            raise NodeError(f"cannot listen on {address}: {exc}") from exc
        listener.settimeout(_ACCEPT_POLL)
        self._stop.clear()
        with self._lock:
            self._listener = listener
        with listener:
            while not self._stop.is_set():
                try:
                    sock, _ = listener.accept()
                except TimeoutError:
                    continue
                except OSError:
                    break
                sock.settimeout(None)
                if self._has_max_conn_size():
                    sock.close()
                    continue
                conn_id = random_string(self.client.settings.get(Key.SIZE_SKEY))
                self._set_connection(conn_id, _Connection(sock))
                _spawn(self._handle_conn, conn_id)

    def close(self) -> None:
        """Stop listening and close every connection."""
        self._stop.set()
        with self._lock:
            listener, self._listener = self._listener, None
            connections = list(self._connections.values())
            self._connections.clear()
        if listener is not None:
            listener.close()
        for conn in connections:
            conn.close()

    def handle(self, title: bytes, handler: Handler | None) -> Node:
        """Register a handler for messages with the given title."""
        with self._lock:
            self._handlers[bytes(title)] = handler
        return self

    def request(self, route: Route, msg: Message) -> bytes:
        """Send msg along route and wait for the receiver's response."""
        settings = self.client.settings
        wait = settings.get(Key.TIME_WAIT)
        retries = settings.get(Key.SIZE_RTRY)
        try:
            routed, session = self.client.encrypt(route, msg)
        except ValueError as exc:
            raise NodeError(str(exc)) from exc

        inbox: queue.Queue = queue.Queue()
        with self._lock:
            self._actions[session] = inbox
        try:
            for _ in range(retries):
                self._send(routed)
                try:
                    return inbox.get(timeout=wait)
                except queue.Empty:
                    continue
        finally:
            with self._lock:
                self._actions.pop(session, None)
        raise NodeError("time is over")

    def connections(self) -> list[str]:
        """Return the identifiers of all current connections."""
        with self._lock:
            return list(self._connections)

    def in_connections(self, address: str) -> bool:
        return self._get_connection(address) is not None

    def connect(self, address: str) -> None:
        """Open a connection to the node at address."""
        if self._has_max_conn_size():
            raise NodeError("max conn")
        host, port = _split_address(address)
        try:
            sock = socket.create_connection((host or "localhost", port))
        except OSError as exc:
            raise NodeError(f"cannot connect to {address}: {exc}") from exc
        self._set_connection(address, _Connection(sock))
        _spawn(self._handle_conn, address)

    def disconnect(self, address: str) -> None:
        """Close and forget the connection with the given identifier."""
        with self._lock:
            conn = self._connections.pop(address, None)
        if conn is not None:
            conn.close()

    # connection handling

    def _handle_conn(self, conn_id: str) -> None:
        conn = self._get_connection(conn_id)
        if conn is None:
            return
        retries = self.client.settings.get(Key.SIZE_RTRY)
        try:
            failures = 0
            while failures < retries:
                msg = self._read_message(conn)
                if msg is None:
                    failures += 1
                    continue
                failures = 0
                self._process(msg)
        finally:
            self._drop(conn_id, conn)

    def _read_message(self, conn: _Connection) -> Message | None:
        header = conn.read_exact(UINT64_SIZE)
        if header is None:
            return None
        length = bytes_to_uint64(header)
        if length > self.client.settings.get(Key.SIZE_PACK):
            return None
        payload = conn.read_exact(length)
        if payload is None:
            return None
        try:
            msg = Package(payload).to_message()
        except ValueError:
            return None
        return self._initial_check(msg)

    def _initial_check(self, msg: Message) -> Message | None:
        if len(msg.body.hash) != HASH_SIZE:
            return None
        puzzle = Puzzle(self.client.settings.get(Key.SIZE_WORK))
        if not puzzle.verify(msg.body.hash, msg.body.proof):
            return None
        return msg

    def _process(self, msg: Message) -> None:
        mask = uint64_to_bytes(self.client.settings.get(Key.MASK_ROUT))
        while True:
            if not self._remember(msg.body.hash):
                return
            self._send(msg)
            try:
                decrypted, title = self.client.decrypt(msg)
                sender = load_pub_key(decrypted.head.sender)
            except ValueError:
                return
            if self.f2f.status() and not self.f2f.in_list(sender):
                return
            if title != mask:
                self._handle_func(decrypted, title)
                return
            # A routing layer: maybe emit noise, then unwrap and go again.
            if random_uint64() % 2 == 0:
                self._send_pseudo(len(decrypted.body.data))
            try:
                msg = Package(decrypted.body.data).to_message()
            except ValueError:
                return

    def _send_pseudo(self, length: int) -> None:
        pseudo, _ = self.client.encrypt(
            Route(self._preceiver),
            new_message(random_bytes(16), random_bytes(_rand_size(length))),
        )
        self._send(pseudo)
        limit = self.client.settings.get(Key.TIME_PSDO)
        time.sleep(_rand_millis(limit) / 1000)

    def _handle_func(self, msg: Message, title: bytes) -> None:
        settings = self.client.settings
        skey_size = settings.get(Key.SIZE_SKEY)
        resp_bytes = uint64_to_bytes(settings.get(Key.MASK_ROUT))

        if title.startswith(resp_bytes):
            rest = title[len(resp_bytes):]
            if len(rest) < skey_size:
                return
            self._response(rest[:skey_size], msg.body.data)
            return

        with self._lock:
            handler = self._handlers.get(bytes(title))
        if handler is None:
            return

        answer = handler(self.client, msg) or b""
        reply, _ = self.client.encrypt(
            Route(load_pub_key(msg.head.sender)),
            new_message(resp_bytes + msg.head.session + title, answer),
        )
        self._send(reply)

    def _send(self, msg: Message) -> None:
        pack = msg.to_package()
        frame = pack.size_to_bytes() + bytes(pack)
        with self._lock:
            self._mapping[bytes(msg.body.hash)] = None
            connections = list(self._connections.values())
        for conn in connections:
            _spawn(conn.write, frame)

    def _response(self, session: bytes, data: bytes) -> None:
        with self._lock:
            inbox = self._actions.get(bytes(session))
        if inbox is not None:
            inbox.put(data)

    def _remember(self, digest: bytes) -> bool:
        """Record digest; return False if it had been seen already."""
        key = bytes(digest)
        limit = self.client.settings.get(Key.SIZE_MAPP)
        with self._lock:
            if key in self._mapping:
                return False
            if len(self._mapping) > limit:
                del self._mapping[next(iter(self._mapping))]
            self._mapping[key] = None
            return True

    def _has_max_conn_size(self) -> bool:
        limit = self.client.settings.get(Key.SIZE_CONN)
        with self._lock:
            return len(self._connections) > limit

    def _set_connection(self, conn_id: str, conn: _Connection) -> None:
        with self._lock:
            self._connections[conn_id] = conn

    def _get_connection(self, conn_id: str) -> _Connection | None:
        with self._lock:
            return self._connections.get(conn_id)

    def _drop(self, conn_id: str, conn: _Connection) -> None:
        with self._lock:
            if self._connections.get(conn_id) is conn:
                del self._connections[conn_id]
        conn.close()
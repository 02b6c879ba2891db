import json
import socket
import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest

from anonpeer.asymmetric import PrivKey
from anonpeer.client import Client
from anonpeer.hls.config import Config
from anonpeer.hls.request import Request
from anonpeer.hls.service import PATTERN_HLS, get_priv_key, make_route_handler
from anonpeer.message import Body, Message, new_message
from anonpeer.node import Node, NodeError
from anonpeer.route import Route
from anonpeer.settings import Key, fast_settings
from anonpeer.storage import Storage, StorageError

SERVICE_NAME = "hidden-echo-service"
ECHO_BODY = b'{"message": "hello, world!"}'
ECHO_RESULT = b'{"echo":"hello, world!","error":0}\n'


class _EchoHandler(BaseHTTPRequestHandler):
    def do_GET(self):
        length = int(self.headers.get("Content-Length") or 0)
        raw = self.rfile.read(length)
        try:
            reply = {"echo": json.loads(raw)["message"], "error": 0}
        except (ValueError, KeyError, TypeError):
            reply = {"echo": "", "error": 1}
        if self.path != "/echo":
            self.send_response(404)
            payload = b"missing"
        else:
            self.send_response(200)
            payload = (json.dumps(reply, separators=(",", ":")) + "\n").encode()
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(payload)))
        self.end_headers()
        self.wfile.write(payload)

    def log_message(self, format, *args):
        pass


@pytest.fixture
def echo_url():
    server = ThreadingHTTPServer(("127.0.0.1", 0), _EchoHandler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield f"http://127.0.0.1:{server.server_address[1]}"
    server.shutdown()
    server.server_close()


def _config(url):
    return Config(address="", connects=(), services={SERVICE_NAME: url})


def _message(request):
    return Message(body=Body(data=request.to_bytes()))


def _echo_request(path="/echo"):
    return (
        Request(SERVICE_NAME, path, "GET")
        .with_head({"Content-Type": "application/json"})
        .with_body(ECHO_BODY)
    )


def test_route_handler_forwards_request(echo_url):
    handler = make_route_handler(_config(echo_url))
    assert handler(None, _message(_echo_request())) == ECHO_RESULT


def test_route_handler_returns_error_body(echo_url):
    handler = make_route_handler(_config(echo_url))
    assert handler(None, _message(_echo_request("/other"))) == b"missing"


def test_route_handler_unknown_service(echo_url):
    handler = make_route_handler(_config(echo_url))
    request = Request("unknown-service", "/echo", "GET")
    assert handler(None, _message(request)) is None


def test_route_handler_malformed_data(echo_url):
    handler = make_route_handler(_config(echo_url))
    assert handler(None, Message(body=Body(data=b"not json"))) is None


def test_get_priv_key_reads_stored_key(tmp_path):
    settings = fast_settings()
    path = tmp_path / "hls.stg"
    storage_password = "password"
    object_password = "secret"
    priv = PrivKey.generate(1024)
    Storage(settings, path, storage_password).write("private_key", object_password, bytes(priv))

    loaded = get_priv_key(settings, path, storage_password, object_password)
    assert bytes(loaded) == bytes(priv)


def test_get_priv_key_creates_and_keeps_key(tmp_path):
    settings = fast_settings()
    path = tmp_path / "hls.stg"
    storage_password = "password"
    object_password = "secret"

    first = get_priv_key(settings, path, storage_password, object_password)
    second = get_priv_key(settings, path, storage_password, object_password)
    assert first.size() == 4096
    assert bytes(first) == bytes(second)


def test_get_priv_key_wrong_storage_password(tmp_path):
    settings = fast_settings()
    path = tmp_path / "hls.stg"
    storage_password = "password"
    wrong_password = "placeholder"
    object_password = "secret"
    Storage(settings, path, storage_password).write(
        "private_key", object_password, bytes(PrivKey.generate(1024))
    )
    with pytest.raises(StorageError):
        get_priv_key(settings, path, wrong_password, object_password)


def _free_port():
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


def _connect(node, address):
    deadline = time.monotonic() + 5
    while True:
        try:
            node.connect(address)
            return
        except NodeError:
            if time.monotonic() > deadline:
                raise
            time.sleep(0.05)


def test_request_through_hls_node(echo_url):
    settings = fast_settings().set(Key.TIME_WAIT, 15)
    pattern = PATTERN_HLS.encode()
    address = f"127.0.0.1:{_free_port()}"

    hls_priv = PrivKey.generate(1024)
    hls_node = Node(Client(hls_priv, settings)).handle(
        pattern, make_route_handler(_config(echo_url))
    )
    threading.Thread(target=hls_node.listen, args=(address,), daemon=True).start()

    client_node = Node(Client(PrivKey.generate(1024), settings)).handle(pattern, None)
    try:
        _connect(client_node, address)
        msg = new_message(pattern, _echo_request().to_bytes())
        result = client_node.request(Route(hls_priv.pub_key()), msg)
    finally:
        client_node.close()
        hls_node.close()

    assert result == ECHO_RESULT
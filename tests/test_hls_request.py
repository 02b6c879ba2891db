import json

import pytest

from anonpeer.hls.request import Request, load_request

HOST = "test_host"
PATH = "test_path"
METHOD = "test_method"
HEAD = {
    "test_header1": "test_value1",
    "test_header2": "test_value2",
    "test_header3": "test_value3",
}
BODY = b"test_data"
RAW_REQUEST = b"""{
    "host": "test_host",
    "path": "test_path",
    "methos": "test_method",
    "head": {
        "test_header1": "test_value1",
        "test_header2": "test_value2",
        "test_header3": "test_value3"
    },
    "body": "dGVzdF9kYXRh"
}"""


def _build():
    return Request(HOST, PATH, METHOD).with_head(HEAD).with_body(BODY)


def test_request_fields():
    request = _build()
    assert request.host == HOST
    assert request.path == PATH
    assert request.method == METHOD
    assert request.head == HEAD
    assert request.body == BODY


def test_load_request_matches_literal():
    request1 = load_request(_build().to_bytes())
    request2 = load_request(RAW_REQUEST)

    assert request1.host == request2.host == HOST
    assert request1.path == request2.path == PATH
    assert request1.method == request2.method == METHOD
    assert request1.head == request2.head == HEAD
    assert request1.body == request2.body == BODY


def test_with_head_copies_mapping():
    head = {"a": "1"}
    request = Request(HOST, PATH, METHOD).with_head(head)
    head["b"] = "2"
    assert request.head == {"a": "1"}


def test_serialised_form_uses_fixed_keys():
    document = json.loads(_build().to_bytes())
    assert set(document) == {"host", "path", "methos", "head", "body"}
    assert document["body"] == "dGVzdF9kYXRh"
    assert document["methos"] == METHOD


def test_null_document_gives_empty_request():
    assert load_request(b"null") == Request("", "", "")


@pytest.mark.parametrize(
    "raw",
    [b"garbage", b"[]", b'{"host": 1}', b'{"head": {"a": 1}}', b'{"body": "!!!"}'],
)
def test_malformed_request_raises(raw):
    with pytest.raises(ValueError):
        load_request(raw)
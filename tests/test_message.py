import base64
import json

import pytest

from anonpeer.encoding import uint64_to_bytes
from anonpeer.message import Body, Head, Message, Package, new_message


def test_new_message_layout():
    msg = new_message(b"title", b"payload")
    assert msg.body.data == uint64_to_bytes(len(b"title")) + b"title" + b"payload"
    assert msg.head == Head()


def test_export_title_splits_data():
    msg = new_message(b"/echo", b"hello, world!")
    assert msg.export_title() == b"/echo"
    assert msg.body.data == b"hello, world!"


def test_export_title_empty_title():
    msg = new_message(b"", b"data")
    assert msg.export_title() == b""
    assert msg.body.data == b"data"


def test_export_title_too_short():
    msg = Message(body=Body(data=b"\x00\x01"))
    with pytest.raises(ValueError):
        msg.export_title()


def test_export_title_length_overflow():
    msg = Message(body=Body(data=uint64_to_bytes(100) + b"abc"))
    with pytest.raises(ValueError):
        msg.export_title()


def test_package_round_trip():
    msg = Message(
        head=Head(sender=b"\x01\x02", session=b"sess", salt=b"\xff" * 5),
        body=Body(data=b"data", hash=b"\x00" * 32, sign=b"sig", proof=12345),
    )
    assert msg.to_package().to_message() == msg


def test_package_is_json_with_standard_base64():
    msg = new_message(b"t", b"\xfb\xff\xfe")
    document = json.loads(msg.to_package())
    assert set(document) == {"head", "body"}
    assert base64.b64decode(document["body"]["data"]) == msg.body.data
    assert document["body"]["proof"] == 0


def test_package_size_helpers():
    pack = new_message(b"a", b"b").to_package()
    assert pack.size() == len(bytes(pack))
    assert Package(pack.size_to_bytes()).bytes_to_size() == pack.size()


def test_bytes_to_size_reads_prefix():
    assert Package(uint64_to_bytes(4096)).bytes_to_size() == 4096


def test_to_message_accepts_null_fields():
    pack = Package(b'{"head":null,"body":{"data":"aGk=","hash":null,"sign":null,"proof":7}}')
    msg = pack.to_message()
    assert msg.body.data == b"hi"
    assert msg.body.proof == 7
    assert msg.head.sender == b""


@pytest.mark.parametrize(
    "raw",
    [
        b"not json",
        b"[1, 2]",
        b'{"body":{"proof":"x"}}',
        b'{"body":{"proof":-1}}',
        b'{"body":{"data":"!!!"}}',
        b'{"head":5}',
    ],
)
def test_to_message_rejects_malformed(raw):
    with pytest.raises(ValueError):
        Package(raw).to_message()
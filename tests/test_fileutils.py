import io

import pytest

from anonpeer.fileutils import (
    deserialize,
    file_is_exist,
    input_string,
    read_file,
    serialize,
    write_file,
)

FILE_DATA = "test text\nfor utils package\n"
JSON_TEXT = '{\n\t"result": "hello",\n\t"return": 5\n}'


def test_file_is_exist(tmp_path):
    present = tmp_path / "utils_test.txt"
    present.write_text(FILE_DATA)
    assert file_is_exist(present) is True
    assert file_is_exist(tmp_path / "missing-file") is False


def test_read_file(tmp_path):
    path = tmp_path / "utils_test.txt"
    path.write_text(FILE_DATA)
    assert read_file(path).decode() == FILE_DATA


def test_read_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_file(tmp_path / "missing-file")


def test_write_file(tmp_path):
    path = tmp_path / "written.txt"
    write_file(path, FILE_DATA.encode())
    assert read_file(path).decode() == FILE_DATA


def test_write_file_truncates(tmp_path):
    path = tmp_path / "written.txt"
    write_file(path, b"a much longer first content")
    write_file(path, b"short")
    assert read_file(path) == b"short"


def test_serialize():
    assert serialize({"result": "hello", "return": 5}).decode() == JSON_TEXT


def test_serialize_bytes_as_base64():
    assert serialize({"body": b"test_data"}).decode() == '{\n\t"body": "dGVzdF9kYXRh"\n}'


def test_serialize_escapes_html_characters():
    assert serialize({"a": "<&>"}).decode() == '{\n\t"a": "\\u003c\\u0026\\u003e"\n}'


def test_serialize_rejects_unknown_objects():
    with pytest.raises(TypeError):
        serialize({"a": object()})


def test_deserialize():
    result = deserialize(JSON_TEXT.encode())
    assert result["result"] == "hello"
    assert result["return"] == 5


def test_deserialize_malformed():
    with pytest.raises(ValueError):
        deserialize(b"{not json")


def test_input_string(monkeypatch, capsys):
    monkeypatch.setattr("sys.stdin", io.StringIO("  hello world \nnext\n"))
    assert input_string("Prompt: ") == "hello world"
    assert capsys.readouterr().out == "Prompt: "


def test_input_string_eof(monkeypatch):
    monkeypatch.setattr("sys.stdin", io.StringIO("no newline"))
    with pytest.raises(EOFError):
        input_string("Prompt: ")
import pytest

from cstore_lib.storage.errors import MalformedDataError
from cstore_lib.storage.serializer import JSONSerializer, json_codec

encode = json_codec.encode
decode = json_codec.decode


def test_round_trip_nested_value():
    value = {"a": [1, 2.5, None, True], "b": {"c": "ü"}}
    assert decode(encode(value)) == value


def test_empty_input_decodes_to_empty_mapping():
    s = JSONSerializer()
    assert s.decode("") == {}
    assert s.decode("  \n") == {}
    assert s.decode(b"") == {}


def test_decode_accepts_bytes():
    assert decode('{"x": "ü"}'.encode("utf-8")) == {"x": "ü"}


def test_invalid_json_raises_malformed():
    with pytest.raises(MalformedDataError):
        decode("{ invalid json }")


def test_invalid_utf8_raises_malformed():
    with pytest.raises(MalformedDataError):
        decode(b"\xff\xfe{")


def test_encode_keeps_unicode_readable():
    assert encode("ü") == '"ü"'


def test_encode_rejects_non_json_values():
    with pytest.raises(TypeError):
        encode({1, 2})
    with pytest.raises(ValueError):
        encode(float("inf"))


def test_backends_default_to_shared_codec(tmp_path):
    from cstore_lib.storage import DocumentStorageBackend, IndexedStorageBackend

    assert DocumentStorageBackend(tmp_path / "data.json")._codec is json_codec
    assert IndexedStorageBackend(tmp_path / "data.db")._codec is json_codec

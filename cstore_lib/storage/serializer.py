from typing import Any, Protocol
import json

from .errors import MalformedDataError


class Serializer(Protocol):
    """Serialize/deserialize stored values to and from text.

    Implementations should be symmetric: `decode(encode(v)) == v`.
    """

    def encode(self, value: Any) -> str: ...

    def decode(self, data: str | bytes) -> Any: ...


class JSONSerializer:
    """Value codec using JSON (text).

    Only JSON-representable values are accepted; anything else (sets,
    arbitrary objects, NaN) fails in `encode` so it never reaches the medium.
    Empty input decodes to an empty mapping.
    """

    def encode(self, value: Any) -> str:
        return json.dumps(value, ensure_ascii=False, allow_nan=False)

    def decode(self, data: str | bytes) -> Any:
        if isinstance(data, (bytes, bytearray)):
            try:
                data = bytes(data).decode("utf-8")
            except UnicodeDecodeError as e:
                raise MalformedDataError(f"stored data is not valid UTF-8: {e}") from e
        if not data.strip():
            return {}
        try:
            return json.loads(data)
        except json.JSONDecodeError as e:
            raise MalformedDataError(f"stored data is not valid JSON: {e}") from e


# Shared default codec instance; JSONSerializer holds no state.
json_codec = JSONSerializer()

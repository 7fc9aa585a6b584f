"""
JSON encoding of storage records.

Records are stored as compact JSON documents. Values that do not survive a
JSON round trip are rejected at encode time instead of being coerced.
"""

import json
from typing import Any, Type, TypeVar, Union

from ..errors import DecodeError, EncodeError


T = TypeVar("T")


def encode(record: Any) -> str:
    """
    Encode a record exposing ``to_dict`` into a JSON string.

    Raises:
        EncodeError: If the record holds values JSON cannot represent
    """
    try:
        return json.dumps(record.to_dict(), separators=(',', ':'), ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise EncodeError(f"unable to encode {type(record).__name__}", cause=e) from e


def decode(raw: Union[str, bytes], record_type: Type[T]) -> T:
    """
    Decode a JSON document into ``record_type`` via its ``from_dict``.

    Raises:
        DecodeError: If the payload is not a valid record of that type
    """
    try:
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        data = json.loads(raw)
        if not isinstance(data, dict):
            raise ValueError(f"expected a JSON object, got {type(data).__name__}")
        return record_type.from_dict(data)
    except (UnicodeDecodeError, ValueError, KeyError, TypeError) as e:
        raise DecodeError(f"unable to decode {record_type.__name__}", cause=e) from e


def decode_str(raw: Union[str, bytes]) -> str:
    """Decode a plain string value such as a grant identifier."""
    if isinstance(raw, bytes):
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecodeError("unable to decode string value", cause=e) from e
    return raw

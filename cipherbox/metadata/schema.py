# cipherbox/metadata/schema.py
"""
Shared validation for decrypted metadata documents.

Decrypted JSON is untrusted until checked. Each document kind validates
through a `Schema` bound to one generic failure message, so a rejection
never reveals which field was wrong.
"""

from __future__ import annotations

import json
import re
from typing import Any, Dict, Iterable, List

from ..crypto.common import (
    BytesLike,
    SchemaValidationFailed,
    UnsupportedSchemaVersion,
    hex_to_bytes,
)


_HEX_RE = re.compile(r"^[0-9a-fA-F]+$")


def dump_json(obj: Dict[str, Any]) -> bytes:
    """Compact UTF-8 JSON, key order preserved."""
    return json.dumps(obj, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


class Schema:
    """Field checks that all fail with the same message."""

    def __init__(self, message: str):
        self.message = message

    def fail(self) -> SchemaValidationFailed:
        return SchemaValidationFailed(self.message)

    def load(self, plaintext: BytesLike) -> Dict[str, Any]:
        try:
            data = json.loads(bytes(plaintext).decode("utf-8"))
        except (UnicodeDecodeError, ValueError):
            raise self.fail() from None
        return self.mapping(data)

    def version(self, obj: Dict[str, Any], current: str) -> str:
        """
        Check the document's version tag.

        Raises:
            UnsupportedSchemaVersion: For any tag other than `current`,
                including recognised legacy versions
        """
        tag = obj.get("version")
        if tag == current:
            return tag
        raise UnsupportedSchemaVersion(self.message)

    def mapping(self, value: Any) -> Dict[str, Any]:
        if not isinstance(value, dict):
            raise self.fail()
        return value

    def array(self, value: Any) -> List[Any]:
        if not isinstance(value, list):
            raise self.fail()
        return value

    def text(self, value: Any, max_length: int = 0, non_empty: bool = False) -> str:
        if not isinstance(value, str):
            raise self.fail()
        if max_length and len(value) > max_length:
            raise self.fail()
        if non_empty and not value:
            raise self.fail()
        return value

    def integer(self, value: Any, minimum: int = 0) -> int:
        if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
            raise self.fail()
        return value

    def number(self, value: Any) -> float:
        """JSON number (int or float), never a bool."""
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise self.fail()
        return value

    def nullable_number(self, value: Any):
        return None if value is None else self.number(value)

    def nullable_text(self, value: Any):
        return None if value is None else self.text(value)

    def hex(self, value: Any, length: int = 0) -> str:
        """Hex text, optionally of an exact character length."""
        text = self.text(value)
        if length and len(text) != length:
            raise self.fail()
        if not _HEX_RE.match(text):
            raise self.fail()
        return text

    def hex_bytes(self, value: Any) -> bytes:
        text = self.hex(value)
        try:
            return hex_to_bytes(text)
        except ValueError:
            raise self.fail() from None

    def one_of(self, value: Any, allowed: Iterable[str]) -> str:
        if value not in tuple(allowed):
            raise self.fail()
        return value

    def forbid(self, obj: Dict[str, Any], keys: Iterable[str]) -> None:
        if any(k in obj for k in keys):
            raise self.fail()

# esbatch/core/serde.py
"""
Line-oriented record codecs.

Every file the engine reads or writes holds one value per line, encoded either as
JSON or as Ion text. Readers do not know the encoding up front: LineDecoder probes
the first line once and sticks to that answer for the rest of the stream.
"""
from __future__ import annotations

import datetime
import decimal
import json
from collections.abc import Mapping
from enum import Enum
from typing import Any, Dict

from amazon.ion import simpleion
from amazon.ion.core import IonType
from amazon.ion.exceptions import IonException
from amazon.ion.simple_types import IonPyNull
from amazon.ion.symbols import SymbolToken

from .errors import DecodeError


class LineFormat(str, Enum):
    UNDETERMINED = "undetermined"
    JSON = "json"
    ION = "ion"


def _from_ion(value: Any) -> Any:
    """Convert simpleion values to plain Python containers and scalars."""
    if isinstance(value, IonPyNull) or value is None:
        return None
    if getattr(value, "ion_type", None) is IonType.BOOL:
        return bool(value)
    if isinstance(value, SymbolToken):
        return value.text
    if isinstance(value, Mapping):
        return {str(k): _from_ion(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_from_ion(v) for v in value]
    if isinstance(value, str):
        return str(value)
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return int(value)
    if isinstance(value, float):
        return float(value)
    return value


class LineDecoder:
    """
    Decodes one line at a time into a dict.
    The format is decided from the first line (JSON if it parses as JSON, Ion otherwise)
    and memoized for the remainder of the stream.
    """

    def __init__(self, fmt: LineFormat = LineFormat.UNDETERMINED) -> None:
        self.format = fmt

    def _probe(self, line: str) -> None:
        try:
            json.loads(line)
            self.format = LineFormat.JSON
        except ValueError:
            self.format = LineFormat.ION

    def decode(self, line: str, position: int | None = None) -> Dict[str, Any]:
        if self.format is LineFormat.UNDETERMINED:
            self._probe(line)

        try:
            if self.format is LineFormat.JSON:
                value = json.loads(line)
            else:
                value = _from_ion(simpleion.loads(line))
        except (ValueError, IonException) as e:
            raise DecodeError(f"Unable to decode {self.format.value} line", raw=line, position=position) from e

        if not isinstance(value, dict):
            raise DecodeError(
                f"Expected an object, got {type(value).__name__}", raw=line, position=position
            )
        return value


def _json_default(value: Any) -> Any:
    if isinstance(value, decimal.Decimal):
        return float(value)
    if isinstance(value, (datetime.date, datetime.datetime)):
        return value.isoformat()
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def encode_line(record: Dict[str, Any], fmt: LineFormat) -> str:
    """Encode one record as a single line (without the trailing newline)."""
    if fmt is LineFormat.JSON:
        return json.dumps(record, ensure_ascii=False, default=_json_default)
    if fmt is LineFormat.ION:
        return simpleion.dumps(record, binary=False, omit_version_marker=True)
    raise ValueError(f"Cannot encode records as '{fmt.value}'")


__all__ = ["LineFormat", "LineDecoder", "encode_line"]

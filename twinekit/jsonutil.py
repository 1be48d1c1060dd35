"""JSON helpers shared by the serializers."""

import json
import math
from typing import Any, Dict, List, Union

# Values that may appear in passage metadata or StoryData.
JSONValue = Union[str, int, float, bool, None, Dict[str, 'JSONValue'], List['JSONValue']]


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


def _parse_float(literal: str) -> float:
    value = float(literal)
    if not math.isfinite(value):
        raise ValueError(f"{literal} is out of range")
    return value


def loads(text: str) -> Any:
    """Parse strict JSON: NaN, Infinity and overflowing float literals raise ValueError."""
    return json.loads(text, parse_constant=_reject_constant, parse_float=_parse_float)


def to_compact_json(value: Any) -> str:
    """Serialize without any whitespace between tokens."""
    return json.dumps(value, separators=(',', ':'), ensure_ascii=False, allow_nan=False)


def to_pretty_json(value: Any) -> str:
    """Serialize with two-space indentation."""
    return json.dumps(value, indent=2, ensure_ascii=False, allow_nan=False)


def is_number(value: Any) -> bool:
    # bool is an int subclass but never a valid zoom
    if isinstance(value, bool):
        return False
    return isinstance(value, int) or (isinstance(value, float) and math.isfinite(value))


def normalize_number(value: float) -> Union[int, float]:
    """Return whole numbers as int so that 1.0 is written as 1."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def format_number(value: float) -> str:
    return str(normalize_number(value))


def as_text(value: Any) -> str:
    """Coerce a JSON value to a string field: null is '', other non-strings are re-serialized."""
    if value is None:
        return ''
    if isinstance(value, str):
        return value
    return json.dumps(value)

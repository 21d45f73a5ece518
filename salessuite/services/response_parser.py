"""
Strict parsing of model output against a declared JSON shape.

Model output is untrusted text. It is either parsed into exactly the shape
that was requested or rejected; nothing is coerced or defaulted.
"""
import json
import logging
from dataclasses import dataclass
from typing import Any, List, Optional

from salessuite.errors import MalformedResponseError

logger = logging.getLogger(__name__)

OK = "ok"
PARSE_ERROR = "parse_error"
SHAPE_ERROR = "shape_error"


@dataclass(frozen=True)
class ParseOutcome:
    """Result of checking raw model text: ``ok``, ``parse_error`` or ``shape_error``."""
    kind: str
    raw_text: str
    value: Any = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.kind == OK


def _type_matches(value: Any, type_name: str) -> bool:
    if type_name == "string":
        return isinstance(value, str)
    if type_name == "boolean":
        return isinstance(value, bool)
    if type_name == "integer":
        # bool is an int subclass; JSON true is never a number
        if isinstance(value, bool):
            return False
        return isinstance(value, int) or (isinstance(value, float) and value.is_integer())
    if type_name == "number":
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if type_name == "array":
        return isinstance(value, list)
    if type_name == "object":
        return isinstance(value, dict)
    if type_name == "null":
        return value is None
    raise ValueError(f"Unsupported schema type: {type_name}")


def shape_errors(value: Any, shape: dict, path: str = "$") -> List[str]:
    """
    Collect every structural mismatch between ``value`` and ``shape``.

    Supports the JSON schema subset used for structured output: ``type``
    (a name or a list of names), ``properties``/``required`` for objects and
    ``items`` for arrays.
    """
    expected = shape.get("type")
    if expected is None:
        return []

    type_names = expected if isinstance(expected, list) else [expected]
    matched = next((t for t in type_names if _type_matches(value, t)), None)
    if matched is None:
        return [f"{path}: expected {' | '.join(type_names)}, got {type(value).__name__}"]

    errors = []
    if matched == "object":
        properties = shape.get("properties", {})
        for key in shape.get("required", []):
            if key not in value:
                errors.append(f"{path}: missing required key '{key}'")
        for key, sub_shape in properties.items():
            if key in value:
                errors.extend(shape_errors(value[key], sub_shape, f"{path}.{key}"))
    elif matched == "array" and "items" in shape:
        for index, item in enumerate(value):
            errors.extend(shape_errors(item, shape["items"], f"{path}[{index}]"))
    return errors


def check_structured(raw_text: Optional[str], shape: dict) -> ParseOutcome:
    """
    Parse raw model text and check it against ``shape`` without raising.

    Args:
        raw_text: Text returned by the model.
        shape: JSON schema subset describing the expected value.

    Returns:
        ParseOutcome with ``value`` set only when ``kind`` is ``ok``.
    """
    raw_text = raw_text or ""
    try:
        value = json.loads(raw_text.strip())
    except json.JSONDecodeError as e:
        return ParseOutcome(kind=PARSE_ERROR, raw_text=raw_text, error=f"Invalid JSON: {e}")

    errors = shape_errors(value, shape)
    if errors:
        return ParseOutcome(kind=SHAPE_ERROR, raw_text=raw_text, error="; ".join(errors))

    return ParseOutcome(kind=OK, raw_text=raw_text, value=value)


def parse_structured(raw_text: Optional[str], shape: dict) -> Any:
    """
    Parse raw model text into the declared shape.

    Raises:
        MalformedResponseError: On invalid JSON, a missing key or a wrong type.
    """
    outcome = check_structured(raw_text, shape)
    if not outcome.ok:
        logger.error(f"Malformed model response ({outcome.kind}): {outcome.error}")
        logger.debug(f"Raw model response: {outcome.raw_text[:2000]!r}")
        raise MalformedResponseError(outcome.error, raw_text=outcome.raw_text, kind=outcome.kind)
    return outcome.value

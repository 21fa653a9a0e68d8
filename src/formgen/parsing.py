"""
Robust JSON extraction for model output.

Models asked for JSON still wrap it in prose or markdown fences. Every call
site that expects JSON goes through parse_json instead of json.loads.
"""

import json
import logging
import re
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from formgen.errors import JsonParseError

logger = logging.getLogger(__name__)

PREVIEW_CHARS = 200

_FENCE_RE = re.compile(r"```(?:json|JSON)?\s*\n?(.*?)```", re.DOTALL)

ModelT = TypeVar("ModelT", bound=BaseModel)


def _try_loads(text: str) -> tuple[bool, Any]:
    try:
        return True, json.loads(text)
    except (json.JSONDecodeError, ValueError):
        return False, None


def _slice_between(text: str, open_char: str, close_char: str) -> str | None:
    start = text.find(open_char)
    end = text.rfind(close_char)
    if start == -1 or end <= start:
        return None
    return text[start : end + 1]


def preview(text: str, limit: int = PREVIEW_CHARS) -> str:
    """Head/tail preview of a possibly huge payload."""
    if len(text) <= limit * 2:
        return text
    return f"{text[:limit]} ...[{len(text) - limit * 2} chars omitted]... {text[-limit:]}"


def parse_json(text: str, context: str) -> Any:
    """
    Parse JSON out of model output.

    Strategies, first success wins: direct parse, fenced code block, the
    slice from the first "{" to the last "}", then the slice from the first
    "[" to the last "]".

    Args:
        text: Raw model output.
        context: Call-site label attached to errors and logs.

    Returns:
        The decoded JSON value.

    Raises:
        JsonParseError: No strategy produced valid JSON.
    """
    if not isinstance(text, str) or not text.strip():
        raise JsonParseError(context, f"Empty response in {context}")

    stripped = text.strip()

    ok, value = _try_loads(stripped)
    if ok:
        return value

    for match in _FENCE_RE.finditer(stripped):
        ok, value = _try_loads(match.group(1).strip())
        if ok:
            return value

    for open_char, close_char in (("{", "}"), ("[", "]")):
        candidate = _slice_between(stripped, open_char, close_char)
        if candidate is None:
            continue
        ok, value = _try_loads(candidate)
        if ok:
            return value

    head_tail = preview(stripped)
    logger.error("Failed to parse JSON in %s (%d chars): %s", context, len(stripped), head_tail)
    raise JsonParseError(context, preview=head_tail)


def parse_model(text: str, model_cls: type[ModelT], context: str) -> ModelT:
    """Extract JSON then validate it into model_cls."""
    data = parse_json(text, context)
    try:
        return model_cls.model_validate(data)
    except ValidationError as e:
        logger.error("Invalid %s payload in %s: %s", model_cls.__name__, context, e)
        raise JsonParseError(
            context,
            f"Response in {context} does not match {model_cls.__name__}: {e.error_count()} error(s)",
            preview=preview(text.strip()),
        ) from e


DEFAULT_LIST_KEYS = ("results", "fields", "questions", "analyses", "items", "data")


def extract_list(parsed: Any, *keys: str) -> list[Any]:
    """
    Pull the list out of a batch response.

    Accepts a bare list or an object wrapping one. Named keys are checked
    first, then the common wrapper keys, then any list-valued entry.
    """
    if isinstance(parsed, list):
        return parsed
    if not isinstance(parsed, dict):
        return []
    for key in (*keys, *DEFAULT_LIST_KEYS):
        value = parsed.get(key)
        if isinstance(value, list):
            return value
    for value in parsed.values():
        if isinstance(value, list):
            return value
    return []

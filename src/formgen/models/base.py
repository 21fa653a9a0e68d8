"""
Shared model configuration and coercion helpers.

Model output is untrusted: list-ish values may arrive as a single string,
numbers may arrive as strings, enum values may be misspelled. The helpers
here normalise those shapes before pydantic validation runs.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model: snake_case attributes, camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_dict(self) -> dict[str, Any]:
        """Export with camelCase keys, omitting unset optional values."""
        return self.model_dump(by_alias=True, exclude_none=True)


def coerce_str_list(value: Any) -> list[str] | None:
    """Turn a model-supplied value into a list of non-empty strings (or None)."""
    if value is None:
        return None
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        return None
    items = []
    for item in value:
        if item is None:
            continue
        if isinstance(item, dict):
            # {"label": "..."} / {"text": "..."} / {"value": "..."} option objects
            item = item.get("label") or item.get("text") or item.get("value")
            if item is None:
                continue
        text = str(item).strip()
        if text:
            items.append(text)
    return items


def coerce_choice(value: Any, allowed: tuple[str, ...], default: str) -> str:
    """Return value if it is one of allowed (case-insensitive), else default."""
    if isinstance(value, str):
        candidate = value.strip().lower()
        if candidate in allowed:
            return candidate
    return default


def clamp_confidence(value: Any, default: float = 0.5) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if number > 1.0 and number <= 100.0:
        # Percentages ("85") are common in model output
        number = number / 100.0
    return max(0.0, min(1.0, number))

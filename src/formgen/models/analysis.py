"""
Semantic field analysis models.

These are consumed by field optimization and then discarded.
"""

from typing import Any

from pydantic import Field, field_validator

from formgen.models.base import CamelModel, clamp_confidence, coerce_str_list


class FieldAnalysisInput(CamelModel):
    """A proposed field to classify."""

    label: str
    current_type: str | None = None
    options: list[str] | None = None
    help_text: str | None = None
    context: str | None = None


class FieldAnalysisResult(CamelModel):
    """Recommended type and suggestions for one field."""

    recommended_type: str = Field(..., description="Field type catalog key")
    confidence: float = Field(default=0.5, ge=0.0, le=1.0)
    reasoning: str = ""
    alternative_types: list[str] | None = None
    suggested_options: list[str] | None = None
    suggested_correct_answer: str | None = None
    suggested_placeholder: str | None = None
    suggested_help_text: str | None = None
    suggested_validation: dict[str, Any] | None = None

    @field_validator("confidence", mode="before")
    @classmethod
    def _coerce_confidence(cls, value: Any) -> float:
        return clamp_confidence(value)

    @field_validator("reasoning", mode="before")
    @classmethod
    def _coerce_reasoning(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("alternative_types", "suggested_options", mode="before")
    @classmethod
    def _coerce_lists(cls, value: Any) -> list[str] | None:
        return coerce_str_list(value)

    @field_validator("suggested_correct_answer", "suggested_placeholder", "suggested_help_text", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str | None:
        if value is None:
            return None
        if isinstance(value, list):
            value = value[0] if value else None
            if value is None:
                return None
        text = str(value).strip()
        return text or None

    @field_validator("suggested_validation", mode="before")
    @classmethod
    def _coerce_validation(cls, value: Any) -> dict[str, Any] | None:
        return value if isinstance(value, dict) else None


class QuizOptionsResult(CamelModel):
    """Generated options for one quiz question; `correct_answer` is always one of `options`."""

    options: list[str]
    correct_answer: str

    @field_validator("options", mode="before")
    @classmethod
    def _coerce_options(cls, value: Any) -> list[str]:
        return coerce_str_list(value) or []

    @field_validator("correct_answer", mode="before")
    @classmethod
    def _coerce_answer(cls, value: Any) -> str:
        if isinstance(value, list):
            value = value[0] if value else ""
        return "" if value is None else str(value).strip()

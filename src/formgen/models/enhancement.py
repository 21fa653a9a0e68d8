"""
Question enhancement models.

General form questions, quiz questions and survey questions each have their
own input and enhanced shapes.
"""

from typing import Any, Literal

from pydantic import Field, field_validator

from formgen.models.base import CamelModel, coerce_choice, coerce_str_list
from formgen.models.pipeline import Tone

Difficulty = Literal["easy", "medium", "hard"]
DistractorQuality = Literal["good", "needs-improvement"]


class QuestionInput(CamelModel):
    label: str
    type: str = "short-answer"
    help_text: str | None = None
    placeholder: str | None = None
    options: list[str] | None = None
    context: str | None = None


class EnhancedQuestion(CamelModel):
    label: str
    label_variations: list[str] | None = None
    help_text: str | None = None
    placeholder: str | None = None
    options: list[str] | None = None
    tone: Tone = "professional"


class EnhancementOptions(CamelModel):
    """Batch-wide enhancement settings."""

    tone: Tone = "professional"
    form_type: str = "general"
    audience: str = "general public"
    avoid_repetition: bool = True
    max_variations: int = Field(default=3, ge=0, le=10)


class RawEnhancement(CamelModel):
    """Lenient shape for one item of an enhancement batch response."""

    label: str | None = None
    label_variations: list[str] | None = None
    help_text: str | None = None
    placeholder: str | None = None
    options: list[str] | None = None

    @field_validator("label", "help_text", "placeholder", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str | None:
        if value is None or isinstance(value, (list, dict)):
            return None
        text = str(value).strip()
        if not text or text.lower() in {"null", "none"}:
            return None
        return text

    @field_validator("label_variations", "options", mode="before")
    @classmethod
    def _coerce_lists(cls, value: Any) -> list[str] | None:
        return coerce_str_list(value) or None


class QuizQuestionInput(CamelModel):
    question: str
    options: list[str]
    correct_answer: str | list[str]
    explanation: str | None = None
    difficulty: Difficulty | None = None


class EnhancedQuizQuestion(CamelModel):
    question: str
    options: list[str]
    correct_answer: str | list[str]
    explanation: str
    difficulty: Difficulty = "medium"
    distractor_quality: DistractorQuality = "good"

    @field_validator("difficulty", mode="before")
    @classmethod
    def _coerce_difficulty(cls, value: Any) -> str:
        return coerce_choice(value, ("easy", "medium", "hard"), "medium")

    @field_validator("distractor_quality", mode="before")
    @classmethod
    def _coerce_quality(cls, value: Any) -> str:
        return coerce_choice(value, ("good", "needs-improvement"), "good")


class SurveyQuestionInput(CamelModel):
    question: str
    type: str
    options: list[str] | None = None
    scale: str | None = None


class ScaleLabels(CamelModel):
    low: str
    high: str


class EnhancedSurveyQuestion(CamelModel):
    question: str
    type: str
    options: list[str] | None = None
    scale: str | None = None
    scale_labels: ScaleLabels | None = None
    is_leading: bool = False
    is_double_barreled: bool = False
    suggestions: list[str] | None = None

    @field_validator("scale_labels", mode="before")
    @classmethod
    def _coerce_scale_labels(cls, value: Any) -> Any:
        if isinstance(value, dict) and value.get("low") and value.get("high"):
            return {"low": str(value["low"]), "high": str(value["high"])}
        return None

    @field_validator("suggestions", mode="before")
    @classmethod
    def _coerce_suggestions(cls, value: Any) -> list[str] | None:
        return coerce_str_list(value) or None

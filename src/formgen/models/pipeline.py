"""
Pipeline data models.

Input, configuration, intermediate analysis and the final generated form.
These are what the builder UI and the persistence layer receive; the
pipeline itself never stores anything.
"""

from typing import Any, Literal

from pydantic import Field, field_validator, model_validator

from formgen.models.base import CamelModel, clamp_confidence, coerce_choice, coerce_str_list

Tone = Literal["professional", "friendly", "casual", "formal"]
Complexity = Literal["simple", "moderate", "complex"]
Domain = Literal["healthcare", "education", "business", "finance", "legal", "retail", "events", "general"]
FormType = Literal[
    "quiz",
    "survey",
    "contact",
    "registration",
    "booking",
    "order",
    "application",
    "rsvp",
    "donation",
    "review",
    "general",
]

TONES: tuple[str, ...] = ("professional", "friendly", "casual", "formal")
COMPLEXITIES: tuple[str, ...] = ("simple", "moderate", "complex")
DOMAINS: tuple[str, ...] = (
    "healthcare", "education", "business", "finance", "legal", "retail", "events", "general",
)
FORM_TYPES: tuple[str, ...] = (
    "quiz", "survey", "contact", "registration", "booking", "order",
    "application", "rsvp", "donation", "review", "general",
)

STAGE_CONTENT_ANALYSIS = "content-analysis"
STAGE_FORM_GENERATION = "form-generation"
STAGE_FIELD_OPTIMIZATION = "field-optimization"
STAGE_QUESTION_ENHANCEMENT = "question-enhancement"


class PipelineInput(CamelModel):
    """One pipeline run's input. Immutable and single-use."""

    model_config = {**CamelModel.model_config, "frozen": True}

    prompt: str = Field(..., min_length=1, description="User's free-text description of the form")
    user_context: str | None = Field(default=None, description="Additional context from the user")
    question_count: int | None = Field(
        default=None,
        ge=1,
        le=120,
        description="Desired number of fields (advisory)",
    )
    reference_data: str | None = Field(
        default=None,
        description="Source document text; only a bounded prefix is sent to the model",
    )

    @field_validator("prompt")
    @classmethod
    def _strip_prompt(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("prompt must not be blank")
        return value


class PipelineConfig(CamelModel):
    """Caller-supplied knobs for one run."""

    skip_field_optimization: bool = False
    skip_question_enhancement: bool = False
    parallel_optimization: bool = True
    max_latency_ms: int | None = Field(
        default=None,
        description="Advisory budget; optional stages are skipped for forms other than quizzes and surveys "
        "when the time spent plus their expected latency would exceed it. "
        "None uses the configured default.",
    )
    tone: Tone | None = None


class ContentAnalysis(CamelModel):
    """Stage 1 result. Every attribute has a safe default."""

    purpose: str = "Form data collection"
    audience: str = "General users"
    domain: Domain = "general"
    form_type: FormType = "general"
    is_quiz: bool = False
    is_survey: bool = False
    tone: Tone = "professional"
    complexity: Complexity = "moderate"
    key_topics: list[str] = Field(default_factory=list)
    essential_fields: list[str] = Field(default_factory=list)
    strategic_fields: list[str] = Field(default_factory=list)
    confidence: float = 0.7

    @field_validator("purpose", "audience", mode="before")
    @classmethod
    def _text_or_default(cls, value: Any, info) -> Any:
        if not isinstance(value, str) or not value.strip():
            return cls.model_fields[info.field_name].default
        return value.strip()

    @field_validator("domain", mode="before")
    @classmethod
    def _coerce_domain(cls, value: Any) -> str:
        return coerce_choice(value, DOMAINS, "general")

    @field_validator("form_type", mode="before")
    @classmethod
    def _coerce_form_type(cls, value: Any) -> str:
        return coerce_choice(value, FORM_TYPES, "general")

    @field_validator("tone", mode="before")
    @classmethod
    def _coerce_tone(cls, value: Any) -> str:
        return coerce_choice(value, TONES, "professional")

    @field_validator("complexity", mode="before")
    @classmethod
    def _coerce_complexity(cls, value: Any) -> str:
        return coerce_choice(value, COMPLEXITIES, "moderate")

    @field_validator("is_quiz", "is_survey", mode="before")
    @classmethod
    def _coerce_bool(cls, value: Any) -> bool:
        if isinstance(value, str):
            return value.strip().lower() in {"true", "yes", "1"}
        return bool(value)

    @field_validator("key_topics", "essential_fields", "strategic_fields", mode="before")
    @classmethod
    def _coerce_lists(cls, value: Any) -> list[str]:
        return coerce_str_list(value) or []

    @field_validator("confidence", mode="before")
    @classmethod
    def _coerce_confidence(cls, value: Any) -> float:
        return clamp_confidence(value, default=0.7)

    @model_validator(mode="after")
    def _sync_flags(self) -> "ContentAnalysis":
        if self.form_type == "quiz":
            self.is_quiz = True
        elif self.form_type == "survey":
            self.is_survey = True
        return self

    @property
    def is_simple(self) -> bool:
        """Simple, non-quiz, non-survey forms skip the optional stages."""
        return self.complexity == "simple" and not self.is_quiz and not self.is_survey

    @property
    def form_context(self) -> str:
        """Context string handed to the field analyzer."""
        if self.is_quiz and "quiz" not in self.form_type:
            return f"quiz ({self.form_type})"
        return self.form_type


class QuizConfig(CamelModel):
    """Scoring information for one quiz question."""

    correct_answer: str | list[str] = ""
    points: float = 1
    explanation: str = ""

    @field_validator("correct_answer", mode="before")
    @classmethod
    def _coerce_answer(cls, value: Any) -> str | list[str]:
        if value is None:
            return ""
        if isinstance(value, (list, tuple)):
            return coerce_str_list(list(value)) or []
        return str(value).strip()

    @field_validator("points", mode="before")
    @classmethod
    def _coerce_points(cls, value: Any) -> float:
        try:
            points = float(value)
        except (TypeError, ValueError):
            return 1
        return points if points > 0 else 1

    @field_validator("explanation", mode="before")
    @classmethod
    def _coerce_explanation(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @property
    def has_answer(self) -> bool:
        if isinstance(self.correct_answer, list):
            return len(self.correct_answer) > 0
        return bool(self.correct_answer)


class FormField(CamelModel):
    """A single generated field. `order` never changes after creation."""

    id: str
    label: str
    type: str = Field(..., description="Field type catalog key")
    required: bool = True
    placeholder: str | None = None
    help_text: str | None = None
    options: list[str] | None = None
    validation: dict[str, Any] | None = None
    quiz_config: QuizConfig | None = None
    order: int = Field(..., ge=0)


class QuizMode(CamelModel):
    """Quiz presentation settings."""

    enabled: bool = True
    show_score_immediately: bool = True
    show_correct_answers: bool = True
    show_explanations: bool = True
    passing_score: float = 70


class ValidationAnomaly(CamelModel):
    """A self-corrected inconsistency in model output. Not an error."""

    field_id: str | None = None
    kind: str
    detail: str


class PipelineTrace(CamelModel):
    """Diagnostic record of a run; never affects the form itself."""

    stages: list[str] = Field(default_factory=list)
    total_latency_ms: int = 0
    models_used: list[str] = Field(default_factory=list)
    skipped_stages: list[str] = Field(default_factory=list)
    failed_stages: list[str] = Field(default_factory=list)
    anomalies: list[ValidationAnomaly] = Field(default_factory=list)


class FormMetadata(CamelModel):
    form_type: str
    domain: str
    tone: str
    complexity: str
    is_quiz: bool = False
    is_survey: bool = False
    pipeline: PipelineTrace = Field(default_factory=PipelineTrace)


class FormStructure(CamelModel):
    """Stage 2 result, before the optional stages run."""

    title: str
    description: str | None = None
    fields: list[FormField] = Field(default_factory=list)
    quiz_mode: QuizMode | None = None


class GeneratedForm(CamelModel):
    """Terminal output of one pipeline run."""

    model_config = {**CamelModel.model_config, "frozen": True}

    title: str
    description: str | None = None
    fields: list[FormField]
    quiz_mode: QuizMode | None = None
    metadata: FormMetadata

    def get_field(self, field_id: str) -> FormField | None:
        """Get a field by id."""
        for form_field in self.fields:
            if form_field.id == field_id:
                return form_field
        return None

    def field_type_counts(self) -> dict[str, int]:
        """Count fields per type."""
        counts: dict[str, int] = {}
        for form_field in self.fields:
            counts[form_field.type] = counts.get(form_field.type, 0) + 1
        return counts


class RawFormField(CamelModel):
    """Lenient shape for one field as emitted by the structure generator."""

    id: str | None = None
    label: str | None = None
    type: str | None = None
    required: bool | None = None
    placeholder: str | None = None
    help_text: str | None = None
    options: list[str] | None = None
    validation: dict[str, Any] | None = None
    quiz_config: QuizConfig | None = None

    @field_validator("id", "label", "type", "placeholder", "help_text", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str | None:
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    @field_validator("required", mode="before")
    @classmethod
    def _coerce_required(cls, value: Any) -> bool | None:
        if value is None:
            return None
        if isinstance(value, str):
            return value.strip().lower() not in {"false", "no", "0"}
        return bool(value)

    @field_validator("options", mode="before")
    @classmethod
    def _coerce_options(cls, value: Any) -> list[str] | None:
        return coerce_str_list(value)

    @field_validator("validation", mode="before")
    @classmethod
    def _coerce_validation(cls, value: Any) -> dict[str, Any] | None:
        return value if isinstance(value, dict) else None

    @field_validator("quiz_config", mode="before")
    @classmethod
    def _coerce_quiz_config(cls, value: Any) -> Any:
        return value if isinstance(value, dict) else None


class RawFormStructure(CamelModel):
    """Lenient shape for the structure generator's whole response."""

    title: str | None = None
    description: str | None = None
    fields: list[RawFormField] = Field(default_factory=list)
    quiz_mode: QuizMode | None = None

    @field_validator("fields", mode="before")
    @classmethod
    def _only_objects(cls, value: Any) -> list[Any]:
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, dict)]

    @field_validator("quiz_mode", mode="before")
    @classmethod
    def _coerce_quiz_mode(cls, value: Any) -> Any:
        return value if isinstance(value, dict) else None

    @field_validator("title", "description", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str | None:
        if value is None:
            return None
        text = str(value).strip()
        return text or None

"""
Output guardrails for formgen.

These checks run on the merged fields before the form is returned. Quiz
inconsistencies are corrected in place and reported as ValidationAnomaly
records instead of failing the run.
"""

from collections.abc import Sequence

from pydantic import BaseModel, Field

from formgen.catalog import is_choice_type, is_multi_select_type
from formgen.models.pipeline import FormField, QuizConfig, ValidationAnomaly
from formgen.stages.field_analyzer import QUIZ_OPTION_COUNT, placeholder_options

MIN_CHOICE_OPTIONS = 2


class SchemaValidationResult(BaseModel):
    """Result of form structure validation."""

    is_valid: bool = Field(..., description="Whether the fields are valid")
    errors: list[str] = Field(default_factory=list, description="List of validation errors")
    warnings: list[str] = Field(default_factory=list, description="List of warnings")


def _clean_options(options: Sequence[str] | None) -> list[str]:
    cleaned: list[str] = []
    for option in options or []:
        text = option.strip() if isinstance(option, str) else ""
        if text and text not in cleaned:
            cleaned.append(text)
    return cleaned


def _match_option(answer: str, options: list[str]) -> str | None:
    """Find the option an answer refers to, ignoring case and whitespace."""
    if answer in options:
        return answer
    folded = answer.strip().casefold()
    for option in options:
        if option.casefold() == folded:
            return option
    return None


def _pad_options(options: list[str]) -> list[str]:
    target = QUIZ_OPTION_COUNT if not options else MIN_CHOICE_OPTIONS
    if len(options) >= target:
        return options
    padding = [p for p in placeholder_options(QUIZ_OPTION_COUNT) if p not in options]
    return options + padding[: target - len(options)]


def _fix_single_choice(
    field: FormField, options: list[str], config: QuizConfig, anomalies: list[ValidationAnomaly]
) -> tuple[list[str], QuizConfig]:
    answer = config.correct_answer
    if isinstance(answer, list):
        first = answer[0] if answer else ""
        anomalies.append(
            ValidationAnomaly(
                field_id=field.id, kind="answer-shape", detail="Single-choice answer was a list; kept the first entry"
            )
        )
        answer = first

    if not answer:
        return options, config.model_copy(update={"correct_answer": ""})

    matched = _match_option(answer, options)
    if matched is None:
        anomalies.append(
            ValidationAnomaly(
                field_id=field.id, kind="answer-not-in-options", detail=f"Inserted correct answer {answer!r} into options"
            )
        )
        options = [answer] + options
        matched = answer
    return options, config.model_copy(update={"correct_answer": matched})


def _fix_multi_select(
    field: FormField, options: list[str], config: QuizConfig, anomalies: list[ValidationAnomaly]
) -> tuple[list[str], QuizConfig]:
    answers = config.correct_answer
    if isinstance(answers, str):
        answers = [answers] if answers else []

    fixed: list[str] = []
    for answer in answers:
        matched = _match_option(answer, options)
        if matched is None:
            anomalies.append(
                ValidationAnomaly(
                    field_id=field.id,
                    kind="answer-not-in-options",
                    detail=f"Inserted correct answer {answer!r} into options",
                )
            )
            options = options + [answer]
            matched = answer
        if matched not in fixed:
            fixed.append(matched)
    return options, config.model_copy(update={"correct_answer": fixed})


def enforce_quiz_integrity(
    fields: Sequence[FormField], is_quiz: bool = True
) -> tuple[list[FormField], list[ValidationAnomaly]]:
    """
    Make scorable choice fields self-consistent.

    For every choice field with a quiz config, the correct answer ends up in
    the options (single-choice) or a subset of them (multi-select); missing
    answers are inserted. In quiz forms, choice fields also get at least two
    options (placeholder options when none exist) and a default correct
    answer when the model gave none.

    Returns:
        New FormField objects, plus one anomaly per correction made.
    """
    anomalies: list[ValidationAnomaly] = []
    result: list[FormField] = []

    for field in fields:
        if not is_choice_type(field.type) or (field.quiz_config is None and not is_quiz):
            result.append(field)
            continue

        options = _clean_options(field.options)
        config = field.quiz_config

        if is_quiz and (config is None or not config.has_answer) and options:
            default = [options[0]] if is_multi_select_type(field.type) else options[0]
            anomalies.append(
                ValidationAnomaly(
                    field_id=field.id,
                    kind="missing-correct-answer",
                    detail="No correct answer was generated; defaulted to the first option",
                )
            )
            config = QuizConfig(
                correct_answer=default,
                points=config.points if config else 1,
                explanation=config.explanation if config else "",
            )

        if config is not None:
            if is_multi_select_type(field.type):
                options, config = _fix_multi_select(field, options, config, anomalies)
            else:
                options, config = _fix_single_choice(field, options, config, anomalies)

        if is_quiz and len(options) < MIN_CHOICE_OPTIONS:
            anomalies.append(
                ValidationAnomaly(
                    field_id=field.id,
                    kind="insufficient-options",
                    detail=f"Only {len(options)} option(s); padded with placeholders that need editing",
                )
            )
            options = _pad_options(options)
            if config is None or not config.has_answer:
                default = [options[0]] if is_multi_select_type(field.type) else options[0]
                config = QuizConfig(
                    correct_answer=default,
                    points=config.points if config else 1,
                    explanation=config.explanation if config else "",
                )

        result.append(field.model_copy(update={"options": options or None, "quiz_config": config}))

    return result, anomalies


def check_field_ordering(fields: Sequence[FormField]) -> SchemaValidationResult:
    """Check that orders are exactly 0..n-1 and ids are unique."""
    errors: list[str] = []
    warnings: list[str] = []

    orders = sorted(f.order for f in fields)
    expected = list(range(len(fields)))
    if orders != expected:
        duplicates = sorted({o for o in orders if orders.count(o) > 1})
        missing = sorted(set(expected) - set(orders))
        if duplicates:
            errors.append(f"Duplicate order values: {duplicates}")
        if missing:
            errors.append(f"Missing order values: {missing}")

    seen: set[str] = set()
    for field in fields:
        if field.id in seen:
            errors.append(f"Duplicate field id '{field.id}'")
        seen.add(field.id)

    if not fields:
        warnings.append("Form has no fields")

    return SchemaValidationResult(is_valid=not errors, errors=errors, warnings=warnings)

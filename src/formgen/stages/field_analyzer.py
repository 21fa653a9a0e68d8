"""
Semantic field analyzer.

Batch-classifies proposed fields into catalog types with one AI call, and
falls back to local keyword heuristics whenever the call or its parsing
fails. Quiz forms get two extra guarantees: text answers become
multiple-choice, and choice fields without usable options get a second
AI pass that invents them (or clearly marked placeholders).
"""

import logging
import re
from collections.abc import Sequence

from pydantic import ValidationError

from formgen.catalog import (
    is_choice_type,
    is_multi_select_type,
    is_text_answer_type,
    normalize_field_type,
)
from formgen.errors import FormGenError
from formgen.models.analysis import FieldAnalysisInput, FieldAnalysisResult, QuizOptionsResult
from formgen.models.pipeline import FormField, QuizConfig
from formgen.parsing import extract_list, parse_json
from formgen.providers.base import Message
from formgen.providers.client import ProviderClient, get_provider_client
from formgen.stages.instructions import (
    QUIZ_OPTIONS_INSTRUCTIONS,
    build_field_analysis_instructions,
    build_field_analysis_prompt,
    build_quiz_options_prompt,
)

logger = logging.getLogger(__name__)

UPGRADE_CONFIDENCE = 0.7
QUIZ_OVERRIDE_CONFIDENCE = 0.9
QUIZ_OPTION_COUNT = 4

_PLACEHOLDER_OPTION_RE = re.compile(r"^\[?\s*option\s*\d+\b", re.IGNORECASE)


def placeholder_options(count: int = QUIZ_OPTION_COUNT) -> list[str]:
    """Options that visibly need editing, used when generation fails."""
    return [f"[Option {i} - needs editing]" for i in range(1, count + 1)]


def is_placeholder_option(option: str | None) -> bool:
    """Whether an option is empty or an "Option N" style stub."""
    if option is None or not option.strip():
        return True
    text = option.strip()
    return bool(_PLACEHOLDER_OPTION_RE.match(text)) or "needs editing" in text.lower()


def has_usable_options(options: Sequence[str] | None) -> bool:
    return bool(options) and not all(is_placeholder_option(o) for o in options)


def is_quiz_context(form_context: str | None) -> bool:
    if not form_context:
        return False
    context = form_context.lower()
    return "quiz" in context or "test" in context or "exam" in context


def _mentions(label: str, *keywords: str) -> bool:
    for keyword in keywords:
        if not keyword[0].isalnum():
            if keyword in label:
                return True
        elif re.search(rf"(?<!\w){re.escape(keyword)}(?:s|es)?(?!\w)", label):
            return True
    return False


# (type, confidence, reasoning, keywords), checked in order
_LOCAL_RULES: list[tuple[str, float, str, tuple[str, ...]]] = [
    ("email", 0.95, 'Contains "email"', ("email", "e-mail")),
    ("phone", 0.95, "Phone number field", ("phone", "mobile", "cell", "telephone")),
    ("switch", 0.9, "Binary yes/no question", ("will you", "are you", "do you agree", "attending")),
    ("star-rating", 0.9, "Rating question", ("rate", "rating", "satisfied", "out of 5")),
    ("opinion-scale", 0.85, "Opinion/Likert scale", ("agree", "likely", "recommend", "scale of")),
    ("url", 0.9, "Web address field", ("website", "url", "homepage", "linkedin")),
    ("date-picker", 0.9, "Date field", ("date", "when", "birthday", "born")),
    ("time-picker", 0.85, "Time field", ("time", "what time")),
    ("file-uploader", 0.9, "File upload field", ("upload", "attach", "resume", "cv", "file")),
    ("currency", 0.85, "Currency/money field", ("price", "cost", "budget", "salary", "$", "€", "£")),
    ("number", 0.8, "Numeric field", ("how many", "number of", "quantity", "age")),
    ("address", 0.85, "Address field", ("address", "location", "street")),
    ("signature", 0.85, "Signature field", ("signature", "sign here")),
    (
        "long-answer",
        0.85,
        "Detailed response needed",
        ("describe", "explain", "tell us", "comment", "feedback", "message"),
    ),
]


def analyze_field_locally(field: FieldAnalysisInput) -> FieldAnalysisResult:
    """Keyword-based classification used when the AI path is unavailable."""
    label = field.label.lower()
    options = field.options or []

    if len(options) == 2 and any(o.lower() in {"yes", "no"} for o in options):
        return FieldAnalysisResult(recommended_type="switch", confidence=0.9, reasoning="Binary yes/no question")

    for field_type, confidence, reasoning, keywords in _LOCAL_RULES:
        if _mentions(label, *keywords):
            return FieldAnalysisResult(recommended_type=field_type, confidence=confidence, reasoning=reasoning)

    if len(options) > 5 and field.current_type != "checkboxes":
        return FieldAnalysisResult(
            recommended_type="dropdown", confidence=0.8, reasoning="Many options - dropdown is better UX"
        )
    if _mentions(label, "select all", "all that apply", "multiple"):
        return FieldAnalysisResult(recommended_type="checkboxes", confidence=0.85, reasoning="Multiple selection allowed")
    if _mentions(label, "rank", "prioritize") or "order of" in label:
        return FieldAnalysisResult(recommended_type="ranking", confidence=0.85, reasoning="Ranking/ordering question")
    if options:
        if field.current_type and is_choice_type(field.current_type):
            return FieldAnalysisResult(
                recommended_type=field.current_type, confidence=0.6, reasoning="Keeps existing choice type"
            )
        return FieldAnalysisResult(recommended_type="multiple-choice", confidence=0.6, reasoning="Default for few options")

    return FieldAnalysisResult(recommended_type="short-answer", confidence=0.5, reasoning="Default text input")


def _placeholder_quiz_options() -> QuizOptionsResult:
    options = placeholder_options()
    return QuizOptionsResult(options=options, correct_answer=options[0])


def _validate_quiz_options(item: object) -> QuizOptionsResult:
    """Coerce one generated item; the correct answer always ends up in the options."""
    if not isinstance(item, dict):
        return _placeholder_quiz_options()
    try:
        result = QuizOptionsResult.model_validate(item)
    except ValidationError:
        return _placeholder_quiz_options()

    options = [o for o in result.options if not is_placeholder_option(o)][:QUIZ_OPTION_COUNT]
    if len(options) < 2:
        return _placeholder_quiz_options()

    answer = result.correct_answer or options[0]
    if answer not in options:
        logger.warning("Generated answer %r not among options; substituting into slot 0", answer[:40])
        options[0] = answer
    return QuizOptionsResult(options=options, correct_answer=answer)


async def batch_generate_quiz_options(
    questions: Sequence[tuple[str, str | None]],
    client: ProviderClient | None = None,
) -> list[QuizOptionsResult]:
    """
    Generate 4 options (one correct) for each (label, help_text) question.

    Never raises: failed or malformed items get placeholder options.
    """
    if not questions:
        return []
    client = client or get_provider_client()
    logger.info("Generating quiz options for %d questions", len(questions))

    try:
        response = await client.complete(
            [Message.system(QUIZ_OPTIONS_INSTRUCTIONS), Message.user(build_quiz_options_prompt(questions))],
            purpose="fast-classification",
            temperature=0.3,
            max_tokens=2000,
        )
        parsed = parse_json(response.content, "batch_generate_quiz_options")
    except FormGenError as e:
        logger.warning("Quiz option generation failed, using placeholders: %s", e)
        return [_placeholder_quiz_options() for _ in questions]

    if isinstance(parsed, dict) and "options" in parsed:
        items = [parsed]
    else:
        items = extract_list(parsed, "results", "questions")
    return [_validate_quiz_options(items[i] if i < len(items) else None) for i in range(len(questions))]


async def generate_quiz_options_with_ai(
    label: str,
    help_text: str | None = None,
    client: ProviderClient | None = None,
) -> QuizOptionsResult:
    """Single-question convenience over batch_generate_quiz_options."""
    results = await batch_generate_quiz_options([(label, help_text)], client=client)
    return results[0]


def _coerce_analysis(item: object, field: FieldAnalysisInput) -> FieldAnalysisResult | None:
    if not isinstance(item, dict):
        return None
    data = dict(item)
    raw_type = data.get("recommendedType", data.get("recommended_type"))
    data.pop("recommended_type", None)
    data["recommendedType"] = normalize_field_type(
        raw_type if isinstance(raw_type, str) else field.current_type,
        field.label,
        field.options,
    )
    try:
        return FieldAnalysisResult.model_validate(data)
    except ValidationError as e:
        logger.debug("Discarding malformed analysis for %r: %s", field.label[:40], e)
        return None


def _apply_quiz_rules(
    result: FieldAnalysisResult,
    field: FieldAnalysisInput,
    is_quiz: bool,
) -> tuple[FieldAnalysisResult, bool]:
    """Quiz override and option check. Returns the result and whether it needs generated options."""
    recommended = result.recommended_type
    current = field.current_type or ""
    updates: dict = {}

    if is_quiz and not is_choice_type(recommended):
        if is_choice_type(current):
            # Scored questions stay choice questions
            recommended = current
            updates["recommended_type"] = recommended
        elif is_text_answer_type(recommended) or is_text_answer_type(current):
            logger.info("Quiz override: %r %s -> multiple-choice", field.label[:30], current or recommended)
            recommended = "multiple-choice"
            updates["recommended_type"] = recommended
            updates["confidence"] = max(result.confidence, QUIZ_OVERRIDE_CONFIDENCE)
    elif is_quiz and is_text_answer_type(current) and is_choice_type(recommended):
        # The switch away from a text answer must clear the upgrade threshold
        updates["confidence"] = max(result.confidence, QUIZ_OVERRIDE_CONFIDENCE)

    needs_choices = (
        recommended == "multiple-choice"
        or field.current_type == "multiple-choice"
        or (is_quiz and is_choice_type(recommended))
    )
    needs_generation = False
    options = result.suggested_options
    if needs_choices:
        if not has_usable_options(options):
            updates["suggested_options"] = None
            options = field.options if has_usable_options(field.options) else None
            needs_generation = options is None

        if is_quiz and options and not result.suggested_correct_answer:
            updates["suggested_correct_answer"] = options[0]

    if updates:
        result = result.model_copy(update=updates)
    return result, needs_generation


async def analyze_field_types(
    fields: Sequence[FieldAnalysisInput],
    form_context: str | None = None,
    client: ProviderClient | None = None,
) -> list[FieldAnalysisResult]:
    """
    Recommend a catalog type for each field.

    Returns exactly one result per input field, in input order, and never
    raises: provider or parse failures fall back to analyze_field_locally.

    Args:
        fields: Fields to classify.
        form_context: Form type label; anything mentioning quiz/test/exam
            turns on the quiz rules.
        client: Provider client (the process-wide client if None).
    """
    if not fields:
        return []
    client = client or get_provider_client()
    is_quiz = is_quiz_context(form_context)
    logger.info("Analyzing %d fields (context=%s, quiz=%s)", len(fields), form_context or "general", is_quiz)

    payload = [f.model_dump(by_alias=True, exclude_none=True) for f in fields]
    try:
        response = await client.complete(
            [
                Message.system(build_field_analysis_instructions(is_quiz)),
                Message.user(build_field_analysis_prompt(payload, form_context or "", is_quiz)),
            ],
            purpose="field-optimization",
            temperature=0.2,
            max_tokens=3000,
        )
        items = extract_list(parse_json(response.content, "analyze_field_types"), "results", "fields", "analyses")
    except FormGenError as e:
        logger.warning("AI field analysis failed, using local heuristics: %s", e)
        items = []
        ai_available = False
    else:
        ai_available = True
        if len(items) != len(fields):
            logger.warning("Field analysis returned %d results for %d fields", len(items), len(fields))

    results: list[FieldAnalysisResult] = []
    needing_options: list[int] = []

    for index, field in enumerate(fields):
        result = _coerce_analysis(items[index], field) if index < len(items) else None
        if result is None:
            result = analyze_field_locally(field)
        result, needs_generation = _apply_quiz_rules(result, field, is_quiz)
        if needs_generation:
            needing_options.append(index)
        results.append(result)

    if needing_options:
        if ai_available:
            generated = await batch_generate_quiz_options(
                [(fields[i].label, fields[i].help_text) for i in needing_options],
                client=client,
            )
        else:
            generated = [_placeholder_quiz_options() for _ in needing_options]

        for index, options in zip(needing_options, generated):
            results[index] = results[index].model_copy(
                update={"suggested_options": options.options, "suggested_correct_answer": options.correct_answer}
            )

    upgrades = sum(1 for f, r in zip(fields, results) if r.recommended_type != f.current_type)
    logger.info("Field analysis complete: %d type changes recommended", upgrades)
    return results


def _answer_in_options(answer: str | list[str], options: Sequence[str] | None) -> bool:
    answers = answer if isinstance(answer, list) else [answer]
    folded = {o.casefold() for o in options or []}
    return bool(answers) and all(a.casefold() in folded for a in answers)


def _merged_quiz_config(
    field: FormField,
    final_type: str,
    answer: str | None,
    final_options: Sequence[str] | None,
    options_replaced: bool,
) -> QuizConfig | None:
    existing = field.quiz_config
    if existing is not None and existing.has_answer:
        # An existing answer survives new options as long as it is still one of them
        if not options_replaced or _answer_in_options(existing.correct_answer, final_options):
            return existing
    if not answer:
        return existing

    correct: str | list[str] = [answer] if is_multi_select_type(final_type) else answer
    return QuizConfig(
        correct_answer=correct,
        points=existing.points if existing else 1,
        explanation=existing.explanation if existing else "",
    )


async def optimize_field_types(
    fields: Sequence[FormField],
    form_context: str,
    client: ProviderClient | None = None,
) -> list[FormField]:
    """
    Apply semantic analysis to generated fields.

    Types are upgraded only at confidence >= 0.7. Choice fields without
    usable options receive the suggested ones, and quiz fields pick up the
    suggested correct answer. Returns new FormField objects; `order` is untouched.
    """
    inputs = [
        FieldAnalysisInput(
            label=f.label,
            current_type=f.type,
            options=f.options,
            help_text=f.help_text,
            context=form_context,
        )
        for f in fields
    ]
    analyses = await analyze_field_types(inputs, form_context, client=client)
    is_quiz = is_quiz_context(form_context)

    optimized: list[FormField] = []
    upgrades = 0
    for field, analysis in zip(fields, analyses):
        is_upgrade = analysis.confidence >= UPGRADE_CONFIDENCE and analysis.recommended_type != field.type
        final_type = analysis.recommended_type if is_upgrade else field.type

        options_replaced = bool(analysis.suggested_options) and (
            not has_usable_options(field.options) or (is_upgrade and is_choice_type(final_type))
        )

        updates: dict = {}
        if is_upgrade:
            upgrades += 1
            updates["type"] = final_type
            logger.debug(
                "Upgrade %r: %s -> %s (%.0f%%)", field.label[:30], field.type, final_type, analysis.confidence * 100
            )
        if options_replaced:
            updates["options"] = list(analysis.suggested_options)
        if (is_upgrade or options_replaced) and not is_quiz:
            if analysis.suggested_placeholder and not field.placeholder:
                updates["placeholder"] = analysis.suggested_placeholder
            if analysis.suggested_help_text and not field.help_text:
                updates["help_text"] = analysis.suggested_help_text
        if is_quiz and is_choice_type(final_type):
            quiz_config = _merged_quiz_config(
                field,
                final_type,
                analysis.suggested_correct_answer,
                analysis.suggested_options if options_replaced else field.options,
                options_replaced,
            )
            if quiz_config is not field.quiz_config:
                updates["quiz_config"] = quiz_config

        optimized.append(field.model_copy(update=updates, deep=True))

    logger.info("Field optimization complete: %d type upgrades applied", upgrades)
    return optimized

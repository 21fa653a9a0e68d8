"""
Stage 2: form structure generation.

Turns the prompt plus the stage 1 analysis into a titled list of typed
fields. Fields get their final `order` here; later stages never change it.
"""

import logging

from formgen.catalog import normalize_field_type
from formgen.config import FormGenConfig, get_config
from formgen.models.pipeline import ContentAnalysis, FormField, FormStructure, RawFormField, RawFormStructure
from formgen.parsing import parse_model
from formgen.providers.base import Message
from formgen.providers.client import ProviderClient, get_provider_client
from formgen.stages.instructions import build_structure_instructions, build_structure_prompt

logger = logging.getLogger(__name__)


def summarize_analysis(analysis: ContentAnalysis) -> str:
    """Compact analysis summary passed to the generator."""
    lines = [
        f"- Purpose: {analysis.purpose}",
        f"- Audience: {analysis.audience}",
        f"- Form type: {analysis.form_type}",
        f"- Domain: {analysis.domain}",
        f"- Is quiz: {'yes' if analysis.is_quiz else 'no'}",
        f"- Is survey: {'yes' if analysis.is_survey else 'no'}",
        f"- Complexity: {analysis.complexity}",
    ]
    if analysis.key_topics:
        lines.append(f"- Key topics: {', '.join(analysis.key_topics)}")
    if analysis.essential_fields:
        lines.append(f"- Essential fields: {', '.join(analysis.essential_fields)}")
    return "\n".join(lines)


def build_fields(raw_fields: list[RawFormField], analysis: ContentAnalysis) -> list[FormField]:
    """
    Normalize raw generator output into FormFields.

    `order` is the index in the response, ids are unique, and every type is a
    catalog key. Quiz questions that carry a quizConfig lose help text and
    placeholder (they would leak hints).
    """
    fields: list[FormField] = []
    seen_ids: set[str] = set()

    for index, raw in enumerate(raw_fields):
        field_id = raw.id or f"field_{index}"
        if field_id in seen_ids:
            suffix = index
            while f"{field_id}_{suffix}" in seen_ids:
                suffix += 1
            field_id = f"{field_id}_{suffix}"
        seen_ids.add(field_id)

        label = raw.label or "Field"
        field = FormField(
            id=field_id,
            label=label,
            type=normalize_field_type(raw.type, label, raw.options),
            required=True if raw.required is None else raw.required,
            placeholder=raw.placeholder,
            help_text=raw.help_text,
            options=raw.options or None,
            validation=raw.validation,
            quiz_config=raw.quiz_config,
            order=index,
        )

        if analysis.is_quiz and field.quiz_config is not None:
            field.help_text = None
            field.placeholder = None

        fields.append(field)

    return fields


async def generate_form_structure(
    prompt: str,
    analysis: ContentAnalysis,
    question_count: int | None = None,
    reference_data: str | None = None,
    client: ProviderClient | None = None,
    config: FormGenConfig | None = None,
) -> FormStructure:
    """
    Generate the form's title and fields.

    Quizzes built from reference material route to the `quiz-generation`
    purpose, which prefers long-context models.

    Raises:
        ProviderExhaustedError: No provider could answer.
        JsonParseError: The answer was not usable JSON.
    """
    client = client or get_provider_client()
    config = config or get_config()

    reference = None
    if reference_data:
        reference = reference_data[: config.reference_char_limit]
        if len(reference_data) > len(reference):
            logger.info(
                "Reference material truncated from %d to %d chars", len(reference_data), len(reference)
            )

    purpose = "quiz-generation" if analysis.is_quiz and reference else "form-generation"

    response = await client.complete(
        [
            Message.system(build_structure_instructions()),
            Message.user(
                build_structure_prompt(prompt, summarize_analysis(analysis), question_count, reference)
            ),
        ],
        purpose=purpose,
        temperature=0.4 if analysis.is_quiz else 0.3,
        max_tokens=4000,
    )

    raw = parse_model(response.content, RawFormStructure, "generate_form_structure")
    fields = build_fields(raw.fields, analysis)

    if not fields:
        logger.warning("Structure generation returned no fields")
    if question_count and len(fields) != question_count:
        logger.warning("Requested %d fields, model generated %d", question_count, len(fields))

    logger.info("Generated %d fields via %s (%s)", len(fields), response.model_ref, purpose)
    return FormStructure(
        title=raw.title or "Untitled Form",
        description=raw.description,
        fields=fields,
        quiz_mode=raw.quiz_mode,
    )

"""
Question enhancer.

Rewrites question text, help text and placeholders for tone and clarity in
one batched AI call, with a local phrasing table as the fallback. Quiz and
survey variants have their own prompts and the same fail-soft contract:
on any AI failure the input comes back decorated with safe defaults.
"""

import logging
import re
from collections.abc import Sequence

from pydantic import ValidationError

from formgen.errors import FormGenError
from formgen.models.enhancement import (
    EnhancedQuestion,
    EnhancedQuizQuestion,
    EnhancedSurveyQuestion,
    EnhancementOptions,
    QuestionInput,
    QuizQuestionInput,
    RawEnhancement,
    SurveyQuestionInput,
)
from formgen.models.base import coerce_str_list
from formgen.models.pipeline import ContentAnalysis, FormField, Tone
from formgen.parsing import extract_list, parse_json
from formgen.providers.base import Message
from formgen.providers.client import ProviderClient, get_provider_client
from formgen.stages.instructions import (
    QUESTION_ENHANCER_INSTRUCTIONS,
    QUIZ_ENHANCER_INSTRUCTIONS,
    SURVEY_ENHANCER_INSTRUCTIONS,
    build_question_enhancement_prompt,
    build_quiz_enhancement_prompt,
    build_survey_enhancement_prompt,
)

logger = logging.getLogger(__name__)

PHRASING_VARIATIONS: dict[str, list[str]] = {
    "name": [
        "What is your name?",
        "Your name",
        "Full name",
        "What should we call you?",
        "How would you like to be addressed?",
    ],
    "email": [
        "Email address",
        "Your email",
        "What's your email?",
        "Email (for confirmation)",
        "Best email to reach you",
    ],
    "phone": [
        "Phone number",
        "Your phone number",
        "Best number to reach you",
        "Contact number",
        "Mobile number",
    ],
    "feedback": [
        "Any feedback or comments?",
        "Share your thoughts",
        "Anything else you'd like to tell us?",
        "Additional comments",
        "Your feedback matters to us",
    ],
    "rating": [
        "How would you rate your experience?",
        "Rate your overall experience",
        "Your rating",
        "How did we do?",
        "Tell us how satisfied you are",
    ],
}

# Label cores (filler words removed) that select a phrasing category
_PHRASING_KEYS: dict[str, tuple[str, ...]] = {
    "name": ("name",),
    "email": ("email", "e-mail", "email address"),
    "phone": ("phone", "phone number", "mobile number", "telephone", "telephone number"),
    "feedback": ("feedback", "comments", "comment", "additional comments", "any feedback"),
    "rating": ("rating", "overall rating", "rate experience", "rate overall experience"),
}

_FILLER_WORDS = frozenset(
    {"what", "is", "your", "the", "a", "an", "full", "enter", "please", "my", "our", "best", "contact", "s"}
)

TONE_VARIATION_INDEX: dict[str, int] = {"professional": 0, "formal": 0, "friendly": 2, "casual": 3}


def _label_core(label: str) -> str:
    words = re.findall(r"[\w-]+", label.lower())
    return " ".join(w for w in words if w not in _FILLER_WORDS)


def _phrasing_category(label: str) -> str | None:
    core = _label_core(label)
    for category, keys in _PHRASING_KEYS.items():
        if core in keys:
            return category
    return None


def generate_placeholder(question: QuestionInput) -> str:
    """Contextual example value for a question, or "" when nothing fits."""
    label = question.label.lower()

    if "email" in label:
        return "you@example.com"
    if "phone" in label or "mobile" in label:
        return "(555) 123-4567"
    if "company" in label or "organization" in label:
        return "Acme Inc."
    if "website" in label or "url" in label:
        return "https://"
    if "address" in label:
        return "123 Main St, City, State"
    if "name" in label:
        return "John Doe"
    if "message" in label or "comment" in label:
        return "Type your message here..."
    if "describe" in label or "explain" in label:
        return "Tell us more..."

    if question.type in ("number", "currency"):
        return "0"
    if question.type == "date-picker":
        return "Select a date"
    if question.type == "time-picker":
        return "Select a time"
    return ""


def enhance_question_locally(
    question: QuestionInput,
    options: EnhancementOptions | None = None,
) -> EnhancedQuestion:
    """Enhance one question from the phrasing table (no API call)."""
    tone = options.tone if options else "professional"
    placeholder = question.placeholder or generate_placeholder(question) or None

    category = _phrasing_category(question.label)
    if category is not None:
        variations = PHRASING_VARIATIONS[category]
        index = min(TONE_VARIATION_INDEX.get(tone, 0), len(variations) - 1)
        return EnhancedQuestion(
            label=variations[index],
            label_variations=list(variations),
            help_text=question.help_text,
            placeholder=placeholder,
            options=question.options,
            tone=tone,
        )

    label = question.label.strip()
    return EnhancedQuestion(
        label=label[:1].upper() + label[1:],
        help_text=question.help_text,
        placeholder=placeholder,
        options=question.options,
        tone=tone,
    )


def _merge_enhancement(
    question: QuestionInput,
    item: object,
    options: EnhancementOptions,
) -> EnhancedQuestion:
    if not isinstance(item, dict):
        return enhance_question_locally(question, options)
    try:
        raw = RawEnhancement.model_validate(item)
    except ValidationError:
        return enhance_question_locally(question, options)

    enhanced_options = question.options
    # Rewritten options must keep the same shape
    if raw.options and question.options and len(raw.options) == len(question.options):
        enhanced_options = raw.options

    variations = raw.label_variations[: options.max_variations] if raw.label_variations else None
    return EnhancedQuestion(
        label=raw.label or question.label,
        label_variations=variations or None,
        help_text=raw.help_text or question.help_text,
        placeholder=raw.placeholder or question.placeholder,
        options=enhanced_options,
        tone=options.tone,
    )


async def enhance_questions_with_ai(
    questions: Sequence[QuestionInput],
    options: EnhancementOptions | None = None,
    client: ProviderClient | None = None,
) -> list[EnhancedQuestion]:
    """
    Enhance a batch of questions with one AI call.

    Returns one EnhancedQuestion per input, in order. Never raises: on
    provider or parse failure every question is enhanced locally, and
    missing or malformed items are enhanced locally one by one.
    """
    if not questions:
        return []
    options = options or EnhancementOptions()
    client = client or get_provider_client()
    logger.info("Enhancing %d questions (tone=%s, form_type=%s)", len(questions), options.tone, options.form_type)

    payload = [q.model_dump(by_alias=True, exclude_none=True) for q in questions]
    try:
        response = await client.complete(
            [
                Message.system(QUESTION_ENHANCER_INSTRUCTIONS),
                Message.user(
                    build_question_enhancement_prompt(
                        payload, options.tone, options.form_type, options.audience, options.max_variations
                    )
                ),
            ],
            purpose="question-enhancement",
            temperature=0.6,
            max_tokens=3000,
        )
        items = extract_list(parse_json(response.content, "enhance_questions_with_ai"), "results", "questions")
    except FormGenError as e:
        logger.warning("AI enhancement failed, using local phrasing: %s", e)
        return [enhance_question_locally(q, options) for q in questions]

    if len(items) != len(questions):
        logger.warning("Enhancement returned %d results for %d questions", len(items), len(questions))

    enhanced = [
        _merge_enhancement(q, items[i] if i < len(items) else None, options) for i, q in enumerate(questions)
    ]
    changed = sum(1 for q, e in zip(questions, enhanced) if q.label != e.label)
    logger.info("Question enhancement complete: %d labels improved", changed)
    return enhanced


async def enhance_quiz_questions(
    questions: Sequence[QuizQuestionInput],
    topic: str,
    client: ProviderClient | None = None,
) -> list[EnhancedQuizQuestion]:
    """Improve quiz distractors and explanations. Never raises."""
    if not questions:
        return []
    client = client or get_provider_client()

    def fallback(q: QuizQuestionInput) -> EnhancedQuizQuestion:
        return EnhancedQuizQuestion(
            question=q.question,
            options=list(q.options),
            correct_answer=q.correct_answer,
            explanation=q.explanation or "No explanation provided",
            difficulty=q.difficulty or "medium",
            distractor_quality="needs-improvement",
        )

    payload = [q.model_dump(by_alias=True, exclude_none=True) for q in questions]
    try:
        response = await client.complete(
            [
                Message.system(QUIZ_ENHANCER_INSTRUCTIONS),
                Message.user(build_quiz_enhancement_prompt(payload, topic)),
            ],
            purpose="quiz-generation",
            temperature=0.4,
            max_tokens=4000,
        )
        items = extract_list(parse_json(response.content, "enhance_quiz_questions"), "questions", "results")
    except FormGenError as e:
        logger.warning("Quiz enhancement failed: %s", e)
        return [fallback(q) for q in questions]

    enhanced: list[EnhancedQuizQuestion] = []
    for index, q in enumerate(questions):
        item = items[index] if index < len(items) else None
        if not isinstance(item, dict):
            enhanced.append(fallback(q))
            continue

        options = coerce_str_list(item.get("options")) or []
        answer = item.get("correctAnswer")
        answers = answer if isinstance(answer, list) else [answer]
        # New options are only taken together with an answer they contain
        if len(options) < 2 or not answer or any(a not in options for a in answers):
            options, answer = list(q.options), q.correct_answer

        try:
            enhanced.append(
                EnhancedQuizQuestion(
                    question=str(item.get("question") or q.question),
                    options=options,
                    correct_answer=answer,
                    explanation=str(item.get("explanation") or q.explanation or "No explanation provided"),
                    difficulty=item.get("difficulty") or q.difficulty or "medium",
                    distractor_quality=item.get("distractorQuality") or "good",
                )
            )
        except ValidationError:
            enhanced.append(fallback(q))
    return enhanced


async def enhance_survey_questions(
    questions: Sequence[SurveyQuestionInput],
    research_goal: str | None = None,
    client: ProviderClient | None = None,
) -> list[EnhancedSurveyQuestion]:
    """Flag leading/double-barreled questions and suggest scale labels. Never raises."""
    if not questions:
        return []
    client = client or get_provider_client()

    def fallback(q: SurveyQuestionInput) -> EnhancedSurveyQuestion:
        return EnhancedSurveyQuestion(question=q.question, type=q.type, options=q.options, scale=q.scale)

    payload = [q.model_dump(by_alias=True, exclude_none=True) for q in questions]
    try:
        response = await client.complete(
            [
                Message.system(SURVEY_ENHANCER_INSTRUCTIONS),
                Message.user(build_survey_enhancement_prompt(payload, research_goal)),
            ],
            purpose="form-generation",
            temperature=0.3,
            max_tokens=3000,
        )
        items = extract_list(parse_json(response.content, "enhance_survey_questions"), "questions", "results")
    except FormGenError as e:
        logger.warning("Survey enhancement failed: %s", e)
        return [fallback(q) for q in questions]

    enhanced: list[EnhancedSurveyQuestion] = []
    for index, q in enumerate(questions):
        item = items[index] if index < len(items) else None
        if not isinstance(item, dict):
            enhanced.append(fallback(q))
            continue
        try:
            enhanced.append(
                EnhancedSurveyQuestion.model_validate(
                    {
                        **item,
                        "question": item.get("question") or q.question,
                        "type": q.type,
                        "options": item.get("options") or q.options,
                        "scale": item.get("scale") or q.scale,
                        "isLeading": bool(item.get("isLeading")),
                        "isDoubleBarreled": bool(item.get("isDoubleBarreled")),
                    }
                )
            )
        except ValidationError:
            enhanced.append(fallback(q))
    return enhanced


async def enhance_form_fields(
    fields: Sequence[FormField],
    analysis: ContentAnalysis,
    tone: Tone | None = None,
    client: ProviderClient | None = None,
) -> list[FormField]:
    """
    Apply question enhancement to generated fields.

    The configured tone wins over the analyzed one. Scored quiz questions
    keep their option text and never gain hints. Returns new objects.
    """
    options = EnhancementOptions(
        tone=tone or analysis.tone,
        form_type=analysis.form_type,
        audience=analysis.audience,
    )
    questions = [
        QuestionInput(
            label=f.label,
            type=f.type,
            help_text=f.help_text,
            placeholder=f.placeholder,
            options=f.options,
            context=analysis.form_type,
        )
        for f in fields
    ]
    enhanced = await enhance_questions_with_ai(questions, options, client=client)

    result: list[FormField] = []
    for field, enhancement in zip(fields, enhanced):
        scored = analysis.is_quiz or field.quiz_config is not None
        updates: dict = {"label": enhancement.label or field.label}
        if not (analysis.is_quiz and field.quiz_config is not None):
            updates["help_text"] = enhancement.help_text or field.help_text
            updates["placeholder"] = enhancement.placeholder or field.placeholder
        if not scored:
            updates["options"] = enhancement.options or field.options
        result.append(field.model_copy(update=updates, deep=True))
    return result

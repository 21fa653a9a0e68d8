"""Pipeline stages: analysis, structure generation, field optimization, enhancement."""

from formgen.stages.content_analysis import analyze_content
from formgen.stages.field_analyzer import (
    analyze_field_locally,
    analyze_field_types,
    batch_generate_quiz_options,
    generate_quiz_options_with_ai,
    is_placeholder_option,
    optimize_field_types,
)
from formgen.stages.question_enhancer import (
    enhance_form_fields,
    enhance_question_locally,
    enhance_questions_with_ai,
    enhance_quiz_questions,
    enhance_survey_questions,
    generate_placeholder,
)
from formgen.stages.structure_generation import generate_form_structure

__all__ = [
    "analyze_content",
    "generate_form_structure",
    "analyze_field_locally",
    "analyze_field_types",
    "batch_generate_quiz_options",
    "generate_quiz_options_with_ai",
    "is_placeholder_option",
    "optimize_field_types",
    "enhance_form_fields",
    "enhance_question_locally",
    "enhance_questions_with_ai",
    "enhance_quiz_questions",
    "enhance_survey_questions",
    "generate_placeholder",
]

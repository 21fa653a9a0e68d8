"""
Guardrails for formgen.

Prompt checks before generation and quiz/ordering checks after it.
"""

from formgen.guardrails.input_guardrails import SafetyCheckResult, check_prompt, inspect_prompt
from formgen.guardrails.output_guardrails import (
    SchemaValidationResult,
    check_field_ordering,
    enforce_quiz_integrity,
)

__all__ = [
    "SafetyCheckResult",
    "check_prompt",
    "inspect_prompt",
    "SchemaValidationResult",
    "check_field_ordering",
    "enforce_quiz_integrity",
]

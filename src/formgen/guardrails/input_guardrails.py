"""
Input guardrails for formgen.

These checks run on the user's prompt before any provider is called.
"""

import re

from pydantic import BaseModel, Field

from formgen.guardrails.constants import (
    MAX_PROMPT_LENGTH,
    MIN_PROMPT_LENGTH,
    PROMPT_INJECTION_PATTERNS,
    SUSPICIOUS_PATTERNS,
)


class SafetyCheckResult(BaseModel):
    """Result of input safety check."""

    is_safe: bool = Field(..., description="Whether the input is safe")
    issues: list[str] = Field(default_factory=list, description="Any issues found")


def _check_for_injection(text: str) -> list[str]:
    """Return a description of every suspicious pattern found."""
    issues = []
    for pattern in SUSPICIOUS_PATTERNS:
        if re.search(pattern, text, re.IGNORECASE):
            issues.append("Potentially unsafe content detected")
            break
    for pattern in PROMPT_INJECTION_PATTERNS:
        if re.search(pattern, text, re.IGNORECASE):
            issues.append("Prompt tries to override the generator's instructions")
            break
    return issues


def inspect_prompt(prompt: str | None) -> SafetyCheckResult:
    """Run every prompt check and collect the issues."""
    text = (prompt or "").strip()
    issues: list[str] = []

    if not text:
        issues.append("Prompt cannot be empty")
    elif len(text) < MIN_PROMPT_LENGTH:
        issues.append(f"Prompt is too short (minimum {MIN_PROMPT_LENGTH} characters)")
    if len(text) > MAX_PROMPT_LENGTH:
        issues.append(f"Prompt is too long ({len(text)} > {MAX_PROMPT_LENGTH} characters)")
    if text:
        issues.extend(_check_for_injection(text))

    return SafetyCheckResult(is_safe=not issues, issues=issues)


def check_prompt(prompt: str | None) -> SafetyCheckResult:
    """
    Validate a prompt before generation.

    Raises:
        ValueError: The prompt failed one or more checks; the message lists them.
    """
    result = inspect_prompt(prompt)
    if not result.is_safe:
        raise ValueError("Prompt rejected: " + "; ".join(result.issues))
    return result

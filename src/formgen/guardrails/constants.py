"""
Constants for formgen guardrails.

Patterns and limits used by the prompt checks, kept in one place so they
are easy to maintain and update.
"""

# Markup or template syntax that has no business in a form description
SUSPICIOUS_PATTERNS = [
    r"<script",
    r"javascript:",
    r"on\w+\s*=",
    r"\{\{.*\}\}",
    r"\$\{.*\}",
    r"eval\s*\(",
    r"__proto__",
]

# Attempts to override the generator's instructions
PROMPT_INJECTION_PATTERNS = [
    r"ignore\s+(all\s+)?(the\s+)?(previous|prior|above)\s+instructions",
    r"disregard\s+(all\s+)?(the\s+)?(previous|prior|above)",
    r"you\s+are\s+now\s+(a|an)\b",
    r"reveal\s+(your\s+)?(system\s+)?prompt",
    r"\bsystem\s*prompt\s*:",
]

MAX_PROMPT_LENGTH = 10_000
MIN_PROMPT_LENGTH = 3

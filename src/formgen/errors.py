"""
Error taxonomy for formgen.

Provider failures and unparseable model output are hard errors for the
required stages (content analysis, structure generation). The optional
stages convert any error into a StageSoftFailure record and continue.
"""

from dataclasses import dataclass


class FormGenError(Exception):
    """Base class for all formgen errors."""


class ProviderError(FormGenError):
    """A single provider call failed."""

    def __init__(self, provider: str, model: str | None, message: str):
        self.provider = provider
        self.model = model
        self.message = message
        super().__init__(f"{provider}[{model or '-'}]: {message}")


class ProviderRateLimitError(ProviderError):
    """The provider rejected the call with a rate limit (HTTP 429)."""


class ProviderModelNotFoundError(ProviderError):
    """The provider does not serve the requested model (HTTP 404)."""


@dataclass
class ProviderFailure:
    """One failed attempt recorded by the provider client."""

    provider: str
    model: str | None
    reason: str
    rate_limited: bool = False

    def __str__(self) -> str:
        return f"{self.provider}[{self.model or '-'}]: {self.reason}"


class ProviderExhaustedError(FormGenError):
    """Every configured provider failed for one completion call."""

    def __init__(self, failures: list[ProviderFailure], message: str | None = None):
        self.failures = list(failures)
        if message is None:
            if self.failures:
                message = "All AI providers failed:\n" + "\n".join(f"- {f}" for f in self.failures)
            else:
                message = "No AI providers are configured"
        super().__init__(message)

    @property
    def providers_tried(self) -> list[str]:
        seen: list[str] = []
        for failure in self.failures:
            if failure.provider not in seen:
                seen.append(failure.provider)
        return seen


class JsonParseError(FormGenError):
    """Model output could not be coerced into the expected JSON."""

    def __init__(self, context: str, message: str | None = None, preview: str = ""):
        self.context = context
        self.preview = preview
        super().__init__(message or f"Failed to parse JSON in {context}")


class PipelineStageError(FormGenError):
    """A required pipeline stage could not complete."""

    def __init__(self, stage: str, cause: Exception):
        self.stage = stage
        self.cause = cause
        super().__init__(f"Stage '{stage}' failed: {cause}")

    @property
    def failures(self) -> list[ProviderFailure]:
        if isinstance(self.cause, ProviderExhaustedError):
            return self.cause.failures
        return []


class StageSoftFailure(FormGenError):
    """An optional stage failed; the pipeline continues with the original fields."""

    def __init__(self, stage: str, cause: Exception):
        self.stage = stage
        self.cause = cause
        super().__init__(f"Optional stage '{stage}' failed: {type(cause).__name__}: {cause}")

"""
Provider client with multi-provider fallback and model rotation.

Every pipeline stage talks to AI backends through ProviderClient.complete,
so the only failure a stage ever sees is ProviderExhaustedError.
"""

import asyncio
import logging
import time
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any

from formgen.config import FormGenConfig, get_config
from formgen.errors import (
    ProviderError,
    ProviderExhaustedError,
    ProviderFailure,
    ProviderModelNotFoundError,
    ProviderRateLimitError,
)
from formgen.providers.base import (
    CompletionRequest,
    CompletionResponse,
    Message,
    ProviderAdapter,
    Purpose,
    ResponseFormat,
)

logger = logging.getLogger(__name__)

_models_used: ContextVar[list[str] | None] = ContextVar("formgen_models_used", default=None)


@contextmanager
def record_models_used() -> Iterator[list[str]]:
    """
    Collect "provider:model" refs of every successful completion in this context.

    Tasks spawned inside the block inherit the same list.
    """
    used: list[str] = []
    token = _models_used.set(used)
    try:
        yield used
    finally:
        _models_used.reset(token)


class ProviderClient:
    """Uniform chat-completion interface over an ordered list of providers."""

    def __init__(
        self,
        providers: Sequence[ProviderAdapter],
        timeout_seconds: float = 30.0,
        max_model_rotations: int = 4,
    ):
        self._providers = list(providers)
        self.timeout_seconds = timeout_seconds
        self.max_model_rotations = max(1, max_model_rotations)

    @classmethod
    def from_config(cls, config: FormGenConfig | None = None) -> "ProviderClient":
        """Build a client from configured credentials (done once at startup)."""
        from formgen.providers.openai_compatible import build_providers

        config = config or get_config()
        client = cls(
            build_providers(config),
            timeout_seconds=config.request_timeout_seconds,
            max_model_rotations=config.max_model_rotations,
        )
        if not client.available_providers():
            logger.warning(
                "No AI provider credentials found. Set GEMINI_API_KEY, GROQ_API_KEY or OPENAI_API_KEY."
            )
        return client

    @property
    def providers(self) -> list[ProviderAdapter]:
        return list(self._providers)

    def available_providers(self) -> list[str]:
        return [p.name for p in self._providers]

    def status(self) -> dict[str, Any]:
        """Snapshot of the client's configuration for health endpoints."""
        return {
            "available": bool(self._providers),
            "providers": self.available_providers(),
            "timeout_seconds": self.timeout_seconds,
            "max_model_rotations": self.max_model_rotations,
        }

    def ordered_providers(self, preferred: str | None = None, model: str | None = None) -> list[ProviderAdapter]:
        """
        Provider list in attempt order.

        The preferred provider (if available) goes first, then providers
        serving the explicit model, then the rest in configured order.
        """
        ordered = list(self._providers)
        if model:
            ordered.sort(key=lambda p: not p.serves(model))
        if preferred:
            ordered.sort(key=lambda p: p.name != preferred)
        return ordered

    async def complete(
        self,
        messages: Sequence[Message],
        *,
        purpose: Purpose = "form-generation",
        temperature: float | None = None,
        max_tokens: int | None = None,
        response_format: ResponseFormat = "json",
        model: str | None = None,
        preferred_provider: str | None = None,
        timeout: float | None = None,
    ) -> CompletionResponse:
        """
        Run one completion, falling back across providers and models.

        Args:
            messages: Chat messages, system messages first.
            purpose: Routing purpose; selects each provider's model chain.
            temperature: Sampling temperature (configured default if None).
            max_tokens: Completion token limit (configured default if None).
            response_format: "json" requests JSON mode where supported.
            model: Explicit model id, honoured by the provider that serves it.
            preferred_provider: Provider name to try first.
            timeout: Per-attempt deadline in seconds.

        Returns:
            The first successful CompletionResponse.

        Raises:
            ProviderExhaustedError: Every provider failed (or none is configured).
        """
        request = CompletionRequest(
            messages=list(messages),
            purpose=purpose,
            temperature=temperature,
            max_tokens=max_tokens,
            response_format=response_format,
            model=model,
            preferred_provider=preferred_provider,
            timeout=timeout,
        )
        return await self.execute(request)

    async def execute(self, request: CompletionRequest) -> CompletionResponse:
        """Run a prepared CompletionRequest. See complete()."""
        failures: list[ProviderFailure] = []
        deadline = request.timeout or self.timeout_seconds

        for provider in self.ordered_providers(request.preferred_provider, request.model):
            candidates = provider.models_for(request)[: self.max_model_rotations]

            for index, model in enumerate(candidates):
                start = time.perf_counter()
                try:
                    content = await asyncio.wait_for(provider.invoke(request, model), timeout=deadline)
                except (ProviderRateLimitError, ProviderModelNotFoundError) as e:
                    self._log_attempt(provider.name, model, request.purpose, "rotate", start, e.message)
                    failures.append(
                        ProviderFailure(
                            provider.name,
                            model,
                            e.message,
                            rate_limited=isinstance(e, ProviderRateLimitError),
                        )
                    )
                    if index + 1 < len(candidates):
                        logger.warning("%s: %s unavailable, rotating to next model", provider.name, model)
                    continue
                except asyncio.TimeoutError:
                    reason = f"timed out after {deadline:g}s"
                    self._log_attempt(provider.name, model, request.purpose, "timeout", start, reason)
                    failures.append(ProviderFailure(provider.name, model, reason))
                    break
                except ProviderError as e:
                    self._log_attempt(provider.name, model, request.purpose, "error", start, e.message)
                    failures.append(ProviderFailure(provider.name, model, e.message))
                    break

                latency_ms = self._log_attempt(provider.name, model, request.purpose, "ok", start)
                response = CompletionResponse(
                    content=content,
                    provider=provider.name,
                    model=model,
                    latency_ms=latency_ms,
                    used_fallback=bool(failures),
                    attempts=[str(f) for f in failures],
                )
                used = _models_used.get()
                if used is not None and response.model_ref not in used:
                    used.append(response.model_ref)
                return response

        error = ProviderExhaustedError(failures)
        logger.error("Completion failed for purpose=%s: %s", request.purpose, error)
        raise error

    @staticmethod
    def _log_attempt(
        provider: str,
        model: str,
        purpose: str,
        outcome: str,
        start: float,
        detail: str | None = None,
    ) -> int:
        latency_ms = int((time.perf_counter() - start) * 1000)
        level = logging.INFO if outcome == "ok" else logging.WARNING
        logger.log(
            level,
            "provider=%s model=%s purpose=%s outcome=%s latency_ms=%d%s",
            provider,
            model,
            purpose,
            outcome,
            latency_ms,
            f" detail={detail!r}" if detail else "",
        )
        return latency_ms


_client: ProviderClient | None = None


def get_provider_client() -> ProviderClient:
    """Get the process-wide provider client, building it from config on first use."""
    global _client
    if _client is None:
        _client = ProviderClient.from_config()
    return _client


def set_provider_client(client: ProviderClient | None) -> None:
    """Replace the process-wide provider client (None resets it)."""
    global _client
    _client = client

"""
Model routing by purpose.

Each provider declares a priority chain of models for every purpose plus a
general rotation list. The first model of a chain is the primary choice;
the remainder (followed by the rotation list) are only reached on rate
limits or unknown-model errors.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field


@dataclass(frozen=True)
class ModelProfile:
    """Static facts about one hosted model."""

    id: str
    name: str
    avg_latency_ms: int
    strengths: tuple[str, ...] = ()
    supports_json: bool = True


GROQ_MODELS: dict[str, ModelProfile] = {
    "llama-3.1-8b-instant": ModelProfile(
        "llama-3.1-8b-instant", "Llama 3.1 8B Instant", 500, ("fast", "classification")
    ),
    "llama-3.3-70b-versatile": ModelProfile(
        "llama-3.3-70b-versatile", "Llama 3.3 70B Versatile", 2500, ("high-quality", "json-generation")
    ),
    "qwen/qwen3-32b": ModelProfile("qwen/qwen3-32b", "Qwen3 32B", 1500, ("reasoning", "analysis")),
    "moonshotai/kimi-k2-instruct": ModelProfile(
        "moonshotai/kimi-k2-instruct", "Kimi K2 Instruct", 800, ("creative", "paraphrasing")
    ),
    "meta-llama/llama-4-scout-17b-16e-instruct": ModelProfile(
        "meta-llama/llama-4-scout-17b-16e-instruct", "Llama 4 Scout 17B", 1800, ("document-processing",)
    ),
    "meta-llama/llama-4-maverick-17b-128e-instruct": ModelProfile(
        "meta-llama/llama-4-maverick-17b-128e-instruct", "Llama 4 Maverick 17B", 1500, ("versatile",)
    ),
}

GEMINI_MODELS: dict[str, ModelProfile] = {
    "gemini-3-pro-preview": ModelProfile("gemini-3-pro-preview", "Gemini 3 Pro", 4000, ("reasoning",)),
    "gemini-3-flash-preview": ModelProfile("gemini-3-flash-preview", "Gemini 3 Flash", 1500, ("balanced",)),
    "gemini-2.5-pro": ModelProfile("gemini-2.5-pro", "Gemini 2.5 Pro", 3500, ("reasoning",)),
    "gemini-2.5-flash": ModelProfile("gemini-2.5-flash", "Gemini 2.5 Flash", 1200, ("balanced",)),
    "gemini-2.5-flash-lite": ModelProfile("gemini-2.5-flash-lite", "Gemini 2.5 Flash Lite", 700, ("fast",)),
    "gemini-2.0-flash": ModelProfile("gemini-2.0-flash", "Gemini 2.0 Flash", 900, ("fast",)),
    "gemini-2.0-flash-lite": ModelProfile("gemini-2.0-flash-lite", "Gemini 2.0 Flash Lite", 600, ("fast",)),
}

OPENAI_MODELS: dict[str, ModelProfile] = {
    "gpt-4.1": ModelProfile("gpt-4.1", "GPT-4.1", 3000, ("high-quality", "long-context")),
    "gpt-4o": ModelProfile("gpt-4o", "GPT-4o", 2500, ("high-quality",)),
    "gpt-4o-mini": ModelProfile("gpt-4o-mini", "GPT-4o mini", 900, ("fast",)),
}


@dataclass(frozen=True)
class ProviderRouting:
    """Per-provider model catalog, purpose chains and rotation order."""

    models: dict[str, ModelProfile]
    purpose_chains: dict[str, list[str]]
    rotation: list[str] = field(default_factory=list)

    def chain_for(self, purpose: str, explicit_model: str | None = None) -> list[str]:
        chain: list[str] = []
        if explicit_model and explicit_model in self.models:
            chain.append(explicit_model)
        chain.extend(self.purpose_chains.get(purpose, []))
        chain.extend(self.rotation)
        return _dedupe(chain)

    def serves(self, model: str) -> bool:
        return model in self.models


ROUTING: dict[str, ProviderRouting] = {
    "gemini": ProviderRouting(
        models=GEMINI_MODELS,
        purpose_chains={
            "content-analysis": ["gemini-2.5-flash-lite", "gemini-2.5-flash"],
            "form-generation": ["gemini-3-flash-preview", "gemini-2.5-flash", "gemini-2.5-pro"],
            "quiz-generation": ["gemini-3-pro-preview", "gemini-2.5-pro", "gemini-3-flash-preview"],
            "field-optimization": ["gemini-2.5-flash-lite", "gemini-2.0-flash"],
            "question-enhancement": ["gemini-2.5-flash", "gemini-2.0-flash"],
            "fast-classification": ["gemini-2.0-flash-lite", "gemini-2.5-flash-lite"],
        },
        rotation=[
            "gemini-3-flash-preview",
            "gemini-3-pro-preview",
            "gemini-2.5-flash",
            "gemini-2.5-flash-lite",
            "gemini-2.5-pro",
            "gemini-2.0-flash",
            "gemini-2.0-flash-lite",
        ],
    ),
    "groq": ProviderRouting(
        models=GROQ_MODELS,
        purpose_chains={
            "content-analysis": ["llama-3.1-8b-instant", "qwen/qwen3-32b", "llama-3.3-70b-versatile"],
            "form-generation": [
                "llama-3.3-70b-versatile",
                "qwen/qwen3-32b",
                "meta-llama/llama-4-maverick-17b-128e-instruct",
            ],
            "quiz-generation": ["meta-llama/llama-4-scout-17b-16e-instruct", "llama-3.3-70b-versatile"],
            "field-optimization": ["llama-3.1-8b-instant", "qwen/qwen3-32b"],
            "question-enhancement": ["moonshotai/kimi-k2-instruct", "llama-3.1-8b-instant"],
            "fast-classification": ["llama-3.1-8b-instant", "qwen/qwen3-32b"],
        },
        rotation=["llama-3.3-70b-versatile", "qwen/qwen3-32b", "llama-3.1-8b-instant"],
    ),
    "openai": ProviderRouting(
        models=OPENAI_MODELS,
        purpose_chains={
            "content-analysis": ["gpt-4o-mini"],
            "form-generation": ["gpt-4o", "gpt-4o-mini"],
            "quiz-generation": ["gpt-4.1", "gpt-4o"],
            "field-optimization": ["gpt-4o-mini"],
            "question-enhancement": ["gpt-4o-mini", "gpt-4o"],
            "fast-classification": ["gpt-4o-mini"],
        },
        rotation=["gpt-4o-mini", "gpt-4o"],
    ),
}


def get_routing(provider: str) -> ProviderRouting:
    """Get the routing table for a provider name."""
    try:
        return ROUTING[provider]
    except KeyError:
        raise ValueError(f"Unknown provider: {provider}. Known providers: {', '.join(ROUTING)}") from None


def primary_model(provider: str, purpose: str) -> ModelProfile:
    """The first-choice model of a provider for a purpose."""
    routing = get_routing(provider)
    return routing.models[routing.chain_for(purpose)[0]]


def estimate_pipeline_latency(
    stages: Sequence[tuple[str, bool]],
    provider: str = "groq",
) -> int:
    """
    Estimate wall-clock latency of a stage plan.

    Args:
        stages: (purpose, parallel) pairs in execution order. Consecutive
            parallel stages overlap and contribute only their maximum.
        provider: Provider whose primary models are used for the estimate.

    Returns:
        Estimated total latency in milliseconds.
    """
    total_ms = 0
    parallel_max = 0

    for purpose, parallel in stages:
        latency = primary_model(provider, purpose).avg_latency_ms
        if parallel:
            parallel_max = max(parallel_max, latency)
            continue
        total_ms += parallel_max
        parallel_max = 0
        total_ms += latency

    return total_ms + parallel_max


def _dedupe(items: Iterable[str]) -> list[str]:
    seen: list[str] = []
    for item in items:
        if item not in seen:
            seen.append(item)
    return seen

"""Shared fixtures: scripted in-memory providers, no network."""

import asyncio
import json
from collections.abc import Callable
from typing import Any

import pytest
from agents import set_tracing_disabled

from formgen.config import get_config
from formgen.errors import ProviderError
from formgen.providers.base import CompletionRequest, ProviderAdapter
from formgen.providers.client import ProviderClient, set_provider_client


class ScriptedProvider(ProviderAdapter):
    """
    Provider that answers from a per-purpose script.

    A script entry may be a string, a JSON-able object, an exception, a
    callable (request, model) -> any of those, or a list of entries consumed
    in order (the last one repeats).
    """

    def __init__(
        self,
        name: str = "scripted",
        responses: dict[str, Any] | None = None,
        models: tuple[str, ...] = ("model-a", "model-b"),
        delay: float = 0.0,
    ):
        self.name = name
        self.responses = dict(responses or {})
        self.models = list(models)
        self.delay = delay
        self.calls: list[tuple[str, str]] = []

    def models_for(self, request: CompletionRequest) -> list[str]:
        if request.model in self.models:
            return [request.model] + [m for m in self.models if m != request.model]
        return list(self.models)

    def serves(self, model: str) -> bool:
        return model in self.models

    @property
    def purposes_called(self) -> list[str]:
        return [purpose for purpose, _ in self.calls]

    async def invoke(self, request: CompletionRequest, model: str) -> str:
        self.calls.append((request.purpose, model))
        if self.delay:
            await asyncio.sleep(self.delay)

        script = self.responses.get(request.purpose)
        if script is None:
            raise ProviderError(self.name, model, f"no script for {request.purpose}")
        if isinstance(script, list):
            item = script.pop(0) if len(script) > 1 else script[0]
        else:
            item = script
        if callable(item) and not isinstance(item, BaseException):
            item = item(request, model)
        if isinstance(item, BaseException):
            raise item
        if not isinstance(item, str):
            item = json.dumps(item)
        return item


@pytest.fixture(autouse=True)
def _isolated_globals(monkeypatch):
    """No trace export and no shared provider client between tests."""
    set_tracing_disabled(True)
    monkeypatch.setattr(get_config(), "enable_tracing", False)
    set_provider_client(ProviderClient([]))
    yield
    set_provider_client(None)


@pytest.fixture
def make_provider() -> Callable[..., ScriptedProvider]:
    return ScriptedProvider


@pytest.fixture
def make_client() -> Callable[..., ProviderClient]:
    def factory(*providers: ProviderAdapter, timeout_seconds: float = 5.0, max_model_rotations: int = 4):
        return ProviderClient(providers, timeout_seconds=timeout_seconds, max_model_rotations=max_model_rotations)

    return factory

"""
OpenAI-compatible provider adapter.

Gemini, Groq and OpenAI all expose an OpenAI-compatible chat completions
endpoint, so one adapter covers every backend: each call runs a single-turn
Agent bound to an OpenAIChatCompletionsModel for the chosen model id.
"""

import logging

from agents import Agent, Runner, OpenAIChatCompletionsModel
from agents.exceptions import AgentsException
from openai import APIError, AsyncOpenAI, NotFoundError, RateLimitError

from formgen.config import FormGenConfig, get_config
from formgen.errors import ProviderError, ProviderModelNotFoundError, ProviderRateLimitError
from formgen.providers.base import CompletionRequest, ProviderAdapter
from formgen.providers.routing import ProviderRouting, get_routing

logger = logging.getLogger(__name__)

PROVIDER_ENDPOINTS: dict[str, str | None] = {
    "gemini": "https://generativelanguage.googleapis.com/v1beta/openai/",
    "groq": "https://api.groq.com/openai/v1",
    "openai": None,
}


class OpenAICompatibleProvider(ProviderAdapter):
    """Adapter for any backend that speaks the OpenAI chat completions API."""

    def __init__(
        self,
        name: str,
        api_key: str,
        base_url: str | None = None,
        routing: ProviderRouting | None = None,
        client: AsyncOpenAI | None = None,
        config: FormGenConfig | None = None,
    ):
        self.name = name
        self._routing = routing or get_routing(name)
        self._config = config
        # Retries are handled by model rotation and provider fallback
        self._client = client or AsyncOpenAI(api_key=api_key, base_url=base_url, max_retries=0)

    @property
    def config(self) -> FormGenConfig:
        return self._config or get_config()

    def models_for(self, request: CompletionRequest) -> list[str]:
        return self._routing.chain_for(request.purpose, request.model)

    def serves(self, model: str) -> bool:
        return self._routing.serves(model)

    def _build_agent(self, request: CompletionRequest, model: str) -> Agent:
        profile = self._routing.models.get(model)
        supports_json = profile.supports_json if profile else True
        return Agent(
            name=f"{self.name}:{request.purpose}",
            instructions=request.system_text or None,
            model=OpenAIChatCompletionsModel(model=model, openai_client=self._client),
            model_settings=self.config.get_model_settings(
                temperature=request.temperature,
                max_tokens=request.max_tokens,
                json_mode=request.json_mode and supports_json,
            ),
        )

    async def invoke(self, request: CompletionRequest, model: str) -> str:
        agent = self._build_agent(request, model)
        input_items = [{"role": m.role, "content": m.content} for m in request.conversation]

        try:
            result = await Runner.run(agent, input_items)
        except RateLimitError as e:
            raise ProviderRateLimitError(self.name, model, f"rate limited (429): {e}") from e
        except NotFoundError as e:
            raise ProviderModelNotFoundError(self.name, model, f"model not found (404): {e}") from e
        except APIError as e:
            raise ProviderError(self.name, model, f"{type(e).__name__}: {e}") from e
        except AgentsException as e:
            raise ProviderError(self.name, model, f"{type(e).__name__}: {e}") from e

        content = result.final_output
        if content is None:
            content = ""
        elif not isinstance(content, str):
            content = str(content)
        if not content.strip():
            raise ProviderError(self.name, model, "empty completion")

        logger.debug("%s[%s] returned %d chars", self.name, model, len(content))
        return content


def build_providers(config: FormGenConfig | None = None) -> list[ProviderAdapter]:
    """
    Build adapters for every provider that has a credential, in priority order.

    Unknown names in the configured order are logged and ignored; a missing
    credential simply removes the provider.
    """
    config = config or get_config()
    credentials = config.credentials()
    providers: list[ProviderAdapter] = []

    for name in config.provider_order:
        if name not in PROVIDER_ENDPOINTS:
            logger.warning("Ignoring unknown provider %r in provider order", name)
            continue
        api_key = credentials.get(name, "")
        if not api_key:
            logger.debug("Provider %s has no credential; skipping", name)
            continue
        providers.append(
            OpenAICompatibleProvider(
                name=name,
                api_key=api_key,
                base_url=PROVIDER_ENDPOINTS[name],
                config=config,
            )
        )

    return providers

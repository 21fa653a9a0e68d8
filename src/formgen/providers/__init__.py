"""AI provider layer: adapters, purpose routing and the fallback client."""

from formgen.providers.base import (
    PURPOSES,
    CompletionRequest,
    CompletionResponse,
    Message,
    ProviderAdapter,
    Purpose,
)
from formgen.providers.client import (
    ProviderClient,
    get_provider_client,
    record_models_used,
    set_provider_client,
)
from formgen.providers.openai_compatible import (
    PROVIDER_ENDPOINTS,
    OpenAICompatibleProvider,
    build_providers,
)
from formgen.providers.routing import (
    ModelProfile,
    ProviderRouting,
    estimate_pipeline_latency,
    get_routing,
)

__all__ = [
    "PURPOSES",
    "CompletionRequest",
    "CompletionResponse",
    "Message",
    "ProviderAdapter",
    "Purpose",
    "ProviderClient",
    "get_provider_client",
    "record_models_used",
    "set_provider_client",
    "PROVIDER_ENDPOINTS",
    "OpenAICompatibleProvider",
    "build_providers",
    "ModelProfile",
    "ProviderRouting",
    "estimate_pipeline_latency",
    "get_routing",
]

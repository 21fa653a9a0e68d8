"""
Configuration module for formgen.

Handles environment variables, provider credentials and default settings.
"""

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv
from agents import ModelSettings

# Load environment variables
load_dotenv()


@dataclass
class FormGenConfig:
    """Configuration settings for formgen."""

    # Provider credentials (a provider without a key is simply not used)
    gemini_api_key: str = ""
    groq_api_key: str = ""
    openai_api_key: str = ""
    provider_order: list[str] = field(default_factory=lambda: ["gemini", "groq", "openai"])

    # Provider call behaviour
    request_timeout_seconds: float = 30.0
    max_model_rotations: int = 4
    default_temperature: float = 0.3
    default_max_tokens: int = 3000

    # Pipeline settings
    reference_char_limit: int = 8000
    max_latency_ms: int | None = None  # unset: no latency-based skipping

    # MCP Server settings
    mcp_transport: str = "stdio"  # stdio or sse
    mcp_port: int = 8080

    # Tracing / logging
    enable_tracing: bool = True
    trace_name_prefix: str = "formgen"
    log_level: str = "INFO"

    def get_model_settings(
        self,
        temperature: float | None = None,
        max_tokens: int | None = None,
        json_mode: bool = False,
    ) -> ModelSettings:
        """Get ModelSettings for one completion call."""
        extra_body = {"response_format": {"type": "json_object"}} if json_mode else None
        return ModelSettings(
            temperature=self.default_temperature if temperature is None else temperature,
            max_tokens=max_tokens or self.default_max_tokens,
            extra_body=extra_body,
        )

    def credentials(self) -> dict[str, str]:
        """Map provider name to its API key."""
        return {
            "gemini": self.gemini_api_key,
            "groq": self.groq_api_key,
            "openai": self.openai_api_key,
        }

    @classmethod
    def from_env(cls) -> "FormGenConfig":
        """
        Create configuration from environment variables.

        If an environment variable is not set, uses the class field default value.
        """
        _defaults = cls()

        order_raw = os.getenv("FORMGEN_PROVIDER_ORDER", "")
        provider_order = [p.strip().lower() for p in order_raw.split(",") if p.strip()]
        latency_raw = os.getenv("FORMGEN_MAX_LATENCY_MS", "").strip()

        return cls(
            gemini_api_key=(
                os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_AI_API_KEY") or _defaults.gemini_api_key
            ).strip(),
            groq_api_key=os.getenv("GROQ_API_KEY", _defaults.groq_api_key).strip(),
            openai_api_key=os.getenv("OPENAI_API_KEY", _defaults.openai_api_key).strip(),
            provider_order=provider_order or _defaults.provider_order,
            request_timeout_seconds=float(
                os.getenv("FORMGEN_REQUEST_TIMEOUT", str(_defaults.request_timeout_seconds))
            ),
            max_model_rotations=int(os.getenv("FORMGEN_MAX_MODEL_ROTATIONS", str(_defaults.max_model_rotations))),
            default_temperature=float(os.getenv("FORMGEN_TEMPERATURE", str(_defaults.default_temperature))),
            default_max_tokens=int(os.getenv("FORMGEN_MAX_TOKENS", str(_defaults.default_max_tokens))),
            reference_char_limit=int(
                os.getenv("FORMGEN_REFERENCE_CHAR_LIMIT", str(_defaults.reference_char_limit))
            ),
            max_latency_ms=int(latency_raw) if latency_raw else _defaults.max_latency_ms,
            mcp_transport=os.getenv("MCP_TRANSPORT", _defaults.mcp_transport),
            mcp_port=int(os.getenv("MCP_PORT", str(_defaults.mcp_port))),
            enable_tracing=os.getenv("OPENAI_AGENTS_DISABLE_TRACING", "0" if _defaults.enable_tracing else "1") != "1",
            log_level=os.getenv("FORMGEN_LOG_LEVEL", _defaults.log_level).upper(),
        )


config = FormGenConfig.from_env()


def get_config() -> FormGenConfig:
    """Get the current configuration."""
    return config


def update_config(**kwargs) -> FormGenConfig:
    """Update configuration settings."""
    global config
    for key, value in kwargs.items():
        if hasattr(config, key):
            setattr(config, key, value)
    return config

"""
Provider abstraction.

Every AI backend is wrapped in a ProviderAdapter with one job: turn a
CompletionRequest into text using a given model, or raise a ProviderError.
Ordering, rotation, deadlines and aggregation live in ProviderClient.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Literal

Role = Literal["system", "user", "assistant"]
ResponseFormat = Literal["json", "text"]
Purpose = Literal[
    "content-analysis",
    "form-generation",
    "quiz-generation",
    "field-optimization",
    "question-enhancement",
    "fast-classification",
]

PURPOSES: tuple[str, ...] = (
    "content-analysis",
    "form-generation",
    "quiz-generation",
    "field-optimization",
    "question-enhancement",
    "fast-classification",
)


@dataclass(frozen=True)
class Message:
    """A single chat message in provider-neutral form."""

    role: Role
    content: str

    @classmethod
    def system(cls, content: str) -> "Message":
        return cls("system", content)

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls("user", content)


@dataclass
class CompletionRequest:
    """One completion call, shared by every provider attempt."""

    messages: list[Message]
    purpose: Purpose = "form-generation"
    temperature: float | None = None
    max_tokens: int | None = None
    response_format: ResponseFormat = "json"
    model: str | None = None
    preferred_provider: str | None = None
    timeout: float | None = None

    @property
    def json_mode(self) -> bool:
        return self.response_format == "json"

    @property
    def system_text(self) -> str:
        return "\n\n".join(m.content for m in self.messages if m.role == "system")

    @property
    def conversation(self) -> list[Message]:
        return [m for m in self.messages if m.role != "system"]


@dataclass
class CompletionResponse:
    """Successful completion plus where it came from."""

    content: str
    provider: str
    model: str
    latency_ms: int = 0
    used_fallback: bool = False
    attempts: list[str] = field(default_factory=list)

    @property
    def model_ref(self) -> str:
        return f"{self.provider}:{self.model}"


class ProviderAdapter(ABC):
    """Common interface for an AI completion backend."""

    name: str = "provider"

    @abstractmethod
    def models_for(self, request: CompletionRequest) -> list[str]:
        """
        Priority-ordered model ids to try on this provider.

        The first entry is the preferred model for the request's purpose; the
        rest are rotation candidates used when a model is rate limited or
        unknown to the backend.
        """

    @abstractmethod
    async def invoke(self, request: CompletionRequest, model: str) -> str:
        """
        Run the request against one model and return the raw text.

        Raises:
            ProviderRateLimitError: The model is rate limited.
            ProviderModelNotFoundError: The backend does not serve the model.
            ProviderError: Any other failure, including an empty completion.
        """

    def serves(self, model: str) -> bool:
        """Whether an explicitly requested model id belongs to this provider."""
        return False

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"

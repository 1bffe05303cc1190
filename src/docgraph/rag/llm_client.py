"""LiteLLM-backed LLM client and embedder.

All generation and embedding calls route through this module. LiteLLM's
built-in retry is used (``num_retries``, exponential backoff); the chat and
ingestion services never retry on their own. API key presence is validated
before the first call so a missing key fails fast with an actionable message.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Sequence

import litellm

from docgraph.errors import ConfigurationError, DimensionMismatchError
from docgraph.rag.types import Message

# Disable LiteLLM verbose logging unless explicitly enabled
litellm.suppress_debug_info = True
litellm.set_verbose = False  # type: ignore[assignment]


# ------------------------------------------------------------------
# Provider → env var mapping for API key validation
# ------------------------------------------------------------------

_PROVIDER_ENV: dict[str, str | None] = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "azure": "AZURE_API_KEY",
    "cohere": "COHERE_API_KEY",
    "google": "GOOGLE_API_KEY",
    "mistral": "MISTRAL_API_KEY",
    "groq": "GROQ_API_KEY",
    "together_ai": "TOGETHERAI_API_KEY",
    "ollama": None,  # Local, no key required
    "ollama_chat": None,
}


def provider_of(model: str) -> str:
    """Provider prefix of a LiteLLM model string; bare names are OpenAI models."""
    return model.split("/")[0].lower() if "/" in model else "openai"


def required_env_var(model: str) -> str | None:
    """Env var holding the API key for *model*, or None when no key is needed."""
    return _PROVIDER_ENV.get(provider_of(model))


def validate_api_key(model: str) -> None:
    """Check that the required API key env var is set for *model*.

    Args:
        model: LiteLLM model string in 'provider/model' format.

    Raises:
        ConfigurationError: If the required key is missing from environment.
    """
    provider = provider_of(model)
    env_var = required_env_var(model)

    if env_var is None:
        return  # No key required (e.g. ollama) or unknown provider

    if not os.getenv(env_var):
        raise ConfigurationError(
            f"API key not found for provider '{provider}'. "
            f"Set the {env_var} environment variable."
        )


def _as_dicts(messages: Sequence[Message]) -> list[dict[str, str]]:
    return [m.as_dict() for m in messages]


class LiteLLMClient:
    """``LLMClient`` + ``StreamingLLMClient`` over ``litellm.completion``.

    Args:
        model: LiteLLM model string (provider/model format).
        max_tokens: Maximum output tokens.
        temperature: Sampling temperature.
        num_retries: Retries on transient errors (exponential backoff).
        timeout: Deadline in seconds for each provider request.
    """

    def __init__(
        self,
        model: str,
        max_tokens: int = 1024,
        temperature: float = 0.2,
        num_retries: int = 3,
        timeout: float = 60.0,
    ) -> None:
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.num_retries = num_retries
        self.timeout = timeout

    def generate(self, messages: list[Message]) -> str:
        """Return the content of the first choice."""
        response = litellm.completion(
            model=self.model,
            messages=_as_dicts(messages),
            max_tokens=self.max_tokens,
            temperature=self.temperature,
            num_retries=self.num_retries,
            timeout=self.timeout,
        )
        return response.choices[0].message.content or ""

    def generate_stream(
        self, messages: list[Message], on_chunk: Callable[[str], None]
    ) -> None:
        """Forward each streamed delta to *on_chunk*, in order.

        An exception raised by *on_chunk* stops iteration and propagates.
        """
        stream = litellm.completion(
            model=self.model,
            messages=_as_dicts(messages),
            max_tokens=self.max_tokens,
            temperature=self.temperature,
            num_retries=self.num_retries,
            timeout=self.timeout,
            stream=True,
        )
        for part in stream:
            if not part.choices:
                continue
            delta = part.choices[0].delta.content
            if delta:
                on_chunk(delta)


class LiteLLMEmbedder:
    """``Embedder`` over ``litellm.embedding``; one batched request per call.

    Args:
        model: LiteLLM embedding model string (provider/model format).
        dimensions: Expected vector length; None disables the check.
        num_retries: Retries on transient errors.
        timeout: Deadline in seconds for each provider request.
    """

    def __init__(
        self,
        model: str,
        dimensions: int | None = None,
        num_retries: int = 3,
        timeout: float = 60.0,
    ) -> None:
        self.model = model
        self.dimensions = dimensions
        self.num_retries = num_retries
        self.timeout = timeout

    def embed(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []
        response = litellm.embedding(
            model=self.model,
            input=list(texts),
            num_retries=self.num_retries,
            timeout=self.timeout,
        )
        vectors = [list(item["embedding"]) for item in response.data]
        if self.dimensions is not None:
            for vector in vectors:
                if len(vector) != self.dimensions:
                    raise DimensionMismatchError(self.dimensions, len(vector))
        return vectors

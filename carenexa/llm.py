"""
Centralized LLM access — one place to configure the language-model fallback chain.

Every route that talks to the external model goes through ``ProviderChain``:
an ordered list of providers sharing the ``generate(prompt) -> GenerationResult``
interface. Each provider is tried exactly once, in order; an exception or an
empty answer moves on to the next one. This is a fallback chain, not
retry-with-backoff.

To change models or provider, update the factory functions at the bottom.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Protocol, Sequence

from langchain_core.messages import HumanMessage
from langchain_openai import ChatOpenAI

from carenexa.config import (
    API_KEY_ENV_NAMES,
    LLM_MAX_RETRIES,
    LLM_MODEL_CANDIDATES,
    LLM_REQUEST_TIMEOUT,
    LLM_TEMPERATURE,
    VISION_MODEL,
    get_api_key,
)
from carenexa.errors import (
    ConfigurationError,
    UpstreamUnavailable,
    format_provider_error,
    is_rate_limit_error,
)

logger = logging.getLogger(__name__)


@dataclass
class GenerationResult:
    """Outcome of one generate() call: text on success, error otherwise."""

    text: str = ""
    model: str = ""
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None and bool(self.text.strip())


class ModelProvider(Protocol):
    name: str

    def generate(
        self, prompt: str, attachments: Optional[Sequence[Dict[str, str]]] = None
    ) -> GenerationResult: ...


def get_llm(*, model: str, api_key: str, temperature: float = LLM_TEMPERATURE) -> ChatOpenAI:
    """Return a configured ChatOpenAI client for a single model id."""
    return ChatOpenAI(
        model=model,
        api_key=api_key,
        temperature=temperature,
        max_retries=LLM_MAX_RETRIES,
        timeout=LLM_REQUEST_TIMEOUT,
    )


class ChatModelProvider:
    """One chat model behind the provider interface.

    ``attachments`` are inline files as ``{"b64": ..., "mime": ...}`` dicts and
    are sent as image parts of the user message (vision models only).
    """

    def __init__(self, model: str, api_key: str, temperature: float = LLM_TEMPERATURE) -> None:
        self.name = model
        self._llm = get_llm(model=model, api_key=api_key, temperature=temperature)

    def generate(
        self, prompt: str, attachments: Optional[Sequence[Dict[str, str]]] = None
    ) -> GenerationResult:
        if attachments:
            content: List[Dict[str, object]] = [{"type": "text", "text": prompt}]
            for item in attachments:
                content.append(
                    {
                        "type": "image_url",
                        "image_url": {"url": f"data:{item['mime']};base64,{item['b64']}"},
                    }
                )
            messages = [HumanMessage(content=content)]
        else:
            messages = [HumanMessage(content=prompt)]

        try:
            response = self._llm.invoke(messages)
        except Exception as e:
            return GenerationResult(model=self.name, error=e)

        text = response.content if isinstance(response.content, str) else str(response.content)
        return GenerationResult(text=text, model=self.name)


class ProviderChain:
    """Ordered fallback over several providers."""

    def __init__(self, providers: Sequence[ModelProvider]) -> None:
        if not providers:
            raise ValueError("ProviderChain needs at least one provider")
        self.providers = list(providers)

    @property
    def names(self) -> List[str]:
        return [p.name for p in self.providers]

    def generate(
        self, prompt: str, attachments: Optional[Sequence[Dict[str, str]]] = None
    ) -> GenerationResult:
        """Return the first non-empty answer; raise UpstreamUnavailable when all fail."""
        last_error: Optional[BaseException] = None
        for provider in self.providers:
            result = provider.generate(prompt, attachments)
            if result.ok:
                logger.info(f"LLM answered | model={result.model} | {len(result.text)} chars")
                return result

            if result.error is not None:
                last_error = result.error
                if is_rate_limit_error(result.error):
                    logger.warning(f"Model {provider.name} rate-limited, trying next candidate")
                else:
                    logger.warning(
                        f"Model {provider.name} failed: {format_provider_error(result.error)}"
                    )
            else:
                logger.warning(f"Model {provider.name} returned empty output")

        logger.error(f"All candidate models failed or returned empty output: {self.names}")
        raise UpstreamUnavailable("AI model unavailable", last_error=last_error)


def _require_api_key() -> str:
    api_key = get_api_key()
    if not api_key:
        raise ConfigurationError("API key not configured", expected=API_KEY_ENV_NAMES)
    return api_key


def get_provider_chain() -> ProviderChain:
    """Chain over LLM_MODEL_CANDIDATES. Raises ConfigurationError without a credential."""
    api_key = _require_api_key()
    return ProviderChain([ChatModelProvider(m, api_key) for m in LLM_MODEL_CANDIDATES])


def get_vision_chain() -> ProviderChain:
    """Single-model chain for document/image extraction (deterministic temperature)."""
    api_key = _require_api_key()
    return ProviderChain([ChatModelProvider(VISION_MODEL, api_key, temperature=0.0)])

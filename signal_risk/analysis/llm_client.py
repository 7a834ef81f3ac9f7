"""Perplexity API access through the OpenAI-compatible SDK.

Perplexity speaks the OpenAI chat completions protocol, so the ``openai``
SDK is pointed at its base URL. Responses carry Perplexity-specific extras
(``search_results``, older ``citations`` URL lists) that are lifted into
``LLMResponse`` alongside the message content.

The SDK import is deferred to first use so the package imports cleanly
without an API key configured.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any

from signal_risk.analysis.circuit_breaker import CircuitBreaker
from signal_risk.analysis.config import AnalysisConfig

logger = logging.getLogger(__name__)

_THINK_RE = re.compile(r"<think>(.*?)</think>", re.DOTALL | re.IGNORECASE)


class LLMNotConfiguredError(RuntimeError):
    """Raised when a call is attempted without an API key."""


@dataclass
class LLMResponse:
    """Message content plus the search metadata Perplexity returns."""

    content: str
    search_results: list[dict[str, Any]] = field(default_factory=list)
    reasoning_steps: list[dict[str, Any]] = field(default_factory=list)
    model: str = ""


def _field(item: Any, name: str, default: Any = None) -> Any:
    """Read ``name`` from a dict or an SDK object."""
    if isinstance(item, dict):
        return item.get(name, default)
    return getattr(item, name, default)


def _as_dict(item: Any) -> dict[str, Any]:
    if isinstance(item, dict):
        return item
    if hasattr(item, "model_dump"):
        return item.model_dump()
    return {"url": str(item)}


def extract_search_results(response: Any) -> list[dict[str, Any]]:
    """Search results from a completion, falling back to bare citation URLs."""
    results = _field(response, "search_results") or []
    if results:
        return [_as_dict(r) for r in results]
    urls = _field(response, "citations") or []
    return [{"url": str(url), "title": ""} for url in urls]


def split_reasoning(content: str) -> tuple[str, list[dict[str, Any]]]:
    """Separate ``<think>`` blocks from the answer of reasoning models."""
    steps = [
        {"thought": block.strip(), "type": "reasoning"}
        for block in _THINK_RE.findall(content)
        if block.strip()
    ]
    return _THINK_RE.sub("", content).strip(), steps


class PerplexityClient:
    """Async chat client for Perplexity Sonar models.

    Features:
    - Lazy SDK initialization (import on first use)
    - One circuit breaker per call purpose (triage, analysis, ...) so a
      struggling deep-analysis model does not block cheap triage calls

    Args:
        config: Analysis configuration with API key, base URL and timeouts.
    """

    def __init__(self, config: AnalysisConfig | None = None) -> None:
        self._config = config or AnalysisConfig()
        self._client: Any = None
        self._breakers: dict[str, CircuitBreaker] = {}

    @property
    def configured(self) -> bool:
        return self._config.configured

    def _get_client(self) -> Any:
        """Lazy-initialize the OpenAI async client."""
        if self._client is None:
            if not self._config.configured:
                raise LLMNotConfiguredError("ANALYSIS_PERPLEXITY_API_KEY is not set")

            import openai

            self._client = openai.AsyncOpenAI(
                api_key=self._config.perplexity_api_key.get_secret_value(),
                base_url=self._config.base_url,
                timeout=self._config.llm_timeout,
            )
        return self._client

    def breaker(self, purpose: str) -> CircuitBreaker:
        """Circuit breaker for one call purpose."""
        if purpose not in self._breakers:
            self._breakers[purpose] = CircuitBreaker(
                purpose,
                failure_threshold=self._config.circuit_failure_threshold,
                recovery_timeout=self._config.circuit_recovery_timeout,
                ignore=(LLMNotConfiguredError,),
            )
        return self._breakers[purpose]

    async def complete(
        self,
        messages: list[dict[str, str]],
        *,
        model: str,
        purpose: str,
        temperature: float | None = None,
        max_tokens: int | None = None,
        extra_body: dict[str, Any] | None = None,
    ) -> LLMResponse:
        """Run one chat completion.

        Errors (SDK, transport, open circuit, missing key) propagate; each
        caller decides its own fallback.
        """

        async def _call() -> LLMResponse:
            client = self._get_client()
            kwargs: dict[str, Any] = {"model": model, "messages": messages}
            if temperature is not None:
                kwargs["temperature"] = temperature
            if max_tokens is not None:
                kwargs["max_tokens"] = max_tokens
            if extra_body:
                kwargs["extra_body"] = extra_body

            response = await client.chat.completions.create(**kwargs)
            raw = response.choices[0].message.content or ""
            content, thinking = split_reasoning(raw)
            reasoning = [_as_dict(s) for s in (_field(response, "reasoning_steps") or [])]
            return LLMResponse(
                content=content,
                search_results=extract_search_results(response),
                reasoning_steps=reasoning or thinking,
                model=model,
            )

        return await self.breaker(purpose).call(_call)

    async def close(self) -> None:
        """Release the underlying HTTP connection pool."""
        if self._client is not None:
            await self._client.close()
            self._client = None

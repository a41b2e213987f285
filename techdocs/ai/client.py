"""Async client for an OpenAI-compatible chat completions endpoint."""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol

import httpx

from techdocs.config import Settings
from techdocs.errors import GenerationError

logger = logging.getLogger(__name__)


class TextGenerator(Protocol):
    """The only thing the pipeline needs from a language model."""

    async def generate(self, system_prompt: str, user_prompt: str, max_output_tokens: int) -> str:
        ...


@dataclass
class GenerationResult:
    """Result from generation request."""
    text: str
    model: str
    usage: Dict[str, int]
    finish_reason: str


def uses_completion_tokens(model: str) -> bool:
    """Reasoning models take max_completion_tokens instead of max_tokens."""
    return model.startswith("o1")


class LLMClient:
    """
    Chat completions over httpx.

    Works against api.openai.com and Azure OpenAI deployments. When an API
    version is configured the key is also sent as an ``api-key`` header and
    the version as a query parameter.

    Usage:
        client = LLMClient.from_settings(settings)
        text = await client.generate(system_prompt, user_prompt, 4000)
        await client.close()
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.openai.com/v1",
        model: str = "o1-2024-12-17",
        api_version: Optional[str] = None,
        timeout: float = 120.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        if not api_key:
            raise ValueError("OPENAI_API_KEY environment variable is required.")
        self.api_key = api_key
        self.base_url = base_url
        self.model = model
        self.api_version = api_version
        self.timeout = timeout
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings, client: Optional[httpx.AsyncClient] = None) -> "LLMClient":
        return cls(
            api_key=settings.openai_api_key or "",
            base_url=settings.openai_base_url,
            model=settings.llm_model,
            api_version=settings.openai_api_version,
            timeout=settings.llm_timeout,
            client=client,
        )

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        if self.api_version:
            headers["api-key"] = self.api_key
        return headers

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout)
        return self._client

    async def close(self):
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    def _payload(self, system_prompt: str, user_prompt: str, max_output_tokens: int) -> Dict[str, Any]:
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": user_prompt})

        payload: Dict[str, Any] = {"model": self.model, "messages": messages}
        if uses_completion_tokens(self.model):
            payload["max_completion_tokens"] = max_output_tokens
        else:
            payload["max_tokens"] = max_output_tokens
        return payload

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        max_output_tokens: int = 4000,
    ) -> GenerationResult:
        """
        Run one chat completion.

        Raises:
            GenerationError: on a non-200 response or a malformed body
        """
        client = await self._get_client()
        params = {"api-version": self.api_version} if self.api_version else None

        try:
            response = await client.post(
                "/chat/completions",
                json=self._payload(system_prompt, user_prompt, max_output_tokens),
                headers=self._headers(),
                params=params,
            )
        except httpx.HTTPError as e:
            raise GenerationError(f"LLM request failed: {e}") from e

        if response.status_code != 200:
            error_text = response.text
            logger.error(f"LLM error ({response.status_code}): {error_text}")
            raise GenerationError(f"LLM error: {error_text}", status=response.status_code)

        data = response.json()
        try:
            choice = data["choices"][0]
            text = choice["message"]["content"] or ""
        except (KeyError, IndexError, TypeError) as e:
            raise GenerationError(f"Unexpected LLM response shape: {e}") from e

        return GenerationResult(
            text=text,
            model=data.get("model", self.model),
            usage=data.get("usage", {}),
            finish_reason=choice.get("finish_reason", "unknown"),
        )

    async def generate(self, system_prompt: str, user_prompt: str, max_output_tokens: int = 4000) -> str:
        result = await self.complete(system_prompt, user_prompt, max_output_tokens)
        logger.info(
            f"Generated {len(result.text)} chars with {result.model} "
            f"(finish_reason={result.finish_reason})"
        )
        return result.text

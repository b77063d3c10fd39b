# haven/gateway.py
"""Response gateway: the only place that talks to a text-completion provider.

Two providers are available. `RelayProvider` is what the device side uses; it
posts to the relay's `/api/chat` endpoint. `OpenAIProvider` is what the relay
itself uses to reach the model. Both translate every failure into
`ProviderError` so the gateway can fall back without the caller noticing.
"""
from __future__ import annotations
import logging
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence

import httpx

from haven import config
from haven.errors import InvalidRequest, ProviderError
from haven.models import Reply, Signal, Turn
from haven.prompts import (
    CHAT_FALLBACK,
    CRISIS_RESPONSE,
    build_summary_prompt,
    build_system_prompt,
    fallback_summary,
    with_crisis_resources,
)

logger = logging.getLogger(__name__)

SUMMARY_CONVERSATION_ID = "journal-summary"


def _preview(history: Sequence[Turn]) -> str:
    for t in reversed(history):
        if t.role == "user" and t.content:
            text = t.content.strip()
            return (text[:120] + "...") if len(text) > 120 else text
    return "<no preview>"


class CompletionProvider(Protocol):
    async def complete(self, history: Sequence[Turn], system_prompt: str) -> str: ...

    async def summarize(self, prompt: str) -> str: ...


class RelayProvider:
    """Posts to the relay server over HTTP; any non-2xx answer is a failure."""

    def __init__(self, base_url: str | None = None, timeout: float | None = None,
                 client: httpx.AsyncClient | None = None):
        self.base_url = (base_url or config.RELAY_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else config.RELAY_TIMEOUT_SECONDS
        self._client = client

    async def _post(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{self.base_url}/api/chat"
        try:
            if self._client is not None:
                resp = await self._client.post(url, json=payload, timeout=self.timeout)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    resp = await client.post(url, json=payload)
        except httpx.HTTPError as e:
            raise ProviderError(f"relay unreachable: {e}") from e
        if not resp.is_success:
            raise ProviderError(f"relay returned {resp.status_code}", status_code=resp.status_code)
        try:
            data = resp.json()
        except ValueError as e:
            raise ProviderError("relay returned a non-JSON body") from e
        if not isinstance(data, dict):
            raise ProviderError("relay returned an unexpected payload")
        return data

    async def complete(self, history: Sequence[Turn], system_prompt: str) -> str:
        data = await self._post({
            "messages": [{"role": t.role, "content": t.content} for t in history],
            "systemPrompt": system_prompt,
        })
        content = data.get("content")
        if not isinstance(content, str) or not content.strip():
            raise ProviderError("relay response is missing 'content'")
        return content

    async def summarize(self, prompt: str) -> str:
        data = await self._post({"message": prompt, "conversationId": SUMMARY_CONVERSATION_ID})
        message = data.get("message")
        if not isinstance(message, str) or not message.strip():
            raise ProviderError("relay response is missing 'message'")
        return message


class OpenAIProvider:
    """Chat completions through the OpenAI SDK, used by the relay."""

    def __init__(self, client: Any = None, model: str | None = None,
                 temperature: float | None = None, max_tokens: int | None = None):
        if client is None and config.OPENAI_API_KEY:
            from openai import AsyncOpenAI
            client = AsyncOpenAI(api_key=config.OPENAI_API_KEY)
        self.client = client
        self.model = model or config.OPENAI_MODEL
        self.temperature = config.LLM_TEMPERATURE if temperature is None else temperature
        self.max_tokens = max_tokens or config.LLM_MAX_TOKENS

    @property
    def configured(self) -> bool:
        return self.client is not None

    async def _create(self, messages: List[Dict[str, str]]) -> str:
        if self.client is None:
            raise ProviderError("OpenAI client is not configured", status_code=503)
        from openai import OpenAIError
        try:
            resp = await self.client.chat.completions.create(
                model=self.model,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
                messages=messages,
            )
        except OpenAIError as e:
            raise ProviderError(f"OpenAI call failed: {e}") from e
        try:
            content = (resp.choices[0].message.content or "").strip()
        except (AttributeError, IndexError) as e:
            raise ProviderError("OpenAI returned a malformed completion") from e
        if not content:
            raise ProviderError("OpenAI returned an empty completion")
        return content

    async def complete(self, history: Sequence[Turn], system_prompt: str) -> str:
        return await self._create([
            {"role": "system", "content": system_prompt},
            *({"role": t.role, "content": t.content} for t in history),
        ])

    async def summarize(self, prompt: str) -> str:
        return await self._create([{"role": "user", "content": prompt}])


class ResponseGateway:
    def __init__(self, provider: CompletionProvider, intercept_crisis: bool = True):
        self.provider = provider
        # The relay turns this off: it answers crisis turns through the model and appends resources.
        self.intercept_crisis = intercept_crisis

    async def reply(self, history: Sequence[Turn], signal: Signal,
                    system_prompt: Optional[str] = None) -> Reply:
        """Chat mode. Never raises for provider trouble; returns a flagged fallback instead."""
        if not history:
            raise InvalidRequest("messages must be a non-empty list")
        if signal.is_crisis and self.intercept_crisis:
            logger.info("Crisis signal detected; returning scripted safety response")
            return Reply(text=CRISIS_RESPONSE, is_crisis=True)

        prompt = system_prompt or build_system_prompt(signal.mood, signal.is_crisis)
        logger.info("Requesting completion for user preview=%s", _preview(history))
        try:
            text = await self.provider.complete(list(history), prompt)
        except ProviderError:
            logger.exception("Completion provider failed; using fallback reply")
            return Reply(text=CHAT_FALLBACK, is_crisis=signal.is_crisis, is_error=True)

        if signal.is_crisis:
            text = with_crisis_resources(text)
        return Reply(text=text, is_crisis=signal.is_crisis)

    async def summarize(self, responses: Mapping[str, Any], mood: str) -> str:
        """Summarization mode. Falls back to a templated line so a save always completes."""
        prompt = build_summary_prompt(responses or {}, mood)
        try:
            return (await self.provider.summarize(prompt)).strip()
        except ProviderError:
            logger.exception("Summary generation failed; using templated summary")
            return fallback_summary(responses or {}, mood)

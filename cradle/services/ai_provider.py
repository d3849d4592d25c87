"""Language-model gateway: prompt filling, per-kind limits and provider adapters (Gemini, Ollama)."""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Protocol, Optional, Dict, Any

import aiohttp
from google import genai
from google.genai import types

from ..core.settings import settings
from ..core.constants import (
    AI_DEFAULT_TEMPERATURE, AI_DEFAULT_MAX_TOKENS,
    AI_TREND_TIMEOUT_SECONDS, AI_YEARLY_TREND_TIMEOUT_SECONDS,
    AI_TREND_MAX_TOKENS, AI_YEARLY_TREND_MAX_TOKENS,
)
from .prompts import PromptKind, BABY_TRACKING_SYSTEM_PROMPT, fill_prompt_template, get_prompt_template

logger = logging.getLogger(__name__)


@dataclass
class CompletionResult:
    success: bool
    response: Optional[str] = None
    error: Optional[str] = None
    duration_ms: Optional[int] = None
    provider: Optional[str] = None


# Used by: AIProviderGateway (type hint protocol for GeminiProvider / OllamaProvider / DisabledProvider)
class CompletionProvider(Protocol):
    name: str

    async def complete(
        self,
        system_prompt: str,
        prompt: str,
        temperature: float,
        max_tokens: int,
        timeout_seconds: float,
    ) -> str:
        """Return the completion text; raise on any failure."""
        ...


class GeminiProvider:
    name = "gemini"

    def __init__(self, api_key: str, model: str):
        if not api_key:
            raise ValueError("GEMINI_API_KEY is not set")
        self.model = model
        self.client = genai.Client(api_key=api_key)
        logger.info(f"Gemini client initialized for insights ({model})")

    async def complete(self, system_prompt, prompt, temperature, max_tokens, timeout_seconds) -> str:
        loop = asyncio.get_event_loop()
        response = await asyncio.wait_for(
            loop.run_in_executor(
                None,
                lambda: self.client.models.generate_content(
                    model=self.model,
                    contents=prompt,
                    config=types.GenerateContentConfig(
                        temperature=temperature,
                        max_output_tokens=max_tokens,
                        system_instruction=system_prompt,
                    ),
                )
            ),
            timeout=timeout_seconds,
        )
        return response.text.strip() if response and response.text else ""


class OllamaProvider:
    name = "ollama"

    def __init__(self, base_url: str, model: str):
        self.base_url = base_url.rstrip("/")
        self.model = model

    async def complete(self, system_prompt, prompt, temperature, max_tokens, timeout_seconds) -> str:
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": prompt},
            ],
            "stream": False,
            "options": {"temperature": temperature, "num_predict": max_tokens},
        }
        timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.post(f"{self.base_url}/api/chat", json=payload) as response:
                if response.status != 200:
                    body = await response.text()
                    raise RuntimeError(f"Ollama returned status {response.status}: {body[:200]}")
                data = await response.json()
        return (data.get("message") or {}).get("content", "").strip()


class DisabledProvider:
    name = "none"

    async def complete(self, system_prompt, prompt, temperature, max_tokens, timeout_seconds) -> str:
        raise RuntimeError("AI provider disabled")


# Used by: get_ai_gateway()
def build_provider(name: Optional[str] = None) -> CompletionProvider:
    name = (name or settings.AI_PROVIDER).lower()
    if name == "gemini":
        try:
            return GeminiProvider(settings.GEMINI_API_KEY, settings.GEMINI_MODEL_INSIGHTS)
        except ValueError as e:
            logger.warning(f"Gemini unavailable, AI narratives disabled: {e}")
            return DisabledProvider()
    if name == "ollama":
        return OllamaProvider(settings.OLLAMA_BASE_URL, settings.OLLAMA_MODEL)
    if name != "none":
        logger.warning(f"Unknown AI_PROVIDER '{name}', AI narratives disabled")
    return DisabledProvider()


class AIProviderGateway:
    """generate(kind, context, caller_id) never raises; failures come back as CompletionResult(success=False)."""

    def __init__(self, provider: CompletionProvider, default_timeout_seconds: Optional[float] = None):
        self.provider = provider
        self.default_timeout_seconds = default_timeout_seconds or settings.AI_DEFAULT_TIMEOUT_SECONDS

    @property
    def provider_name(self) -> str:
        return self.provider.name

    def limits_for(self, kind: PromptKind):
        """(timeout_seconds, max_tokens): trend prompts get longer; yearly the longest."""
        kind = PromptKind(kind)
        if kind == PromptKind.YEARLY_TREND:
            return AI_YEARLY_TREND_TIMEOUT_SECONDS, AI_YEARLY_TREND_MAX_TOKENS
        if kind.is_trend:
            return AI_TREND_TIMEOUT_SECONDS, AI_TREND_MAX_TOKENS
        return self.default_timeout_seconds, AI_DEFAULT_MAX_TOKENS

    # Used by: narrative.py (NarrativeOrchestrator.narrate)
    async def generate(self, kind: PromptKind, context: Dict[str, Any], caller_id: str) -> CompletionResult:
        kind = PromptKind(kind)
        prompt = fill_prompt_template(get_prompt_template(kind), context)
        timeout_seconds, max_tokens = self.limits_for(kind)

        started = time.monotonic()
        try:
            text = await self.provider.complete(
                BABY_TRACKING_SYSTEM_PROMPT,
                prompt,
                AI_DEFAULT_TEMPERATURE,
                max_tokens,
                timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning(f"{self.provider_name} timed out after {timeout_seconds}s for {kind.value}")
            return CompletionResult(
                success=False,
                error=f"Request timed out after {timeout_seconds} seconds",
                provider=self.provider_name,
            )
        except Exception as e:
            logger.warning(f"{self.provider_name} failed for {kind.value} (caller {caller_id}): {e}")
            return CompletionResult(success=False, error=str(e) or type(e).__name__, provider=self.provider_name)

        duration_ms = int((time.monotonic() - started) * 1000)
        if not text:
            return CompletionResult(
                success=False,
                error="Empty response from AI provider",
                duration_ms=duration_ms,
                provider=self.provider_name,
            )

        logger.info(f"{self.provider_name} generated {kind.value} in {duration_ms}ms")
        return CompletionResult(success=True, response=text, duration_ms=duration_ms, provider=self.provider_name)


_gateway: Optional[AIProviderGateway] = None


def get_ai_gateway() -> AIProviderGateway:
    global _gateway
    if _gateway is None:
        _gateway = AIProviderGateway(build_provider())
    return _gateway

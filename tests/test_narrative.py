"""
Tests for the AI gateway, prompt filling and the narrative fallback policy.
"""
import asyncio

import pytest

from cradle.services.ai_provider import AIProviderGateway, CompletionResult, DisabledProvider
from cradle.services.narrative import NarrativeOrchestrator, Generated, Fallback
from cradle.services.prompts import PromptKind, fill_prompt_template, get_prompt_template

from conftest import CALLER_ID, FailingGateway, RaisingGateway, StaticGateway


class RecordingProvider:
    name = "recording"

    def __init__(self, reply="Looks good.", error=None):
        self.reply = reply
        self.error = error
        self.calls = []

    async def complete(self, system_prompt, prompt, temperature, max_tokens, timeout_seconds):
        self.calls.append({"prompt": prompt, "max_tokens": max_tokens, "timeout_seconds": timeout_seconds})
        if self.error is not None:
            raise self.error
        return self.reply


class FallbackCounter:

    def __init__(self, text="fallback text"):
        self.text = text
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return self.text


class TestPrompts:

    def test_placeholders_are_filled(self):
        filled = fill_prompt_template("Hi {{baby_name}}, {{baby_age_months}} months", {
            "baby_name": "Maya", "baby_age_months": 2,
        })

        assert filled == "Hi Maya, 2 months"

    def test_unknown_placeholders_are_kept(self):
        assert fill_prompt_template("{{missing}} data", {}) == "{{missing}} data"

    def test_every_kind_has_a_template(self):
        for kind in PromptKind:
            assert "{{" in get_prompt_template(kind)

    def test_trend_kind_per_period(self):
        assert PromptKind.for_period("monthly") == PromptKind.MONTHLY_TREND
        assert PromptKind.MONTHLY_TREND.is_trend
        assert not PromptKind.WEEKLY_SUMMARY.is_trend


class TestAIProviderGateway:

    @pytest.mark.asyncio
    async def test_success(self):
        provider = RecordingProvider()
        gateway = AIProviderGateway(provider, default_timeout_seconds=30)

        result = await gateway.generate(PromptKind.SLEEP_ANALYSIS, {"baby_age_months": 2}, CALLER_ID)

        assert result.success
        assert result.response == "Looks good."
        assert result.provider == "recording"
        assert "2 months" in provider.calls[0]["prompt"]
        assert provider.calls[0]["timeout_seconds"] == 30

    def test_trend_limits(self):
        gateway = AIProviderGateway(RecordingProvider(), default_timeout_seconds=30)

        assert gateway.limits_for(PromptKind.YEARLY_TREND) == (120, 2048)
        assert gateway.limits_for(PromptKind.WEEKLY_TREND) == (90, 1536)
        assert gateway.limits_for(PromptKind.ANOMALY_DETECTION) == (30, 1024)

    @pytest.mark.asyncio
    async def test_timeout_is_reported_not_raised(self):
        gateway = AIProviderGateway(RecordingProvider(error=asyncio.TimeoutError()), default_timeout_seconds=30)

        result = await gateway.generate(PromptKind.WEEKLY_TREND, {}, CALLER_ID)

        assert not result.success
        assert result.error == "Request timed out after 90 seconds"

    @pytest.mark.asyncio
    async def test_empty_response_is_a_failure(self):
        gateway = AIProviderGateway(RecordingProvider(reply=""), default_timeout_seconds=30)

        result = await gateway.generate(PromptKind.WEEKLY_SUMMARY, {}, CALLER_ID)

        assert not result.success
        assert result.error == "Empty response from AI provider"

    @pytest.mark.asyncio
    async def test_disabled_provider(self):
        gateway = AIProviderGateway(DisabledProvider(), default_timeout_seconds=30)

        result = await gateway.generate(PromptKind.WEEKLY_SUMMARY, {}, CALLER_ID)

        assert not result.success
        assert result.error == "AI provider disabled"
        assert gateway.provider_name == "none"


class TestNarrativeOrchestrator:
    """narrate() returns Generated or Fallback and never raises."""

    @pytest.mark.asyncio
    async def test_generated_text_skips_fallback(self):
        fallback = FallbackCounter()

        narrative = await NarrativeOrchestrator(StaticGateway("AI text")).narrate(
            PromptKind.WEEKLY_SUMMARY, {}, CALLER_ID, fallback,
        )

        assert isinstance(narrative, Generated)
        assert narrative.text == "AI text"
        assert narrative.generated
        assert narrative.error is None
        assert narrative.duration_ms == 42
        assert fallback.calls == 0

    @pytest.mark.asyncio
    async def test_failed_generation_uses_fallback(self):
        narrative = await NarrativeOrchestrator(FailingGateway()).narrate(
            PromptKind.ANOMALY_DETECTION, {}, CALLER_ID, FallbackCounter(),
        )

        assert isinstance(narrative, Fallback)
        assert narrative.text == "fallback text"
        assert not narrative.generated
        assert narrative.error == "AI provider disabled"
        assert narrative.duration_ms is None

    @pytest.mark.asyncio
    async def test_raising_gateway_uses_fallback(self):
        narrative = await NarrativeOrchestrator(RaisingGateway()).narrate(
            PromptKind.DAILY_TREND, {}, CALLER_ID, FallbackCounter(),
        )

        assert isinstance(narrative, Fallback)
        assert narrative.error == "provider unreachable"

    @pytest.mark.asyncio
    async def test_success_without_text_uses_fallback(self):
        class BlankGateway:
            async def generate(self, kind, context, caller_id):
                return CompletionResult(success=True, response="")

        narrative = await NarrativeOrchestrator(BlankGateway()).narrate(
            PromptKind.WEEKLY_SUMMARY, {}, CALLER_ID, FallbackCounter(),
        )

        assert isinstance(narrative, Fallback)
        assert narrative.text == "fallback text"

"""Narrative orchestration: ask the AI gateway, fall back to deterministic text on any failure."""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Union

from .ai_provider import AIProviderGateway
from .prompts import PromptKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Generated:
    text: str
    duration_ms: Optional[int] = None

    @property
    def generated(self) -> bool:
        return True

    @property
    def error(self) -> Optional[str]:
        return None


@dataclass(frozen=True)
class Fallback:
    text: str
    reason: str

    @property
    def generated(self) -> bool:
        return False

    @property
    def error(self) -> Optional[str]:
        return self.reason

    @property
    def duration_ms(self) -> Optional[int]:
        return None


Narrative = Union[Generated, Fallback]


class NarrativeOrchestrator:

    def __init__(self, gateway: AIProviderGateway):
        self.gateway = gateway

    # Used by: insights_service.py (weekly summary, sleep prediction, anomalies, trends)
    async def narrate(
        self,
        kind: PromptKind,
        context: Dict[str, Any],
        caller_id: str,
        fallback: Callable[[], str],
    ) -> Narrative:
        """Never raises for provider failures; fallback() is only built when needed."""
        try:
            result = await self.gateway.generate(kind, context, caller_id)
        except Exception as e:
            logger.error(f"AI gateway raised for {PromptKind(kind).value}: {e}")
            return Fallback(fallback(), str(e) or type(e).__name__)

        if result.success and result.response:
            return Generated(result.response, result.duration_ms)

        reason = result.error or "Unknown error generating AI narrative"
        logger.info(f"Using fallback narrative for {PromptKind(kind).value}: {reason}")
        return Fallback(fallback(), reason)

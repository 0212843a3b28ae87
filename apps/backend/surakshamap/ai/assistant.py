"""
AssistantService — the "AI Assistant" that suggests a category for free text.

There is no model behind it. The online path is a simulation of a flaky
remote service: it waits between latency_min and latency_max seconds and
fails with probability failure_rate. A failure is never shown to the user
as an error; the offline rule table answers instead and the response
carries a notice.

Runtime paths:
  - offline (connectivity monitor) or caller-forced fallback → OFFLINE_RULES
  - otherwise → simulated remote call → ONLINE_RULES, or OFFLINE_RULES on failure

Randomness and waiting are injected (rng, sleep) so tests can script
failures and skip the delay.
"""

import asyncio
import logging
import random
from typing import Awaitable, Callable, Optional

from surakshamap.ai.classifier import OFFLINE_RULES, ONLINE_RULES, RuleTable
from surakshamap.models.assistant import ClassificationResult, ClassifyResponse
from surakshamap.services.connectivity import ConnectivityMonitor

logger = logging.getLogger(__name__)

FALLBACK_NOTICE = "AI service unavailable. Using offline classification..."


class AssistantUnavailable(Exception):
    """Raised by the simulated remote call when it decides to fail."""


class EmptyTextError(ValueError):
    pass


class AssistantService:
    def __init__(
        self,
        monitor: ConnectivityMonitor,
        *,
        rng: Optional[random.Random] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        latency_min: float = 1.0,
        latency_max: float = 2.0,
        failure_rate: float = 0.3,
        online_rules: RuleTable = ONLINE_RULES,
        offline_rules: RuleTable = OFFLINE_RULES,
    ) -> None:
        self.monitor = monitor
        self.rng = rng or random.Random()
        self.sleep = sleep
        self.latency_min = latency_min
        self.latency_max = max(latency_min, latency_max)
        self.failure_rate = failure_rate
        self.online_rules = online_rules
        self.offline_rules = offline_rules

    async def _remote_classify(self, text: str) -> ClassificationResult:
        await self.sleep(self.rng.uniform(self.latency_min, self.latency_max))
        if self.rng.random() < self.failure_rate:
            raise AssistantUnavailable("AI service temporarily unavailable")
        return self.online_rules.classify(text)

    async def classify(self, text: str, force_offline: bool = False) -> ClassifyResponse:
        if not text or not text.strip():
            raise EmptyTextError("Please enter some text to classify")

        online = self.monitor.online
        if not online or force_offline:
            return ClassifyResponse(result=self.offline_rules.classify(text), online=online)

        try:
            result = await self._remote_classify(text)
        except AssistantUnavailable as exc:
            logger.warning("AI classification failed, using offline rules: %s", exc)
            return ClassifyResponse(
                result=self.offline_rules.classify(text),
                online=online,
                notice=FALLBACK_NOTICE,
            )
        return ClassifyResponse(result=result, online=online)

"""Operator insight collaborator client."""

import logging
from typing import Optional

import httpx

from ..metrics import record_service_failure
from ..state.models import LogEntry, LotStats

logger = logging.getLogger(__name__)

DEFAULT_FALLBACK = "Insight unavailable. Lot operating normally."


class InsightService:
    """
    Client for an external service that summarizes lot activity.

    The endpoint receives aggregate stats and recent log entries and answers
    with ``{"summary": "..."}``. Failures fall back to a static string.
    """

    def __init__(
        self,
        url: Optional[str],
        api_key: str = "",
        timeout: float = 10.0,
        fallback: str = DEFAULT_FALLBACK,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url
        self.api_key = api_key
        self.timeout = timeout
        self.transport = transport
        self.fallback = fallback

    async def summarize(self, stats: LotStats, recent: list[LogEntry]) -> str:
        """
        Get a short operator summary.

        Args:
            stats: Current aggregate lot statistics
            recent: Recent activity log entries

        Returns:
            Summary text, or the fallback string if the service fails
        """
        if not self.url:
            return self.fallback

        payload = {
            "stats": stats.model_dump(mode="json"),
            "log": [entry.model_dump(mode="json") for entry in recent],
        }
        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                resp = await client.post(self.url, json=payload, headers=headers)
                resp.raise_for_status()
                summary = resp.json().get("summary")
        except Exception as exc:
            logger.warning("Insight generation failed: %s", exc)
            record_service_failure("insight")
            return self.fallback

        if not isinstance(summary, str) or not summary.strip():
            logger.warning("Insight service returned an empty summary")
            record_service_failure("insight")
            return self.fallback

        return summary.strip()

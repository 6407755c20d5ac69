"""Text-to-speech collaborator client."""

import logging
from typing import Optional

import httpx

from ..metrics import record_service_failure

logger = logging.getLogger(__name__)


class SpeechService:
    """
    Best-effort client for an external text-to-speech endpoint.

    The endpoint receives ``{"text": ..., "distance": ...}`` and answers with
    playable audio bytes. Guidance text stays authoritative: any failure
    returns None and the caller carries on silently.
    """

    def __init__(
        self,
        url: Optional[str],
        api_key: str = "",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url
        self.api_key = api_key
        self.timeout = timeout
        self.transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self.url)

    async def synthesize(self, text: str, distance: Optional[float] = None) -> Optional[bytes]:
        """
        Request audio for an instruction.

        Args:
            text: Instruction text to speak
            distance: Remaining normalized distance to the target, if known

        Returns:
            Audio bytes, or None if the service is unavailable
        """
        if not self.enabled:
            return None

        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                resp = await client.post(
                    self.url,
                    json={"text": text, "distance": distance},
                    headers=headers,
                )
                resp.raise_for_status()
                audio = resp.content
        except Exception as exc:
            logger.warning("Speech synthesis failed: %s", exc)
            record_service_failure("speech")
            return None

        if not audio:
            logger.warning("Speech service returned no audio")
            record_service_failure("speech")
            return None

        return audio

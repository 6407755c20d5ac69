"""External collaborator clients."""

from .insight import InsightService
from .speech import SpeechService

__all__ = ["InsightService", "SpeechService"]

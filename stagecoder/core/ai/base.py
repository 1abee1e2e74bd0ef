"""
Base AI Provider Interface

Abstract base class for all agent providers.
The action loop only needs converse(turns) -> text; providers implement
complete() against their own SDK or HTTP API.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from stagecoder.core.conversation import Turn


class ProviderType(Enum):
    """Supported AI provider types."""
    ANTHROPIC = "anthropic"
    OPENAI = "openai"
    OLLAMA = "ollama"


class ProviderNotConfiguredError(RuntimeError):
    """
    Raised when a requested AI provider is not fully configured or
    available on the host.
    """


@dataclass
class AIProviderConfig:
    """Configuration for an AI provider."""
    provider_type: ProviderType
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    default_model: str = "claude-sonnet-4-20250514"
    temperature: float = 0.7
    max_tokens: int = 4000
    timeout: int = 120


@dataclass
class AIResponse:
    """Standardized AI response."""
    content: str
    model: str
    provider: ProviderType
    usage: Optional[Dict[str, int]] = None


class BaseAIProvider(ABC):
    """
    Abstract base class for all AI providers.

    All providers must implement this interface so the action loop can
    treat them as interchangeable black boxes.
    """

    def __init__(self, config: AIProviderConfig):
        """
        Initialize the AI provider.

        Args:
            config: Provider configuration
        """
        self.config = config
        self.provider_type = config.provider_type
        self._validate_config()

    def _validate_config(self) -> None:
        """Validate provider configuration."""
        if not self.config.api_key and self.provider_type != ProviderType.OLLAMA:
            raise ProviderNotConfiguredError(
                f"API key required for {self.provider_type.value}"
            )

    @abstractmethod
    async def complete(
        self,
        messages: List[Dict[str, Any]],
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> AIResponse:
        """
        Get a complete (non-streaming) response.

        Args:
            messages: Chat messages ({"role", "content"}), oldest first
            model: Model name (overrides default)
            temperature: Temperature setting (overrides default)
            max_tokens: Max tokens (overrides default)

        Returns:
            AIResponse with complete content
        """
        pass

    async def converse(self, turns: Iterable[Turn]) -> str:
        """Send the whole ordered history and return the reply text."""
        messages = [turn.to_message() for turn in turns]
        response = await self.complete(messages)
        return response.content

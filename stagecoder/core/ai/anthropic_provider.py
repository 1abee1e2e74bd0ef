"""
Anthropic Provider Implementation

Concrete implementation of BaseAIProvider for the Anthropic Messages API.
"""

import logging
from typing import Any, Dict, List, Optional

from anthropic import AsyncAnthropic

from stagecoder.core.ai.base import (
    AIProviderConfig,
    AIResponse,
    BaseAIProvider,
    ProviderType,
)

logger = logging.getLogger(__name__)


class AnthropicProvider(BaseAIProvider):
    """Anthropic API provider implementation."""

    def __init__(self, config: AIProviderConfig):
        """Initialize Anthropic provider."""
        super().__init__(config)
        self.client = AsyncAnthropic(api_key=config.api_key, timeout=config.timeout)
        logger.info(f"AnthropicProvider initialized with model: {config.default_model}")

    async def complete(
        self,
        messages: List[Dict[str, Any]],
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> AIResponse:
        """Get complete response from Claude."""
        model = model or self.config.default_model
        temperature = temperature if temperature is not None else self.config.temperature
        max_tokens = max_tokens or self.config.max_tokens

        response = await self.client.messages.create(
            model=model,
            max_tokens=max_tokens,
            temperature=temperature,
            messages=messages,
        )

        parts = [
            block.text
            for block in response.content
            if getattr(block, "type", None) == "text"
        ]
        usage = getattr(response, "usage", None)
        return AIResponse(
            content="".join(parts),
            model=model,
            provider=ProviderType.ANTHROPIC,
            usage={
                "input_tokens": usage.input_tokens,
                "output_tokens": usage.output_tokens,
            } if usage else None,
        )

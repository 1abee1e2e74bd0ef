"""
Ollama Provider Implementation

Talks to a local or remote Ollama daemon over HTTP /api/chat.
The blocking requests call runs in a worker thread.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

import requests

from stagecoder.core.ai.base import (
    AIProviderConfig,
    AIResponse,
    BaseAIProvider,
    ProviderType,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://127.0.0.1:11434"


class OllamaProvider(BaseAIProvider):
    """Ollama HTTP provider implementation."""

    def __init__(self, config: AIProviderConfig):
        super().__init__(config)
        self.base_url = (config.base_url or DEFAULT_BASE_URL).rstrip("/")
        logger.info(f"OllamaProvider initialized ({self.base_url}, model: {config.default_model})")

    async def complete(
        self,
        messages: List[Dict[str, Any]],
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> AIResponse:
        model = model or self.config.default_model
        temperature = temperature if temperature is not None else self.config.temperature
        max_tokens = max_tokens or self.config.max_tokens

        payload: Dict[str, Any] = {
            "model": model,
            "messages": messages,
            "stream": False,
            "options": {
                "temperature": temperature,
                # Ollama uses `num_predict` as an approximate max-tokens analogue.
                "num_predict": max_tokens,
            },
        }

        def _call() -> Dict[str, Any]:
            resp = requests.post(
                f"{self.base_url}/api/chat",
                json=payload,
                timeout=self.config.timeout,
            )
            resp.raise_for_status()
            return resp.json()

        try:
            data = await asyncio.to_thread(_call)
        except requests.RequestException as e:
            logger.error(f"Ollama completion failed: {e}")
            raise

        message = data.get("message") or {}
        content = message.get("content") or ""
        usage = None
        if "prompt_eval_count" in data or "eval_count" in data:
            usage = {
                "prompt_tokens": data.get("prompt_eval_count", 0),
                "completion_tokens": data.get("eval_count", 0),
            }
        return AIResponse(
            content=content if isinstance(content, str) else str(content),
            model=model,
            provider=ProviderType.OLLAMA,
            usage=usage,
        )

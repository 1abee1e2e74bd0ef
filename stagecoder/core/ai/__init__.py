"""
AI Provider Abstraction Layer

Provides a unified converse() interface over Anthropic, OpenAI and Ollama.
"""

from stagecoder.core.ai.base import (
    AIProviderConfig,
    AIResponse,
    BaseAIProvider,
    ProviderNotConfiguredError,
    ProviderType,
)
from stagecoder.core.ai.anthropic_provider import AnthropicProvider
from stagecoder.core.ai.openai_provider import OpenAIProvider
from stagecoder.core.ai.ollama_provider import OllamaProvider
from stagecoder.core.ai.factory import AIProviderFactory

__all__ = [
    "AIProviderConfig",
    "AIResponse",
    "BaseAIProvider",
    "ProviderNotConfiguredError",
    "ProviderType",
    "AnthropicProvider",
    "OpenAIProvider",
    "OllamaProvider",
    "AIProviderFactory",
]

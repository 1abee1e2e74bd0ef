"""
AI Provider Factory

Factory pattern for creating AI provider instances from configuration.
"""

import logging
import shutil
from typing import Any, Dict, Optional, Type

from stagecoder.core.ai.anthropic_provider import AnthropicProvider
from stagecoder.core.ai.base import (
    AIProviderConfig,
    BaseAIProvider,
    ProviderNotConfiguredError,
    ProviderType,
)
from stagecoder.core.ai.ollama_provider import OllamaProvider
from stagecoder.core.ai.openai_provider import OpenAIProvider

logger = logging.getLogger(__name__)


class AIProviderFactory:
    """
    Factory for creating AI provider instances.

    Supports:
    - Dynamic provider registration
    - Automatic provider detection
    - Configuration-based provider creation
    """

    _providers: Dict[ProviderType, Type[BaseAIProvider]] = {
        ProviderType.ANTHROPIC: AnthropicProvider,
        ProviderType.OPENAI: OpenAIProvider,
        ProviderType.OLLAMA: OllamaProvider,
    }

    @classmethod
    def register_provider(
        cls,
        provider_type: ProviderType,
        provider_class: Type[BaseAIProvider]
    ) -> None:
        """
        Register a provider class for a provider type.

        Args:
            provider_type: Provider type enum
            provider_class: Provider class implementing BaseAIProvider
        """
        cls._providers[provider_type] = provider_class
        logger.info(f"Registered provider: {provider_type.value}")

    @classmethod
    def create(
        cls,
        provider_type: ProviderType,
        config: AIProviderConfig
    ) -> BaseAIProvider:
        """
        Create a provider instance.

        Raises:
            ProviderNotConfiguredError: If provider type is not registered
        """
        provider_class = cls._providers.get(provider_type)
        if not provider_class:
            raise ProviderNotConfiguredError(f"Provider type {provider_type.value} not registered")

        return provider_class(config)

    @staticmethod
    def detect_provider(providers_config: Dict[str, Any]) -> Optional[str]:
        """Pick the first provider that has credentials or a reachable daemon."""
        if (providers_config.get("anthropic") or {}).get("api_key"):
            return "anthropic"
        if (providers_config.get("openai") or {}).get("api_key"):
            return "openai"
        if (providers_config.get("ollama") or {}).get("base_url") or shutil.which("ollama"):
            return "ollama"
        return None

    @classmethod
    def create_from_config(
        cls,
        providers_config: Dict[str, Any],
        active_provider: Optional[str] = None
    ) -> Optional[BaseAIProvider]:
        """
        Create provider from configuration dictionary.

        Args:
            providers_config: The "providers" section of the configuration
            active_provider: Preferred provider name

        Returns:
            Provider instance or None if no provider could be selected

        Raises:
            ProviderNotConfiguredError: If the named provider is unknown or
                lacks credentials
        """
        provider_name = (active_provider or cls.detect_provider(providers_config) or "").lower()
        if not provider_name:
            return None

        try:
            provider_type = ProviderType(provider_name)
        except ValueError:
            raise ProviderNotConfiguredError(f"Unknown provider: {provider_name}")

        section = providers_config.get(provider_name) or {}
        config = AIProviderConfig(
            provider_type=provider_type,
            api_key=section.get("api_key"),
            base_url=section.get("base_url"),
            default_model=section.get("model") or AIProviderConfig.default_model,
            temperature=section.get("temperature", 0.7),
            max_tokens=section.get("max_tokens", 4000),
            timeout=section.get("timeout", 120),
        )
        return cls.create(provider_type, config)

    @classmethod
    def get_available_providers(cls) -> list[str]:
        """Names of every registered provider type."""
        return [pt.value for pt in cls._providers.keys()]

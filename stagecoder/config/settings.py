"""
Settings

Default configuration, config-file location and environment overrides.
Precedence: defaults < config.json < environment.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from stagecoder.core.ai.factory import AIProviderFactory
from stagecoder.services.config_service import ConfigService

logger = logging.getLogger(__name__)

CONFIG_PATH = Path.home() / ".stagecoder" / "config.json"

DEFAULT_CONFIG: Dict[str, Any] = {
    "workspace_dir": "./workspace",
    "provider": None,
    "providers": {
        "anthropic": {
            "api_key": None,
            "model": "claude-sonnet-4-20250514",
            "max_tokens": 4000,
            "temperature": 0.7,
        },
        "openai": {
            "api_key": None,
            "model": "gpt-4o-mini",
            "max_tokens": 4096,
            "temperature": 0.7,
        },
        "ollama": {
            "base_url": None,
            "model": "llama3",
            "max_tokens": 4096,
            "temperature": 0.7,
        },
    },
    "loop": {
        "max_iterations": 15,
        "max_read_chars": 100_000,
    },
    "git": {
        "remote": "origin",
        "timeout": 120,
    },
    "deployment_url": None,
}

# env var -> dotted config key
ENV_OVERRIDES = {
    "WORKSPACE_DIR": "workspace_dir",
    "ANTHROPIC_API_KEY": "providers.anthropic.api_key",
    "OPENAI_API_KEY": "providers.openai.api_key",
    "OLLAMA_BASE_URL": "providers.ollama.base_url",
    "STAGECODER_PROVIDER": "provider",
    "NETLIFY_STAGING_URL": "deployment_url",
    "STAGING_DEPLOY_URL": "deployment_url",
}


def _config_path(path: Optional[Path], environ: Mapping[str, str]) -> Path:
    if path is not None:
        return Path(path)
    env_path = environ.get("STAGECODER_CONFIG")
    if env_path:
        return Path(env_path).expanduser()
    return CONFIG_PATH


def build_config_service(
    path: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> ConfigService:
    """
    Build a ConfigService with the file and environment layers applied.

    STAGING_DEPLOY_URL wins over the legacy NETLIFY_STAGING_URL because it is
    listed later in ENV_OVERRIDES.
    """
    env = os.environ if environ is None else environ
    service = ConfigService(config_path=_config_path(path, env), defaults=DEFAULT_CONFIG)
    service.load()

    for var, key in ENV_OVERRIDES.items():
        value = env.get(var)
        if value:
            service.set(key, value)

    model = env.get("STAGECODER_MODEL")
    if model:
        # follow the provider that will actually be built, detected or not
        provider = (
            service.get("provider")
            or AIProviderFactory.detect_provider(service.get("providers", {}))
            or "anthropic"
        ).lower()
        service.set(f"providers.{provider}.model", model)

    return service


def load_config(
    path: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Dict[str, Any]:
    """
    Load the effective configuration as a plain dictionary.

    A missing config file is not an error; defaults and environment
    variables are enough to run.
    """
    return build_config_service(path, environ).get_all()

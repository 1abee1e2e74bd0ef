from stagecoder.config.settings import DEFAULT_CONFIG, build_config_service, load_config

__all__ = ["DEFAULT_CONFIG", "build_config_service", "load_config"]

from .config import EngineConfig, engine_config_from_env, load_config_data, load_engine_config

__all__ = [
    "EngineConfig",
    "engine_config_from_env",
    "load_config_data",
    "load_engine_config",
]

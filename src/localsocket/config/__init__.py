"""Configuration: YAML + env overlay."""

from localsocket.config.loader import load_config, load_config_with_env
from localsocket.config.schema import Config, TrainSpec

__all__ = ["Config", "TrainSpec", "load_config", "load_config_with_env"]

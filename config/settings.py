# config/settings.py
from pathlib import Path
from typing import List

import yaml
from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

from utils.logger import get_logger

load_dotenv()

logger = get_logger().getChild("Settings")

DEFAULT_CONFIG_PATH = "config/config.yaml"


class Settings(BaseSettings):
    """Runtime configuration for a SANCF host.

    Values come from environment variables (prefix ``SANCF_``, e.g.
    ``SANCF_LOG_LEVEL``) and ``.env``, and can be overridden by a YAML file
    passed to :meth:`load`.
    """

    log_level: str = "INFO"
    worker_threads: int = 4
    plugin_dir: str = "plugins"
    extra_plugin_dirs: List[str] = []
    completion_items: List[str] = []
    color_marker: str = "&"
    native_color_char: str = "§"
    prompt: str = "> "

    model_config = SettingsConfigDict(env_file=".env", env_prefix="SANCF_", extra="ignore")

    @classmethod
    def load(cls, yaml_path: str = DEFAULT_CONFIG_PATH) -> "Settings":
        """Load settings, letting values in ``yaml_path`` override the environment."""
        data = {}
        yaml_file = Path(yaml_path)
        if yaml_file.exists():
            try:
                with open(yaml_file, encoding="utf-8") as f:
                    data = yaml.safe_load(f) or {}
            except Exception as e:
                logger.warning(f"Failed to read {yaml_path}: {e}")
                data = {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring {yaml_path}: top level is not a mapping")
            data = {}
        return cls(**data)

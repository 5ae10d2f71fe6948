"""Configuration management for the Todo CLI application."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml

from .parser import DEFAULT_SOON_DAYS

logger = logging.getLogger(__name__)


@dataclass
class ConfigModel:
    """Global configuration model for Todo CLI."""

    # Date preferences
    soon_days: int = DEFAULT_SOON_DAYS  # Horizon of "soon" due dates

    # Filter preferences
    use_regex: bool = False  # Match string filter values as regular expressions

    # File paths
    todo_file: str = "~/todo.txt"
    data_dir: str = "~/.todo"

    def __post_init__(self):
        """Post-initialization setup."""
        self.todo_file = os.path.expanduser(self.todo_file)
        self.data_dir = os.path.expanduser(self.data_dir)
        if not isinstance(self.soon_days, int) or not 0 < self.soon_days < 256:
            logger.warning(f"Invalid soon_days value {self.soon_days!r}, using {DEFAULT_SOON_DAYS}")
            self.soon_days = DEFAULT_SOON_DAYS

    def to_yaml(self) -> str:
        """Serialize config to YAML."""
        data = {
            "soon_days": self.soon_days,
            "use_regex": self.use_regex,
            "todo_file": self.todo_file,
            "data_dir": self.data_dir,
        }
        return yaml.safe_dump(data, default_flow_style=False)

    @classmethod
    def from_yaml(cls, yaml_str: str) -> "ConfigModel":
        """Deserialize config from YAML, ignoring unknown keys."""
        data = yaml.safe_load(yaml_str) or {}
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**known)

    def get_config_path(self) -> Path:
        """Get the config file path."""
        return Path(self.data_dir) / "config.yaml"


class Config:
    """Configuration manager for Todo CLI."""

    _instance: Optional[ConfigModel] = None

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> ConfigModel:
        """Load configuration from file, or use the defaults."""
        if cls._instance is not None:
            return cls._instance

        config = ConfigModel()
        if config_path is None:
            config_path = config.get_config_path()

        if config_path.exists():
            try:
                config = ConfigModel.from_yaml(config_path.read_text())
                logger.debug(f"Loaded configuration from {config_path}")
            except (OSError, yaml.YAMLError, TypeError, AttributeError) as e:
                logger.warning(f"Failed to load config from {config_path}: {e}. Using defaults.")

        cls._instance = config
        return config

    @classmethod
    def save(cls, config: ConfigModel, config_path: Optional[Path] = None) -> None:
        """Save configuration to file."""
        if config_path is None:
            config_path = config.get_config_path()
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text(config.to_yaml())
        logger.debug(f"Configuration saved to {config_path}")

    @classmethod
    def get(cls) -> ConfigModel:
        """Get the current configuration instance."""
        if cls._instance is None:
            cls._instance = cls.load()
        return cls._instance

    @classmethod
    def reload(cls, config_path: Optional[Path] = None) -> ConfigModel:
        """Reload configuration from file."""
        cls._instance = None
        return cls.load(config_path)


def get_config() -> ConfigModel:
    """Get the current configuration."""
    return Config.get()


def load_config(config_path: Optional[Path] = None) -> ConfigModel:
    """Load configuration from file."""
    return Config.reload(config_path)


def save_config(config: ConfigModel, config_path: Optional[Path] = None) -> None:
    """Save configuration to file."""
    Config.save(config, config_path)

"""
Interpreter configuration.

Settings come from a YAML file such as::

    prompt: "lox> "
    max_errors: 10
    show_source: true
    log_level: INFO
    log_file: treelox.log

Every key is optional; unknown keys are an error.
"""

from dataclasses import dataclass, fields, asdict
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigError(Exception):
    """Invalid or unreadable configuration."""
    pass


@dataclass
class InterpreterConfig:
    """Settings for the command line runner."""
    prompt: str = "> "
    max_errors: int = 20
    show_source: bool = True
    log_level: str = "WARNING"
    log_file: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InterpreterConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"unknown config key(s): {', '.join(unknown)}")
        config = cls(**data)
        config.validate()
        return config

    def validate(self) -> None:
        if not isinstance(self.prompt, str):
            raise ConfigError("prompt must be a string")
        if isinstance(self.max_errors, bool) or not isinstance(self.max_errors, int) \
                or self.max_errors < 1:
            raise ConfigError("max_errors must be a positive integer")
        if not isinstance(self.show_source, bool):
            raise ConfigError("show_source must be true or false")
        if str(self.log_level).upper() not in LOG_LEVELS:
            raise ConfigError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        self.log_level = str(self.log_level).upper()

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def load_config(path: Optional[Union[str, Path]] = None) -> InterpreterConfig:
    """
    Load configuration from a YAML file.

    Args:
        path: Config file, or None for the defaults

    Raises:
        ConfigError: If the file is missing, malformed or has bad values
    """
    if path is None:
        return InterpreterConfig()

    config_path = Path(path)
    if not config_path.exists():
        raise ConfigError(f"config file not found: {config_path}")

    try:
        with config_path.open("r", encoding="utf-8") as fp:
            data = yaml.safe_load(fp) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML in {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"{config_path}: expected a mapping at top level")
    return InterpreterConfig.from_dict(data)

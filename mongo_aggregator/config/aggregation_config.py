"""
Aggregation builder configuration.

Defaults can be overridden through environment variables (a ``.env`` file is
honoured via python-dotenv) or a YAML file with an optional ``aggregator``
section.
"""

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from loguru import logger

from ..errors import ConfigurationError

# Field name -> environment variable
ENV_VARS: dict[str, str] = {
    "default_page_size": "AGGREGATOR_DEFAULT_PAGE_SIZE",
    "default_count_field": "AGGREGATOR_COUNT_FIELD",
    "search_regex_options": "AGGREGATOR_SEARCH_OPTIONS",
    "log_level": "AGGREGATOR_LOG_LEVEL",
    "log_file": "AGGREGATOR_LOG_FILE",
}


@dataclass
class AggregatorConfig:
    """Defaults used by the pipeline builder and logging setup."""

    default_page_size: int = 10
    default_count_field: str = "totalCount"
    search_regex_options: str = "i"
    log_level: str = "INFO"
    log_format: str = "{time} | {level} | {name}:{function}:{line} - {message}"
    log_file: str | None = None
    log_rotation: str = "100 MB"
    log_retention: str = "7 days"

    @classmethod
    def from_env(cls) -> "AggregatorConfig":
        """Load configuration from environment variables."""
        load_dotenv()
        values = {
            name: os.environ[env_var]
            for name, env_var in ENV_VARS.items()
            if env_var in os.environ
        }
        return cls._from_mapping(values, source="environment")

    @classmethod
    def load_from_file(cls, config_path: str | Path) -> "AggregatorConfig":
        """
        Load configuration from a YAML file.

        Args:
            config_path: Path to the YAML file

        Returns:
            Loaded configuration

        Raises:
            ConfigurationError: If the file is missing or not a YAML mapping

        """
        config_path = Path(config_path)
        if not config_path.exists():
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        try:
            with open(config_path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(f"Expected a mapping in {config_path}")

        section = data.get("aggregator", data)
        if not isinstance(section, dict):
            raise ConfigurationError(f"'aggregator' must be a mapping in {config_path}")

        logger.debug(f"Loaded aggregator configuration from {config_path}")
        return cls._from_mapping(section, source=str(config_path))

    @classmethod
    def _from_mapping(cls, values: dict[str, Any], source: str) -> "AggregatorConfig":
        known = {f.name for f in fields(cls)}
        for key in values.keys() - known:
            logger.warning(f"Ignoring unknown aggregator setting '{key}' in {source}")

        kwargs: dict[str, Any] = {}
        for name in known & values.keys():
            raw = values[name]
            if name == "default_page_size":
                try:
                    kwargs[name] = int(raw)
                except (TypeError, ValueError) as e:
                    raise ConfigurationError(
                        f"Invalid default_page_size in {source}: {raw!r}"
                    ) from e
            elif raw is None:
                kwargs[name] = None
            else:
                kwargs[name] = str(raw)
        return cls(**kwargs)


_config: AggregatorConfig | None = None


def get_config() -> AggregatorConfig:
    """
    Get the process-wide configuration, loading it from the environment once.

    A malformed environment is logged and replaced by the defaults.
    """
    global _config
    if _config is None:
        try:
            _config = AggregatorConfig.from_env()
        except ConfigurationError as e:
            logger.warning(f"{e}, using default aggregator settings")
            _config = AggregatorConfig()
    return _config


def reset_config() -> None:
    """Forget the cached configuration."""
    global _config
    _config = None

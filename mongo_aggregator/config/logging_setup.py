"""Loguru sink configuration."""

import sys

from loguru import logger

from .aggregation_config import AggregatorConfig, get_config


def setup_logging(config: AggregatorConfig | None = None) -> None:
    """
    Configure loguru sinks from configuration.

    Replaces the default handler with a stderr sink and, when ``log_file`` is
    set, adds a rotating file sink.
    """
    config = config or get_config()

    # Remove default handler
    logger.remove()

    logger.add(sys.stderr, level=config.log_level, format=config.log_format)

    if config.log_file:
        logger.add(
            sink=config.log_file,
            level=config.log_level,
            format=config.log_format,
            rotation=config.log_rotation,
            retention=config.log_retention,
            enqueue=True,
        )

    logger.info(f"Logging configured at {config.log_level} level")

"""Configuration for the aggregation builder."""

from .aggregation_config import AggregatorConfig, get_config, reset_config
from .logging_setup import setup_logging

__all__ = [
    "AggregatorConfig",
    "get_config",
    "reset_config",
    "setup_logging",
]

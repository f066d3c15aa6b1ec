"""Fluent builder for MongoDB-style aggregation pipelines."""

from .config import AggregatorConfig, get_config, setup_logging
from .errors import AggregationError, ConfigurationError
from .pipeline import Aggregator, render_pipeline

__all__ = [
    "AggregationError",
    "Aggregator",
    "AggregatorConfig",
    "ConfigurationError",
    "get_config",
    "render_pipeline",
    "setup_logging",
]

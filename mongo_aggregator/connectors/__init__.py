"""
Execution target connectors.

This package contains the glue between rendered pipelines and collection handles.
"""

from .execution_target import AggregationTarget, describe_target, run_aggregate

__all__ = [
    "AggregationTarget",
    "describe_target",
    "run_aggregate",
]

"""
Aggregation pipeline package.

This package contains the stage definitions and the fluent builder.
"""

from .builder import Aggregator
from .stages import (
    AddFields,
    Count,
    Facet,
    Group,
    Limit,
    Lookup,
    Match,
    PipelineStage,
    Project,
    Skip,
    Sort,
    StageKind,
    Unwind,
    render_pipeline,
)

__all__ = [
    "AddFields",
    "Aggregator",
    "Count",
    "Facet",
    "Group",
    "Limit",
    "Lookup",
    "Match",
    "PipelineStage",
    "Project",
    "Skip",
    "Sort",
    "StageKind",
    "Unwind",
    "render_pipeline",
]

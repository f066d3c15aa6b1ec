"""
Aggregation stage definitions.

Each stage is a small immutable record naming one pipeline operation and its
parameters. Expressions (conditions, groupings, projections) are kept as
opaque JSON-like mappings; their vocabulary belongs to the execution engine.
Stages are rendered to their single-key wire form only when the pipeline is
submitted.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar

from beartype import beartype
from icontract import ensure


class StageKind(Enum):
    """Pipeline stages understood by the aggregation engine."""

    MATCH = "$match"
    GROUP = "$group"
    SORT = "$sort"
    PROJECT = "$project"
    LOOKUP = "$lookup"
    UNWIND = "$unwind"
    ADD_FIELDS = "$addFields"
    SKIP = "$skip"
    LIMIT = "$limit"
    FACET = "$facet"
    COUNT = "$count"


@dataclass(frozen=True)
class PipelineStage(ABC):
    """Abstract base class for a single aggregation stage."""

    kind: ClassVar[StageKind]

    @abstractmethod
    def _value(self) -> Any:
        """Get the stage parameters in wire form."""
        pass

    def render(self) -> dict[str, Any]:
        """Return the stage as a single-key mapping, e.g. ``{"$match": {...}}``."""
        return {self.kind.value: self._value()}


@dataclass(frozen=True)
class Match(PipelineStage):
    """Filter documents by a predicate."""

    kind: ClassVar[StageKind] = StageKind.MATCH
    condition: Mapping[str, Any]

    def _value(self) -> Any:
        return self.condition


@dataclass(frozen=True)
class Group(PipelineStage):
    """Group documents by ``_id`` and compute accumulators."""

    kind: ClassVar[StageKind] = StageKind.GROUP
    grouping: Mapping[str, Any]

    def _value(self) -> Any:
        return self.grouping


@dataclass(frozen=True)
class Sort(PipelineStage):
    kind: ClassVar[StageKind] = StageKind.SORT
    order: Mapping[str, Any]

    def _value(self) -> Any:
        return self.order


@dataclass(frozen=True)
class Project(PipelineStage):
    kind: ClassVar[StageKind] = StageKind.PROJECT
    fields: Mapping[str, Any]

    def _value(self) -> Any:
        return self.fields


@dataclass(frozen=True)
class Lookup(PipelineStage):
    """
    Left outer join against another collection.

    Attributes:
        from_: Foreign collection name
        local_field: Join field on the input documents
        foreign_field: Join field on the foreign documents
        as_: Output array field

    """

    kind: ClassVar[StageKind] = StageKind.LOOKUP
    from_: str
    local_field: str
    foreign_field: str
    as_: str

    def _value(self) -> Any:
        return {
            "from": self.from_,
            "localField": self.local_field,
            "foreignField": self.foreign_field,
            "as": self.as_,
        }


@dataclass(frozen=True)
class Unwind(PipelineStage):
    """Emit one document per element of an array field."""

    kind: ClassVar[StageKind] = StageKind.UNWIND
    path: str | Mapping[str, Any]

    def _value(self) -> Any:
        return self.path


@dataclass(frozen=True)
class AddFields(PipelineStage):
    kind: ClassVar[StageKind] = StageKind.ADD_FIELDS
    fields: Mapping[str, Any]

    def _value(self) -> Any:
        return self.fields


# NOTE: skip/limit values are not validated, the engine rejects bad offsets
@dataclass(frozen=True)
class Skip(PipelineStage):
    kind: ClassVar[StageKind] = StageKind.SKIP
    offset: Any

    def _value(self) -> Any:
        return self.offset


@dataclass(frozen=True)
class Limit(PipelineStage):
    kind: ClassVar[StageKind] = StageKind.LIMIT
    cap: Any

    def _value(self) -> Any:
        return self.cap


@dataclass(frozen=True)
class Facet(PipelineStage):
    """Run named sub-pipelines over the same input documents."""

    kind: ClassVar[StageKind] = StageKind.FACET
    facets: Mapping[str, Any]

    def _value(self) -> Any:
        return {
            name: list(stages) if _is_stage_list(stages) else stages
            for name, stages in self.facets.items()
        }


@dataclass(frozen=True)
class Count(PipelineStage):
    kind: ClassVar[StageKind] = StageKind.COUNT
    field_name: str

    def _value(self) -> Any:
        return self.field_name


def _is_stage_list(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes))


@beartype
@ensure(
    lambda stages, result: len(result) == len(stages),
    "Every stage must render to exactly one wire entry",
)
@ensure(
    lambda result: all(len(entry) == 1 for entry in result),
    "Rendered stages must be single-key mappings",
)
def render_pipeline(stages: Sequence[PipelineStage]) -> list[dict[str, Any]]:
    """
    Render stages to the list of mappings the engine's ``aggregate`` expects.

    Args:
        stages: Stages in execution order

    Returns:
        A new list of single-key stage mappings, in the same order

    Examples:
        >>> render_pipeline([Skip(5), Limit(10)])
        [{'$skip': 5}, {'$limit': 10}]

    """
    return [stage.render() for stage in stages]

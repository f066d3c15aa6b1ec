"""
Fluent aggregation pipeline builder.

Stages are appended in call order and submitted together to the bound
collection handle. The builder does no cross-stage validation; the engine
decides whether a pipeline is acceptable.
"""

from collections.abc import Mapping, Sequence
from typing import Any

from loguru import logger

from ..config import AggregatorConfig, get_config
from ..connectors import describe_target, run_aggregate
from ..errors import AggregationError
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
    Unwind,
    _is_stage_list,
    render_pipeline,
)


class Aggregator:
    """
    Chainable builder for aggregation pipelines.

    Attributes:
        target: Collection handle the pipeline is submitted to (borrowed)
        _stages: Accumulated stages, in append order
        _config: Defaults for pagination, counting and search

    Examples:
        >>> results = await (
        ...     Aggregator(db.users)
        ...     .match({"age": {"$gte": 30}})
        ...     .group({"_id": "$country", "count": {"$sum": 1}})
        ...     .sort({"count": -1})
        ...     .execute()
        ... )

    """

    __slots__ = ("target", "_stages", "_config")

    def __init__(self, target: Any, config: AggregatorConfig | None = None) -> None:
        """
        Bind a builder to an execution target.

        The target is not inspected here; an unusable target only fails when
        the pipeline is executed.

        Args:
            target: Collection handle exposing ``aggregate``
            config: Optional defaults, the process-wide config is used when
                omitted and only read once a stage needs a default

        """
        self.target = target
        self._stages: list[PipelineStage] = []
        self._config = config

    @property
    def _settings(self) -> AggregatorConfig:
        if self._config is None:
            self._config = get_config()
        return self._config

    def _append(self, stage: PipelineStage) -> "Aggregator":
        self._stages.append(stage)
        return self

    def match(self, condition: Mapping[str, Any]) -> "Aggregator":
        """Add a ``$match`` stage."""
        return self._append(Match(condition))

    def group(self, grouping: Mapping[str, Any]) -> "Aggregator":
        """Add a ``$group`` stage. ``grouping`` should carry the ``_id`` key."""
        return self._append(Group(grouping))

    def sort(self, order: Mapping[str, Any]) -> "Aggregator":
        """Add a ``$sort`` stage."""
        return self._append(Sort(order))

    def project(self, fields: Mapping[str, Any]) -> "Aggregator":
        """Add a ``$project`` stage."""
        return self._append(Project(fields))

    def lookup(
        self, from_: str, local_field: str, foreign_field: str, as_: str
    ) -> "Aggregator":
        """
        Add a ``$lookup`` stage.

        Args:
            from_: Foreign collection name (not checked for existence)
            local_field: Field on the input documents
            foreign_field: Field on the foreign documents
            as_: Output array field

        """
        return self._append(Lookup(from_, local_field, foreign_field, as_))

    def unwind(self, path: str | Mapping[str, Any]) -> "Aggregator":
        """Add an ``$unwind`` stage, e.g. ``unwind("$orders")``."""
        return self._append(Unwind(path))

    def add_fields(self, fields: Mapping[str, Any]) -> "Aggregator":
        """Add an ``$addFields`` stage."""
        return self._append(AddFields(fields))

    def paginate(self, skip: int = 0, limit: int | None = None) -> "Aggregator":
        """
        Add ``$skip`` followed by ``$limit``.

        Values are passed through as given, negative or not.

        Args:
            skip: Number of documents to skip
            limit: Page size, defaults to ``default_page_size`` (10)

        """
        if limit is None:
            limit = self._settings.default_page_size
        self._append(Skip(skip))
        return self._append(Limit(limit))

    def search(self, field: str, keyword: str, exact_match: bool = False) -> "Aggregator":
        """
        Add a ``$match`` stage searching one field.

        Args:
            field: Field to search
            keyword: Exact value, or a regular expression pattern
            exact_match: Match by equality instead of a case-insensitive pattern

        """
        if exact_match:
            return self.match({field: keyword})
        return self.match(
            {
                field: {
                    "$regex": keyword,
                    "$options": self._settings.search_regex_options,
                }
            }
        )

    def facet(
        self, stages: Mapping[str, "Sequence[Mapping[str, Any]] | Aggregator"]
    ) -> "Aggregator":
        """
        Add a ``$facet`` stage.

        Args:
            stages: Facet name -> sub-pipeline. A sub-pipeline is a list of
                rendered stages or another builder, whose current pipeline
                is taken at call time. Any other value is kept as given and
                left for the engine to reject.

        """
        facets = {name: _sub_pipeline(sub) for name, sub in stages.items()}
        return self._append(Facet(facets))

    def count(self, field_name: str | None = None) -> "Aggregator":
        """Add a ``$count`` stage writing to ``field_name`` ("totalCount" by default)."""
        if field_name is None:
            field_name = self._settings.default_count_field
        return self._append(Count(field_name))

    @property
    def pipeline(self) -> list[dict[str, Any]]:
        """Rendered pipeline. A new list is built on every access."""
        return render_pipeline(self._stages)

    @property
    def stages(self) -> tuple[PipelineStage, ...]:
        return tuple(self._stages)

    async def execute(self) -> list[Any]:
        """
        Submit the accumulated pipeline to the target.

        The pipeline is rendered before the first suspension point, so stages
        appended while the call is pending are not part of this submission.
        The builder stays usable afterwards, whether the call failed or not.

        Returns:
            Result documents exactly as returned by the target

        Raises:
            AggregationError: If the target fails for any reason

        """
        try:
            pipeline = self.pipeline
            target_name = describe_target(self.target)
            logger.debug(f"Submitting {len(pipeline)}-stage pipeline to {target_name}")
            results = await run_aggregate(self.target, pipeline)
        except Exception as e:
            error = AggregationError(str(e))
            logger.error(str(error))
            raise error from e

        logger.debug(f"Aggregation on {target_name} returned {len(results)} documents")
        return results

    def __len__(self) -> int:
        return len(self._stages)

    def __repr__(self) -> str:
        """Return string representation."""
        kinds = [stage.kind.value for stage in self._stages]
        return f"Aggregator(target='{describe_target(self.target)}', stages={kinds})"


def _sub_pipeline(sub: Any) -> Any:
    if isinstance(sub, Aggregator):
        return sub.pipeline
    if _is_stage_list(sub):
        return list(sub)
    return sub

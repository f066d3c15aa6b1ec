"""
Execution target adapter.

Bridges the rendered pipeline to whatever collection handle the caller binds
the builder to: Motor and PyMongo async collections, Mongoose-style models
whose ``aggregate`` returns an object with ``exec()``, or plain test doubles.
The adapter only drives the returned cursor to a list; documents are passed
back untouched.
"""

import inspect
from typing import Any, Protocol

from beartype import beartype
from loguru import logger


class AggregationTarget(Protocol):
    """Protocol for aggregation-capable collection handles."""

    def aggregate(self, pipeline: list[dict[str, Any]]) -> Any:
        """Evaluate the pipeline and return documents, a cursor, or an awaitable of either."""
        ...


def describe_target(target: Any) -> str:
    """
    Get a display name for a target, used in log lines and ``repr``.

    Examples:
        >>> describe_target(None)
        'NoneType'

    """
    for attr in ("full_name", "name"):
        value = getattr(target, attr, None)
        if isinstance(value, str) and value:
            return value
    return type(target).__name__


@beartype
async def run_aggregate(target: Any, pipeline: list[dict[str, Any]]) -> list[Any]:
    """
    Submit a rendered pipeline to the target and collect the result documents.

    Args:
        target: Collection handle exposing ``aggregate``
        pipeline: Rendered stage mappings, in execution order

    Returns:
        Result documents as returned by the target

    Raises:
        Exception: Whatever the target raises, unchanged

    """
    outcome = target.aggregate(pipeline)
    if inspect.isawaitable(outcome):
        outcome = await outcome
    return await _collect(outcome)


async def _collect(outcome: Any) -> list[Any]:
    documents = await _drain(outcome)
    if documents is not None:
        return documents

    # Mongoose-style aggregate object, resolved once
    exec_ = getattr(outcome, "exec", None)
    if callable(exec_):
        logger.debug("Resolving aggregate via exec()")
        resolved = exec_()
        if inspect.isawaitable(resolved):
            resolved = await resolved
        documents = await _drain(resolved)
        return documents if documents is not None else list(resolved)

    return list(outcome)


async def _drain(outcome: Any) -> list[Any] | None:
    if isinstance(outcome, list):
        return outcome

    # Motor / PyMongo async command cursors
    to_list = getattr(outcome, "to_list", None)
    if callable(to_list):
        documents = to_list(None)
        if inspect.isawaitable(documents):
            documents = await documents
        return documents if isinstance(documents, list) else list(documents)

    if hasattr(outcome, "__aiter__"):
        return [document async for document in outcome]

    return None

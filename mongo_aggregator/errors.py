"""Error definitions for the aggregation builder."""


class AggregationError(RuntimeError):
    """
    Raised when the execution target fails to evaluate a pipeline.

    Every failure reported by the target (connectivity, rejected stages,
    authorization, ...) is wrapped into this single error kind. Only the
    original message is kept.
    """

    def __init__(self, message: str) -> None:
        super().__init__(f"Aggregation Error: {message}")
        self.original_message = message


class ConfigurationError(ValueError):
    """Configuration is invalid or missing."""

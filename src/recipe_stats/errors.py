from __future__ import annotations

from typing import Optional


class RecipeStatsError(Exception):
    """Base class for all errors raised by recipe_stats."""


class SourceUnavailableError(RecipeStatsError):
    """Input file cannot be opened or read. Fatal for the run."""

    def __init__(self, path: object, reason: str) -> None:
        super().__init__(f"cannot read input {path}: {reason}")
        self.path = path
        self.reason = reason


class FramingError(RecipeStatsError):
    """Top-level JSON is malformed or not an array. Fatal for the run."""

    def __init__(self, message: str, position: Optional[int] = None) -> None:
        if position is not None:
            message = f"{message} (char {position})"
        super().__init__(message)
        self.position = position


class RecordParseError(RecipeStatsError):
    """A single record's delivery field does not match the time-window pattern.

    Recoverable: the aggregator reports it and continues unless strict mode
    is requested.
    """

    def __init__(self, message: str, *, index: Optional[int] = None, value: Optional[str] = None) -> None:
        super().__init__(message)
        self.index = index
        self.value = value


class EmptyInputError(RecipeStatsError):
    """No records were processed, so the busiest postcode is undefined."""

    def __init__(self, message: str = "no delivery records processed") -> None:
        super().__init__(message)

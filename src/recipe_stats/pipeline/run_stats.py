from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, List, Optional

from recipe_stats.errors import (
    EmptyInputError,
    FramingError,
    RecipeStatsError,
    RecordParseError,
    SourceUnavailableError,
)
from recipe_stats.model import FilterConfig, RecordIssue, Report
from recipe_stats.sources.records import DEFAULT_CHUNK_SIZE, read_delivery_records
from recipe_stats.stats.aggregator import RecipeStatsAggregator


@dataclass(frozen=True)
class StatsRunResult:
    input_path: Path
    status: str  # ok/warn/error
    message: str
    report: Optional[Report]
    issues: List[RecordIssue] = field(default_factory=list)
    records_read: int = 0
    error_type: Optional[str] = None
    error_message: Optional[str] = None
    run_at: Optional[datetime] = None


def run_stats(
    *,
    input_path: Path,
    config: FilterConfig,
    strict: bool = False,
    on_issue: Optional[Callable[[RecordIssue], None]] = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> StatsRunResult:
    """Read + aggregate + finalize one input file.

    Fatal errors (unreadable input, broken framing, no records, malformed
    delivery in strict mode) come back as status "error" with report=None.
    Recovered per-record issues downgrade the status to "warn".
    """

    run_at = datetime.now(timezone.utc)
    issues: List[RecordIssue] = []

    def _collect(issue: RecordIssue) -> None:
        issues.append(issue)
        if on_issue is not None:
            on_issue(issue)

    aggregator = RecipeStatsAggregator(config, strict=strict, on_issue=_collect)

    try:
        records = read_delivery_records(input_path, on_issue=_collect, chunk_size=chunk_size)
        report = aggregator.feed(records).finalize()
    except RecipeStatsError as exc:
        return StatsRunResult(
            input_path=input_path,
            status="error",
            message=_failure_message(exc),
            report=None,
            issues=issues,
            records_read=aggregator.total_records,
            error_type=type(exc).__name__,
            error_message=str(exc),
            run_at=run_at,
        )

    status = "warn" if issues else "ok"
    message = "ok" if not issues else f"{len(issues)} record issue(s) recovered"

    return StatsRunResult(
        input_path=input_path,
        status=status,
        message=message,
        report=report,
        issues=issues,
        records_read=report.total_records,
        run_at=run_at,
    )


def _failure_message(exc: RecipeStatsError) -> str:
    if isinstance(exc, SourceUnavailableError):
        return "input unavailable"
    if isinstance(exc, FramingError):
        return "input is not a JSON array"
    if isinstance(exc, EmptyInputError):
        return "no records"
    if isinstance(exc, RecordParseError):
        return "malformed delivery window"
    return "stats failed"

from __future__ import annotations

import json
from pathlib import Path
from typing import List, Optional

import typer

from recipe_stats.config import Settings, load_settings
from recipe_stats.logging_utils import (
    JsonlLogger,
    RunContext,
    default_log_path,
    new_run_context,
    record_issue_event,
    run_summary_event,
)
from recipe_stats.model import FilterConfig
from recipe_stats.pipeline import StatsRunResult, run_stats
from recipe_stats.report import render_json, write_report_artifacts
from recipe_stats.stats import parse_delivery_window

app = typer.Typer(add_completion=False, help="recipe_stats CLI (delivery record statistics)")


def _ensure_dirs(settings: Settings) -> None:
    settings.paths.logs_dir.mkdir(parents=True, exist_ok=True)
    settings.paths.reports_dir.mkdir(parents=True, exist_ok=True)


@app.callback()
def main(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        exists=True,
        dir_okay=False,
        file_okay=True,
        readable=True,
        help="Path to YAML config (optional)",
    ),
) -> None:
    """Load settings and store them in Typer context."""

    settings = load_settings(config)
    _ensure_dirs(settings)
    ctx.obj = {"settings": settings}


def _resolve_filter(
    settings: Settings,
    *,
    postcode: Optional[str],
    from_hour: Optional[int],
    to_hour: Optional[int],
    keywords: Optional[List[str]],
    no_keywords: bool = False,
) -> FilterConfig:
    base = settings.filter
    if no_keywords:
        effective_keywords: List[str] = []
    else:
        effective_keywords = keywords if keywords else base.keywords
    return FilterConfig.build(
        target_postcode=postcode if postcode is not None else base.postcode,
        from_hour=from_hour if from_hour is not None else base.from_hour,
        to_hour=to_hour if to_hour is not None else base.to_hour,
        keywords=effective_keywords,
    )


def _log_stats_run(logger: JsonlLogger, *, run_ctx: RunContext, result: StatsRunResult) -> None:
    for issue in result.issues:
        logger.log(record_issue_event(ctx=run_ctx, issue=issue))

    if result.report is None:
        logger.log(
            {
                "event": "stats_failed",
                "run_id": run_ctx.run_id,
                "input_path": str(result.input_path),
                "message": result.message,
                "records_read": result.records_read,
                "error_type": result.error_type,
                "error_message": result.error_message,
            }
        )
        return

    logger.log(
        {
            "event": "stats_computed",
            "run_id": run_ctx.run_id,
            "input_path": str(result.input_path),
            "status": result.status,
            "message": result.message,
            "total_records": result.report.total_records,
            "distinct_recipes": len(result.report.count_per_recipe),
            "busiest_postcode": result.report.busiest_postcode.postcode,
            "issues": len(result.issues),
        }
    )


@app.command()
def calculate(
    ctx: typer.Context,
    input_path: Optional[Path] = typer.Option(None, "--input", help="JSON array of delivery records"),
    postcode: Optional[str] = typer.Option(None, "--postcode", help="Postcode for the time-window count"),
    from_hour: Optional[int] = typer.Option(None, "--from-hour", help="Earliest accepted start hour (AM)"),
    to_hour: Optional[int] = typer.Option(None, "--to-hour", help="Latest accepted end hour (PM)"),
    keywords: Optional[List[str]] = typer.Option(
        None, "--keyword", "-k", help="Recipe name substring (repeatable, case-insensitive)"
    ),
    no_keywords: bool = typer.Option(
        False, "--no-keywords", help="Ignore configured keywords (match_by_name stays empty)"
    ),
    with_total: Optional[bool] = typer.Option(
        None, "--with-total/--no-total", help="Include total_json_objects in the output"
    ),
    strict: Optional[bool] = typer.Option(
        None, "--strict/--lenient", help="Abort on malformed delivery strings"
    ),
    output: Optional[Path] = typer.Option(None, "--output", help="Write JSON here instead of stdout"),
    artifacts: bool = typer.Option(False, "--artifacts", help="Also write JSON/Markdown/CSV to the reports dir"),
) -> None:
    """Compute recipe statistics for one input file."""

    settings: Settings = ctx.obj["settings"]
    run_ctx = new_run_context()
    logger = JsonlLogger(default_log_path(settings.paths.logs_dir, now_utc=run_ctx.started_at_utc))

    effective_input = input_path if input_path is not None else settings.input_path
    if effective_input is None:
        typer.echo("error: no input file (use --input or RECIPE_STATS_INPUT)", err=True)
        raise typer.Exit(code=2)
    if no_keywords and keywords:
        typer.echo("error: --no-keywords cannot be combined with --keyword", err=True)
        raise typer.Exit(code=2)

    filter_config = _resolve_filter(
        settings,
        postcode=postcode,
        from_hour=from_hour,
        to_hour=to_hour,
        keywords=keywords,
        no_keywords=no_keywords,
    )
    include_total = settings.include_total if with_total is None else with_total
    strict_mode = settings.strict if strict is None else strict

    logger.log(
        {
            "event": "command_start",
            "command": "calculate",
            "run_id": run_ctx.run_id,
            "input_path": str(effective_input),
            "postcode": filter_config.target_postcode,
            "from_hour": filter_config.from_hour,
            "to_hour": filter_config.to_hour,
            "keywords": list(filter_config.keywords),
            "strict": strict_mode,
        }
    )

    result = run_stats(input_path=effective_input, config=filter_config, strict=strict_mode)
    _log_stats_run(logger, run_ctx=run_ctx, result=result)

    if result.report is None:
        logger.log(run_summary_event(ctx=run_ctx, status_counts={"ok": 0, "warn": 0, "error": 1}))
        typer.echo(f"error: {result.error_message}", err=True)
        raise typer.Exit(code=1)

    rendered = render_json(result.report, include_total=include_total)
    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(rendered + "\n", encoding="utf-8")
    else:
        typer.echo(rendered)

    if artifacts:
        paths = write_report_artifacts(
            report=result.report,
            reports_dir=settings.paths.reports_dir,
            run_ctx=run_ctx,
            include_total=include_total,
        )
        logger.log(
            {
                "event": "report_written",
                "run_id": run_ctx.run_id,
                "paths": {k: str(v) for k, v in paths.items()},
            }
        )

    status_counts = {"ok": 0, "warn": 0, "error": 0}
    status_counts[result.status] = 1
    logger.log(run_summary_event(ctx=run_ctx, status_counts=status_counts))


@app.command("check-window")
def check_window(
    delivery: str = typer.Argument(..., help='Delivery string, e.g. "Monday 9AM - 5PM"'),
) -> None:
    """Parse one delivery string and print its hours."""

    parsed = parse_delivery_window(delivery)
    if parsed.window is None:
        typer.echo(f"error: {parsed.error}", err=True)
        raise typer.Exit(code=2)

    typer.echo(
        json.dumps(
            {
                "weekday": parsed.window.weekday,
                "from": parsed.window.from_hour,
                "to": parsed.window.to_hour,
            }
        )
    )


if __name__ == "__main__":
    app()

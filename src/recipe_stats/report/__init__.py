"""Report sinks (JSON, Markdown, CSV)."""

from recipe_stats.report.render import (
    count_per_recipe_frame,
    render_json,
    render_markdown,
    report_to_payload,
    write_report_artifacts,
)

__all__ = [
    "count_per_recipe_frame",
    "render_json",
    "render_markdown",
    "report_to_payload",
    "write_report_artifacts",
]

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List

import pandas as pd

from recipe_stats.logging_utils import RunContext
from recipe_stats.model import Report


def report_to_payload(report: Report, *, include_total: bool = False) -> Dict[str, Any]:
    """Map a Report onto the JSON field names existing consumers expect."""

    payload: Dict[str, Any] = {
        "unique_recipe_count": report.unique_recipe_count,
        "count_per_recipe": [{"recipe": rc.recipe, "count": rc.count} for rc in report.count_per_recipe],
        "busiest_postcode": {
            "postcode": report.busiest_postcode.postcode,
            "delivery_count": report.busiest_postcode.delivery_count,
        },
        "count_per_postcode_and_time": {
            "postcode": report.count_per_postcode_and_time.postcode,
            "from": report.count_per_postcode_and_time.from_label,
            "to": report.count_per_postcode_and_time.to_label,
            "delivery_count": report.count_per_postcode_and_time.delivery_count,
        },
        "match_by_name": list(report.match_by_name),
    }

    if include_total:
        payload["total_json_objects"] = report.total_records

    return payload


def render_json(report: Report, *, include_total: bool = False, indent: int = 2) -> str:
    return json.dumps(report_to_payload(report, include_total=include_total), indent=indent, ensure_ascii=False)


def count_per_recipe_frame(report: Report) -> pd.DataFrame:
    return pd.DataFrame(
        [{"recipe": rc.recipe, "count": rc.count} for rc in report.count_per_recipe],
        columns=["recipe", "count"],
    )


def render_markdown(report: Report) -> str:
    window = report.count_per_postcode_and_time

    lines: List[str] = []
    lines.append("# Recipe Stats Report")
    lines.append("")
    lines.append(f"- Records: {report.total_records}")
    lines.append(f"- Recipes occurring exactly once: {report.unique_recipe_count}")
    lines.append(
        f"- Busiest postcode: {report.busiest_postcode.postcode} "
        f"({report.busiest_postcode.delivery_count} deliveries)"
    )
    lines.append(
        f"- Deliveries to {window.postcode} between {window.from_label} and {window.to_label}: "
        f"{window.delivery_count}"
    )
    lines.append("")

    lines.append("## Count per recipe")
    lines.append("")
    lines.append("Recipe | Count")
    lines.append("--- | ---")
    for rc in report.count_per_recipe:
        lines.append(f"{rc.recipe} | {rc.count}")
    lines.append("")

    lines.append("## Matched recipe names")
    lines.append("")
    if report.match_by_name:
        lines.extend(f"- {name}" for name in report.match_by_name)
    else:
        lines.append("_none_")

    return "\n".join(lines) + "\n"


def write_report_artifacts(
    *,
    report: Report,
    reports_dir: Path,
    run_ctx: RunContext,
    include_total: bool = False,
) -> Dict[str, Path]:
    ts_tag = run_ctx.started_at_utc.strftime("%Y%m%d")

    reports_dir.mkdir(parents=True, exist_ok=True)

    json_path = reports_dir / f"stats-{ts_tag}.json"
    md_path = reports_dir / f"stats-{ts_tag}.md"
    csv_path = reports_dir / f"count_per_recipe-{ts_tag}.csv"

    json_path.write_text(render_json(report, include_total=include_total) + "\n", encoding="utf-8")
    md_path.write_text(render_markdown(report), encoding="utf-8")
    count_per_recipe_frame(report).to_csv(csv_path, index=False)

    return {"json": json_path, "markdown": md_path, "csv": csv_path}

"""Pipeline orchestration (read → aggregate → finalize)."""

from recipe_stats.pipeline.run_stats import StatsRunResult, run_stats

__all__ = ["StatsRunResult", "run_stats"]

"""Single-pass aggregation of delivery records."""

from recipe_stats.stats.aggregator import RecipeStatsAggregator, aggregate, build_report
from recipe_stats.stats.delivery_window import DeliveryWindow, WindowParseResult, parse_delivery_window

__all__ = [
    "DeliveryWindow",
    "RecipeStatsAggregator",
    "WindowParseResult",
    "aggregate",
    "build_report",
    "parse_delivery_window",
]

from __future__ import annotations

from typing import Callable, Iterable, List, Optional

from recipe_stats.errors import EmptyInputError, RecordParseError
from recipe_stats.model import (
    Accumulators,
    BusiestPostcode,
    DeliveryRecord,
    FilterConfig,
    PostcodeTimeCount,
    RecipeCount,
    RecordIssue,
    Report,
)
from recipe_stats.stats.delivery_window import parse_delivery_window

IssueCallback = Callable[[RecordIssue], None]


class RecipeStatsAggregator:
    """Single-pass accumulator over delivery records.

    One instance per run. The filter config is immutable; the accumulators
    are only exposed through the finalized Report.
    """

    def __init__(
        self,
        config: FilterConfig,
        *,
        strict: bool = False,
        on_issue: Optional[IssueCallback] = None,
    ) -> None:
        self.config = config
        self.strict = strict
        self.on_issue = on_issue
        self._acc = Accumulators()
        self._keywords = config.lowered_keywords
        self._finalized = False

    @property
    def issues(self) -> List[RecordIssue]:
        return list(self._acc.issues)

    @property
    def total_records(self) -> int:
        return self._acc.total_records

    def report_issue(self, issue: RecordIssue) -> None:
        self._acc.issues.append(issue)
        if self.on_issue is not None:
            self.on_issue(issue)

    def accumulate(self, record: DeliveryRecord) -> None:
        if self._finalized:
            raise RuntimeError("aggregator already finalized")

        acc = self._acc
        index = acc.total_records
        acc.total_records += 1

        acc.recipe_counts[record.recipe] = acc.recipe_counts.get(record.recipe, 0) + 1
        acc.postcode_counts[record.postcode] = acc.postcode_counts.get(record.postcode, 0) + 1

        if record.postcode == self.config.target_postcode:
            self._count_delivery_window(index, record)

        self._match_recipe(record.recipe)

    def feed(self, records: Iterable[DeliveryRecord]) -> "RecipeStatsAggregator":
        for record in records:
            self.accumulate(record)
        return self

    def _count_delivery_window(self, index: int, record: DeliveryRecord) -> None:
        parsed = parse_delivery_window(record.delivery)
        if not parsed.ok:
            if self.strict:
                raise RecordParseError(parsed.error or "invalid delivery window", index=index, value=parsed.value)
            self.report_issue(
                RecordIssue(index=index, kind="delivery_format", message=parsed.error or "", value=parsed.value)
            )
            return

        window = parsed.unwrap()
        if window.within(self.config.from_hour, self.config.to_hour):
            self._acc.filtered_delivery_count += 1

    def _match_recipe(self, recipe: str) -> None:
        lowered = recipe.lower()
        for keyword in self._keywords:
            if keyword in lowered:
                self._acc.matched_recipes.add(recipe)
                break

    def finalize(self) -> Report:
        """Build the Report. Raises EmptyInputError if no record was seen."""

        report = build_report(self._acc, self.config)
        self._finalized = True
        return report


def build_report(acc: Accumulators, config: FilterConfig) -> Report:
    if not acc.postcode_counts:
        raise EmptyInputError()

    # Ties on the maximum count go to the lexicographically smallest postcode.
    busiest_postcode, busiest_count = min(acc.postcode_counts.items(), key=lambda kv: (-kv[1], kv[0]))

    return Report(
        unique_recipe_count=sum(1 for count in acc.recipe_counts.values() if count == 1),
        count_per_recipe=tuple(
            RecipeCount(recipe=recipe, count=acc.recipe_counts[recipe]) for recipe in sorted(acc.recipe_counts)
        ),
        busiest_postcode=BusiestPostcode(postcode=busiest_postcode, delivery_count=busiest_count),
        count_per_postcode_and_time=PostcodeTimeCount(
            postcode=config.target_postcode,
            from_label=config.from_label,
            to_label=config.to_label,
            delivery_count=acc.filtered_delivery_count,
        ),
        match_by_name=tuple(sorted(acc.matched_recipes)),
        total_records=acc.total_records,
    )


def aggregate(
    records: Iterable[DeliveryRecord],
    config: FilterConfig,
    *,
    strict: bool = False,
    on_issue: Optional[IssueCallback] = None,
) -> Report:
    """Consume `records` once and return the finalized Report.

    Delivery strings that do not parse are reported via `on_issue` and
    skipped for the time-window count only (unless strict=True).
    """

    aggregator = RecipeStatsAggregator(config, strict=strict, on_issue=on_issue)
    return aggregator.feed(records).finalize()

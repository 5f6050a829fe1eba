from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set, Tuple

IssueKind = str  # delivery_format/field_type/not_an_object


@dataclass(frozen=True)
class DeliveryRecord:
    postcode: str
    recipe: str
    delivery: str  # "{Weekday} {h}AM - {h}PM"


@dataclass(frozen=True)
class FilterConfig:
    """Immutable filter settings for one aggregation run.

    Keywords are kept as configured; matching lowercases both sides.
    """

    target_postcode: str
    from_hour: int
    to_hour: int
    keywords: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.keywords, tuple):
            object.__setattr__(self, "keywords", tuple(self.keywords))

    @classmethod
    def build(
        cls, *, target_postcode: str, from_hour: int, to_hour: int, keywords: Iterable[str] = ()
    ) -> "FilterConfig":
        return cls(
            target_postcode=target_postcode,
            from_hour=int(from_hour),
            to_hour=int(to_hour),
            keywords=tuple(keywords),
        )

    @property
    def lowered_keywords(self) -> Tuple[str, ...]:
        return tuple(k.lower() for k in self.keywords)

    @property
    def from_label(self) -> str:
        return f"{self.from_hour}AM"

    @property
    def to_label(self) -> str:
        return f"{self.to_hour}PM"


@dataclass(frozen=True)
class RecordIssue:
    index: int
    kind: IssueKind
    message: str
    value: Optional[str] = None


@dataclass
class Accumulators:
    recipe_counts: Dict[str, int] = field(default_factory=dict)
    postcode_counts: Dict[str, int] = field(default_factory=dict)
    filtered_delivery_count: int = 0
    matched_recipes: Set[str] = field(default_factory=set)
    total_records: int = 0
    issues: List[RecordIssue] = field(default_factory=list)


@dataclass(frozen=True)
class RecipeCount:
    recipe: str
    count: int


@dataclass(frozen=True)
class BusiestPostcode:
    postcode: str
    delivery_count: int


@dataclass(frozen=True)
class PostcodeTimeCount:
    postcode: str
    from_label: str
    to_label: str
    delivery_count: int


@dataclass(frozen=True)
class Report:
    unique_recipe_count: int
    count_per_recipe: Tuple[RecipeCount, ...]
    busiest_postcode: BusiestPostcode
    count_per_postcode_and_time: PostcodeTimeCount
    match_by_name: Tuple[str, ...]
    total_records: int

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from recipe_stats.errors import RecordParseError

# "{weekday} {h}AM - {h}PM", e.g. "Monday 9AM - 5PM". The weekday is not validated.
DELIVERY_WINDOW_RE = re.compile(r"^\s*(?P<weekday>[A-Za-z]+)\s+(?P<from>\d{1,2})AM\s+-\s+(?P<to>\d{1,2})PM\s*$")


@dataclass(frozen=True)
class DeliveryWindow:
    weekday: str
    from_hour: int
    to_hour: int

    def within(self, from_hour: int, to_hour: int) -> bool:
        # Plain hour comparison on the 12h numbers, no AM/PM normalization.
        return self.from_hour >= from_hour and self.to_hour <= to_hour


@dataclass(frozen=True)
class WindowParseResult:
    window: Optional[DeliveryWindow]
    error: Optional[str] = None
    value: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.window is not None

    def unwrap(self) -> DeliveryWindow:
        if self.window is None:
            raise RecordParseError(self.error or "invalid delivery window", value=self.value)
        return self.window


def parse_delivery_window(text: str) -> WindowParseResult:
    """Extract (from-hour, to-hour) from a delivery string.

    Never raises on malformed input; the failure is returned as `error`.
    """

    if not isinstance(text, str):
        return WindowParseResult(window=None, error="delivery is not a string", value=repr(text))

    match = DELIVERY_WINDOW_RE.match(text)
    if match is None:
        return WindowParseResult(
            window=None,
            error=f"delivery does not match '<weekday> <h>AM - <h>PM': {text!r}",
            value=text,
        )

    return WindowParseResult(
        window=DeliveryWindow(
            weekday=match.group("weekday"),
            from_hour=int(match.group("from")),
            to_hour=int(match.group("to")),
        ),
        value=text,
    )

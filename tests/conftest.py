from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List

import pytest

from recipe_stats.model import DeliveryRecord, FilterConfig

SCENARIO_ROWS: List[Dict[str, Any]] = [
    {"postcode": "10120", "recipe": "A5 Balsamic Veggie Chops", "delivery": "Monday 10AM - 3PM"},
    {"postcode": "10120", "recipe": "Creamy Dill Chicken", "delivery": "Tuesday 9AM - 5PM"},
    {"postcode": "10120", "recipe": "Creamy Dill Chicken", "delivery": "Wednesday 11AM - 2PM"},
    {"postcode": "10224", "recipe": "Potato Bake", "delivery": "Thursday 8AM - 1PM"},
]


@pytest.fixture
def scenario_records() -> List[DeliveryRecord]:
    return [DeliveryRecord(**row) for row in SCENARIO_ROWS]


@pytest.fixture
def scenario_config() -> FilterConfig:
    return FilterConfig.build(
        target_postcode="10120",
        from_hour=10,
        to_hour=3,
        keywords=["Potato", "Veggie", "Mushroom"],
    )


@pytest.fixture
def scenario_file(tmp_path: Path) -> Path:
    path = tmp_path / "deliveries.json"
    path.write_text(json.dumps(SCENARIO_ROWS, indent=2), encoding="utf-8")
    return path

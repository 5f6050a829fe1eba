from __future__ import annotations

import io
import json
import sys
from pathlib import Path
from typing import List

import pytest

from recipe_stats.errors import FramingError, SourceUnavailableError
from recipe_stats.model import DeliveryRecord, RecordIssue
from recipe_stats.sources.records import (
    decode_record,
    iter_delivery_records,
    iter_json_array,
    read_delivery_records,
)


@pytest.mark.parametrize("chunk_size", [1, 3, 7, 64 * 1024])
def test_iter_json_array_independent_of_chunk_size(chunk_size: int) -> None:
    items = [
        {"postcode": "10120", "recipe": "Speedy Steak Fajitas", "delivery": "Monday 7AM - 5PM"},
        12345,
        -1.5e3,
        "text with ] and , inside",
        [1, [2, {"a": None}]],
        True,
        None,
    ]
    text = json.dumps(items, indent=2)

    assert list(iter_json_array(io.StringIO(text), chunk_size=chunk_size)) == items


def test_iter_json_array_empty_array() -> None:
    assert list(iter_json_array(io.StringIO("  [ \n ]  \n"))) == []


def test_iter_json_array_is_lazy() -> None:
    stream = io.StringIO('[{"a": 1}, {"a": 2}, oops]')
    items = iter_json_array(stream, chunk_size=4)

    assert next(items) == {"a": 1}
    assert next(items) == {"a": 2}
    with pytest.raises(FramingError):
        next(items)


@pytest.mark.parametrize(
    "text",
    [
        "",
        "   ",
        '{"postcode": "10120"}',
        "[1, 2",
        "[1, 2,]",
        "[1 2]",
        '[{"a": 1}] [',
        '[{"a": }]',
    ],
)
def test_iter_json_array_framing_errors(text: str) -> None:
    with pytest.raises(FramingError):
        list(iter_json_array(io.StringIO(text), chunk_size=2))


def test_framing_error_reports_absolute_position() -> None:
    text = '[1, 2, 3, x]'

    with pytest.raises(FramingError) as excinfo:
        list(iter_json_array(io.StringIO(text), chunk_size=2))

    assert excinfo.value.position == text.index("x")


def test_decode_record_ignores_extra_keys_and_defaults_missing() -> None:
    result = decode_record(0, {"recipe": "Potato Bake", "weight": 500, "Postcode": "ignored"})

    assert result.issue is None
    assert result.record == DeliveryRecord(postcode="", recipe="Potato Bake", delivery="")


def test_decode_record_null_field_defaults_without_issue() -> None:
    result = decode_record(0, {"postcode": None, "recipe": "A", "delivery": "Monday 9AM - 5PM"})

    assert result.issue is None
    assert result.record == DeliveryRecord(postcode="", recipe="A", delivery="Monday 9AM - 5PM")


def test_decode_record_wrong_field_type_keeps_record() -> None:
    result = decode_record(4, {"postcode": 10120, "recipe": "A", "delivery": "Monday 9AM - 5PM"})

    assert result.record == DeliveryRecord(postcode="", recipe="A", delivery="Monday 9AM - 5PM")
    assert result.issue is not None
    assert result.issue.index == 4
    assert result.issue.kind == "field_type"
    assert "postcode" in result.issue.message


def test_decode_record_non_object_is_skipped() -> None:
    result = decode_record(2, ["10120", "A", "Monday 9AM - 5PM"])

    assert result.record is None
    assert result.issue is not None
    assert result.issue.kind == "not_an_object"


def test_iter_delivery_records_reports_and_skips() -> None:
    text = json.dumps(
        [
            {"postcode": "1", "recipe": "A", "delivery": "Monday 9AM - 5PM"},
            "not a record",
            {"postcode": "2", "recipe": ["B"], "delivery": "Monday 9AM - 5PM"},
        ]
    )
    issues: List[RecordIssue] = []

    records = list(iter_delivery_records(io.StringIO(text), on_issue=issues.append, chunk_size=5))

    assert [r.postcode for r in records] == ["1", "2"]
    assert records[1].recipe == ""
    assert [(i.index, i.kind) for i in issues] == [(1, "not_an_object"), (2, "field_type")]


def test_read_delivery_records_from_file(scenario_file: Path) -> None:
    records = list(read_delivery_records(scenario_file))

    assert len(records) == 4
    assert records[0].recipe == "A5 Balsamic Veggie Chops"


def test_read_delivery_records_missing_file(tmp_path: Path) -> None:
    with pytest.raises(SourceUnavailableError) as excinfo:
        list(read_delivery_records(tmp_path / "nope.json"))

    assert excinfo.value.path == tmp_path / "nope.json"


def test_read_delivery_records_invalid_utf8(tmp_path: Path) -> None:
    path = tmp_path / "bad.json"
    path.write_bytes(b'[{"recipe": "\xff\xfe"}]')

    with pytest.raises(SourceUnavailableError):
        list(read_delivery_records(path))


@pytest.fixture
def small_int_digit_limit():
    if not hasattr(sys, "set_int_max_str_digits"):
        pytest.skip("interpreter has no int string conversion limit")
    previous = sys.get_int_max_str_digits()
    sys.set_int_max_str_digits(640)
    yield
    sys.set_int_max_str_digits(previous)


def test_oversized_integer_is_a_framing_error(small_int_digit_limit) -> None:
    text = '[{"postcode": "10120", "recipe": "A", "delivery": "Monday 9AM - 5PM", "weight": ' + "1" * 5000 + "}]"

    with pytest.raises(FramingError, match="undecodable JSON value"):
        list(iter_json_array(io.StringIO(text)))


def test_deeply_nested_value_is_a_framing_error() -> None:
    text = '[{"postcode": "10120", "x": ' + "[" * 5000 + "]" * 5000 + "}]"

    with pytest.raises(FramingError, match="nested too deeply"):
        list(iter_json_array(io.StringIO(text)))

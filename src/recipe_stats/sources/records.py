from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, Optional, TextIO

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from recipe_stats.errors import FramingError, SourceUnavailableError
from recipe_stats.model import DeliveryRecord, RecordIssue

DEFAULT_CHUNK_SIZE = 64 * 1024

RECORD_FIELDS = ("postcode", "recipe", "delivery")

_WHITESPACE = " \t\n\r"


class RecordPayload(BaseModel):
    """Wire shape of one delivery object. Unknown keys are ignored."""

    model_config = ConfigDict(extra="ignore", strict=True, frozen=True)

    postcode: str = ""
    recipe: str = ""
    delivery: str = ""

    @field_validator("postcode", "recipe", "delivery", mode="before")
    @classmethod
    def _null_as_empty(cls, value: Any) -> Any:
        return "" if value is None else value


@dataclass(frozen=True)
class RecordDecodeResult:
    record: Optional[DeliveryRecord]
    issue: Optional[RecordIssue] = None


class _JsonArrayReader:
    """Incrementally decode the elements of a top-level JSON array.

    Only the unread tail of the input plus one chunk is held in memory.
    """

    def __init__(self, stream: TextIO, chunk_size: int) -> None:
        if chunk_size < 1:
            raise ValueError("chunk_size must be >= 1")
        self._stream = stream
        self._chunk_size = chunk_size
        self._decoder = json.JSONDecoder()
        self._buf = ""
        self._pos = 0
        self._consumed = 0  # chars dropped from the front of the buffer
        self._eof = False

    def _offset(self) -> int:
        return self._consumed + self._pos

    def _fill(self) -> bool:
        if self._eof:
            return False
        chunk = self._stream.read(self._chunk_size)
        if not chunk:
            self._eof = True
            return False
        self._consumed += self._pos
        self._buf = self._buf[self._pos :] + chunk
        self._pos = 0
        return True

    def _peek(self) -> str:
        """Return the next non-whitespace char without consuming it ('' at EOF)."""

        while True:
            while self._pos < len(self._buf) and self._buf[self._pos] in _WHITESPACE:
                self._pos += 1
            if self._pos < len(self._buf):
                return self._buf[self._pos]
            if not self._fill():
                return ""

    def _decode_value(self) -> Any:
        while True:
            try:
                value, end = self._decoder.raw_decode(self._buf, self._pos)
            except json.JSONDecodeError as exc:
                if self._fill():
                    continue
                raise FramingError(f"malformed JSON: {exc.msg}", position=self._consumed + exc.pos) from exc
            except RecursionError as exc:
                raise FramingError("JSON value nested too deeply", position=self._offset()) from exc
            except ValueError as exc:
                # e.g. integers beyond the interpreter's int string conversion limit
                raise FramingError(f"undecodable JSON value: {exc}", position=self._offset()) from exc

            # Numbers cut at the chunk edge decode "successfully" ("-15" of "-1500.0"),
            # so only accept a value once its separator is in the buffer.
            nxt = end
            while nxt < len(self._buf) and self._buf[nxt] in _WHITESPACE:
                nxt += 1
            if (nxt == len(self._buf) or self._buf[nxt] not in ",]") and self._fill():
                continue

            self._pos = end
            return value

    def __iter__(self) -> Iterator[Any]:
        head = self._peek()
        if head == "":
            raise FramingError("empty input, expected a JSON array")
        if head != "[":
            raise FramingError("top-level JSON value is not an array", position=self._offset())
        self._pos += 1

        if self._peek() == "]":
            self._pos += 1
        else:
            while True:
                if self._peek() == "":
                    raise FramingError("unexpected end of input inside array", position=self._offset())
                yield self._decode_value()

                sep = self._peek()
                if sep == ",":
                    self._pos += 1
                    continue
                if sep == "]":
                    self._pos += 1
                    break
                if sep == "":
                    raise FramingError("unexpected end of input inside array", position=self._offset())
                raise FramingError(f"expected ',' or ']' but found {sep!r}", position=self._offset())

        if self._peek() != "":
            raise FramingError("unexpected content after JSON array", position=self._offset())


def iter_json_array(stream: TextIO, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[Any]:
    """Yield the elements of a top-level JSON array one at a time.

    Raises FramingError for malformed JSON, a non-array top level, or
    trailing content after the closing bracket.
    """

    return iter(_JsonArrayReader(stream, chunk_size))


def decode_record(index: int, item: Any) -> RecordDecodeResult:
    """Best-effort extraction of a DeliveryRecord from one array element.

    Policy:
    - non-object element: skipped, issue kind "not_an_object"
    - missing or null fields: default to "" without an issue
    - field of the wrong type: that field defaults to "", record kept,
      issue kind "field_type"
    """

    if not isinstance(item, dict):
        return RecordDecodeResult(
            record=None,
            issue=RecordIssue(
                index=index,
                kind="not_an_object",
                message=f"array element is {type(item).__name__}, expected object; skipped",
                value=_short_repr(item),
            ),
        )

    try:
        payload = RecordPayload.model_validate(item)
    except ValidationError as exc:
        bad_fields = sorted({str(err["loc"][0]) for err in exc.errors() if err.get("loc")})
        recovered: Dict[str, str] = {}
        for name in RECORD_FIELDS:
            value = item.get(name)
            recovered[name] = value if isinstance(value, str) and name not in bad_fields else ""
        return RecordDecodeResult(
            record=DeliveryRecord(**recovered),
            issue=RecordIssue(
                index=index,
                kind="field_type",
                message=f"invalid field type for {', '.join(bad_fields)}; defaulted to empty string",
                value=_short_repr({k: item.get(k) for k in bad_fields}),
            ),
        )

    return RecordDecodeResult(
        record=DeliveryRecord(postcode=payload.postcode, recipe=payload.recipe, delivery=payload.delivery)
    )


def iter_delivery_records(
    stream: TextIO,
    *,
    on_issue: Optional[Callable[[RecordIssue], None]] = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> Iterator[DeliveryRecord]:
    for index, item in enumerate(iter_json_array(stream, chunk_size=chunk_size)):
        result = decode_record(index, item)
        if result.issue is not None and on_issue is not None:
            on_issue(result.issue)
        if result.record is not None:
            yield result.record


def read_delivery_records(
    path: Path,
    *,
    on_issue: Optional[Callable[[RecordIssue], None]] = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> Iterator[DeliveryRecord]:
    """Stream DeliveryRecords from a JSON file.

    The file is opened lazily on first iteration and closed when the
    generator is exhausted or closed.
    """

    try:
        f = path.open("r", encoding="utf-8")
    except OSError as exc:
        raise SourceUnavailableError(path, exc.strerror or str(exc)) from exc

    with f:
        try:
            yield from iter_delivery_records(f, on_issue=on_issue, chunk_size=chunk_size)
        except (OSError, UnicodeDecodeError) as exc:
            raise SourceUnavailableError(path, str(exc)) from exc


def _short_repr(value: Any, limit: int = 120) -> str:
    text = repr(value)
    return text if len(text) <= limit else text[: limit - 3] + "..."

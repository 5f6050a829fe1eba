"""Record sources (streaming JSON array decoding)."""

from recipe_stats.sources.records import (
    RecordDecodeResult,
    RecordPayload,
    decode_record,
    iter_delivery_records,
    iter_json_array,
    read_delivery_records,
)

__all__ = [
    "RecordDecodeResult",
    "RecordPayload",
    "decode_record",
    "iter_delivery_records",
    "iter_json_array",
    "read_delivery_records",
]

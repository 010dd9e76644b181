"""
Bulk buffer and NDJSON wire-format builder.

Each buffered record contributes two newline-terminated lines:

    {"index":{"_index":"api-2023.06.15","_id":"<record id>"}}
    {<record>}
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, List, Mapping, Tuple

from .index import DEFAULT_INDEX_PREFIX, index_name

TIMESTAMP_KEY = "@timestamp"
ID_KEY = "id"


def _json_default(o: Any) -> Any:
    if isinstance(o, (datetime, date)):
        return o.isoformat()
    if isinstance(o, (set, frozenset)):
        return list(o)
    return str(o)


def _finite(o: Any) -> Any:
    """Copy of ``o`` with NaN/Infinity floats replaced by None."""
    if isinstance(o, float):
        return o if math.isfinite(o) else None
    if isinstance(o, Mapping):
        return {k: _finite(v) for k, v in o.items()}
    if isinstance(o, (list, tuple)):
        return [_finite(v) for v in o]
    return o


def dumps_line(obj: Any) -> str:
    """Compact single-line strict JSON; non-finite floats become null."""
    return json.dumps(
        _finite(obj),
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
        default=_json_default,
    )


def bulk_meta(record: Mapping[str, Any], prefix: str = DEFAULT_INDEX_PREFIX) -> dict:
    return {"index": {"_index": index_name(prefix, record[TIMESTAMP_KEY]), "_id": record.get(ID_KEY)}}


def bulk_entry(record: Mapping[str, Any], prefix: str = DEFAULT_INDEX_PREFIX) -> Tuple[str, str]:
    """(meta line, document line) without trailing newlines."""
    return dumps_line(bulk_meta(record, prefix)), dumps_line(record)


@dataclass
class BulkSnapshot:
    body: str
    count: int


class BulkBuffer:
    """
    Ordered NDJSON accumulator.

    Not thread-safe on its own; the emitter serializes access.
    """

    def __init__(self, prefix: str = DEFAULT_INDEX_PREFIX):
        self.prefix = prefix
        self._lines: List[str] = []
        self.count = 0
        self.last_flush: float = 0

    def __len__(self) -> int:
        return self.count

    def append(self, record: Mapping[str, Any]) -> int:
        """Serialize ``record`` as a bulk pair. Returns the new count.

        Both lines are built before either is stored, so a record that fails
        to serialize leaves the buffer untouched.
        """
        meta, doc = bulk_entry(record, self.prefix)
        self._lines.append(meta + "\n")
        self._lines.append(doc + "\n")
        self.count += 1
        return self.count

    @property
    def body(self) -> str:
        return "".join(self._lines)

    def drain(self) -> BulkSnapshot:
        """Snapshot the body and clear the buffer."""
        snap = BulkSnapshot(body=self.body, count=self.count)
        self._lines = []
        self.count = 0
        return snap

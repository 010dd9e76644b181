"""
Record preprocessing: normalize attribute maps in place before buffering.
"""

from __future__ import annotations

from typing import Any, MutableMapping

from .coerce import to_number_value, to_string_value

STRING_ATTRS_KEY = "attrs"
NUMERIC_ATTRS_KEY = "attrsint"


def preprocess_record(record: MutableMapping[str, Any]) -> MutableMapping[str, Any]:
    """Coerce ``attrs`` values to strings and ``attrsint`` values to numbers.

    Maps absent from the record are skipped, not created. Values that are not
    mappings are left untouched. Returns the same (mutated) record.
    """
    attrs = record.get(STRING_ATTRS_KEY)
    if isinstance(attrs, MutableMapping):
        for name in list(attrs):
            attrs[name] = to_string_value(attrs[name])

    intattrs = record.get(NUMERIC_ATTRS_KEY)
    if isinstance(intattrs, MutableMapping):
        for name in list(intattrs):
            intattrs[name] = to_number_value(intattrs[name])

    return record

"""Delimited import file parsing.

The format is deliberately simple: one header line, one record per line, fields split on a
single delimiter character. Quoting and escaping are not supported, so a value that contains
the delimiter cannot be represented. Structural problems (short or long lines) are tolerated
here and left for validation to judge.
"""
from __future__ import annotations

import re
from typing import Dict, List, Optional

from stock_relay.engine.canonical.models import ImportRow

HEADER_FIELDS: Dict[str, str] = {
    "sku": "sku",
    "quantity": "quantity_raw",
    "supplier": "supplier",
    "unitcost": "unit_cost_raw",
}

_WHITESPACE = re.compile(r"\s+")
_LINE_BREAK = re.compile(r"\r?\n")


def canonical_field(header: str) -> Optional[str]:
    normalized = _WHITESPACE.sub("", header.strip().lower())
    return HEADER_FIELDS.get(normalized)


def _split(line: str, delimiter: str) -> List[str]:
    return [value.strip() for value in line.split(delimiter)]


def parse_rows(text: str, *, delimiter: str = ",") -> List[ImportRow]:
    lines = [line for line in _LINE_BREAK.split(text) if line.strip()]
    if not lines:
        return []

    headers = [header.strip().lower() for header in lines[0].split(delimiter)]
    columns = [(index, canonical_field(header)) for index, header in enumerate(headers)]

    rows: List[ImportRow] = []
    for line in lines[1:]:
        values = _split(line, delimiter)
        fields: Dict[str, str] = {}
        for index, field in columns:
            if field is None:
                continue
            fields[field] = values[index] if index < len(values) else ""
        rows.append(ImportRow(**fields))
    return rows

"""
CSV Serialization
=================
Renders marketplace rows as comma-separated text and reads exports back.

Quoting policy (quote-when-needed, RFC 4180 compatible):
a field is wrapped in double quotes, with any internal quote doubled, only when
it contains a comma, a double quote or a newline. Everything else is written
verbatim. None becomes an empty field. Rows end with "\n".
"""

import csv
import io
from typing import Any, Dict, Iterable, List, Sequence


_NEEDS_QUOTING = (',', '"', '\n')


def escape_csv_value(value: Any) -> str:
    """
    Escape one field.

    'Vintage, Rare' → '"Vintage, Rare"'
    '6" lamp'       → '"6"" lamp"'
    None            → ''
    """
    if value is None:
        return ''
    text = str(value)
    if any(ch in text for ch in _NEEDS_QUOTING):
        return '"' + text.replace('"', '""') + '"'
    return text


def serialize_row(headers: Sequence[str], row: Dict[str, Any]) -> str:
    """Values of one row in header order, without the line terminator"""
    return ','.join(escape_csv_value(row.get(header)) for header in headers)


def serialize(headers: Sequence[str], rows: Iterable[Dict[str, Any]]) -> str:
    """
    Build CSV text: a header line, then one line per row in header order.

    Args:
        headers: Column names, in output order
        rows: Mappings of column name to value

    Returns:
        CSV content as string
    """
    lines = [','.join(escape_csv_value(h) for h in headers)]
    lines.extend(serialize_row(headers, row) for row in rows)
    return '\n'.join(lines) + '\n'


def split_csv_line(line: str) -> List[str]:
    """Split a single CSV line on top-level commas, honouring quoted fields"""
    return next(csv.reader([line]), [])


def parse_csv(text: str) -> List[Dict[str, str]]:
    """Read CSV text (e.g. a previous export) back into row dictionaries"""
    reader = csv.DictReader(io.StringIO(text, newline=''))
    return [dict(row) for row in reader]

"""CSV encoding and decoding for item and log exports."""

import csv
import io
from typing import Any, Dict, Iterable, List, Sequence, Tuple


def format_cell(value: Any) -> str:
    """Stringify a single cell value.

    ``None`` becomes an empty cell and integral floats lose their trailing
    ``.0`` so prices round-trip as ``1000`` rather than ``1000.0``.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def to_csv(headers: Sequence[str], rows: Iterable[Sequence[Any]]) -> str:
    """Render a header row plus data rows as CSV text.

    Fields containing a comma, quote or newline are wrapped in double quotes
    with internal quotes doubled.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(headers)
    for row in rows:
        writer.writerow([format_cell(cell) for cell in row])
    return buffer.getvalue()


def parse_csv(text: str) -> Tuple[List[str], List[Dict[str, str]]]:
    """
    Parse CSV text into a header list and a list of row dicts.

    Blank lines are ignored. Rows whose cell count differs from the header
    are dropped.

    Args:
        text: Raw CSV text

    Returns:
        Tuple of (headers, rows)

    Raises:
        ValueError: If the text contains no header row
    """
    # A leading BOM would otherwise end up in the first column name
    if text.startswith("\ufeff"):
        text = text[1:]

    reader = csv.reader(io.StringIO(text))
    records = [record for record in reader if any(cell.strip() for cell in record)]

    if not records:
        raise ValueError("Empty CSV")

    headers = [header.strip() for header in records[0]]
    rows = [
        dict(zip(headers, record))
        for record in records[1:]
        if len(record) == len(headers)
    ]
    return headers, rows

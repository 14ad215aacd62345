"""
CSV Codec

Bidirectional mapping between expense records and CSV text with the
fixed column order id, type, location, price, date, notes.

The same codec backs the CSV file store and user-facing import/export,
so a file exported from one backend can be imported into the other.

DESIGN DECISION: Parsing is best-effort.
Rows are split by the csv module. A quote in the middle of a bare field
is an ordinary character, and an unclosed quoted field or a missing
header produces a wrong field mapping, not an exception. Only rows
that fail model validation are reported, and only in strict mode are
they fatal.

Fields containing a comma, a double quote or a line break are wrapped
in double quotes, with embedded quotes doubled. Fields containing only
a comma encode exactly as older exports did, so those files stay readable.
"""

import csv
import io
from datetime import date
from typing import Iterable, Optional

import structlog
from pydantic import ValidationError

from coffee_tracker.exceptions import ParseError
from coffee_tracker.models.expense import ExpenseRecord


CSV_COLUMNS = ("id", "type", "location", "price", "date", "notes")

EXPORT_FILENAME_PREFIX = "coffee-expenses"

_NEEDS_QUOTES = (",", '"', "\n", "\r")

logger = structlog.get_logger(__name__)


# =============================================================================
# ENCODING
# =============================================================================

def encode_field(value: str) -> str:
    """Quote a field if it contains a separator, quote or line break."""
    if any(char in value for char in _NEEDS_QUOTES):
        return '"' + value.replace('"', '""') + '"'
    return value


def encode(records: Iterable[ExpenseRecord]) -> str:
    """
    Encode records as CSV text.

    Emits the header row, then one row per record in input order.
    Rows are joined with a bare newline and there is no trailing newline.
    """
    lines = [",".join(CSV_COLUMNS)]
    for record in records:
        values = record.model_dump()
        lines.append(",".join(encode_field(str(values.get(col) or "")) for col in CSV_COLUMNS))
    return "\n".join(lines)


# =============================================================================
# DECODING
# =============================================================================

def split_rows(text: str) -> list[list[str]]:
    """
    Split CSV text into rows of raw field values.

    Quoted fields may hold commas, doubled quotes and line breaks. A quote
    in the middle of an unquoted field is kept as a literal character, so
    bare fields such as 12" cup stay on their own row. Blank rows are skipped.

    Raises:
        ParseError: If the csv module rejects the text outright
    """
    reader = csv.reader(io.StringIO(text, newline=""))
    try:
        return [row for row in reader if any(field.strip() for field in row)]
    except csv.Error as e:
        raise ParseError(f"Cannot read CSV text (line {reader.line_num}): {e}") from e


def decode_rows(text: str) -> list[dict[str, str]]:
    """
    Decode CSV text into dicts keyed by header column name.

    The first row is the header, so columns may appear in any order.
    Values missing at the end of a short row become empty strings.
    """
    rows = split_rows(text)
    if not rows:
        return []

    header = [name.strip() for name in rows[0]]
    header[0] = header[0].lstrip("\ufeff")

    decoded = []
    for values in rows[1:]:
        decoded.append({
            name: values[index] if index < len(values) else ""
            for index, name in enumerate(header)
        })
    return decoded


def decode_report(text: str) -> tuple[list[ExpenseRecord], list[int]]:
    """
    Decode every valid row, collecting the numbers of rows that fail validation.

    Row numbers count the header as row 1.
    """
    records = []
    skipped = []
    for row_number, row in enumerate(decode_rows(text), start=2):
        try:
            records.append(ExpenseRecord.model_validate(row))
        except ValidationError:
            skipped.append(row_number)
    return records, skipped


def decode(text: str, strict: bool = False) -> list[ExpenseRecord]:
    """
    Decode CSV text into expense records.

    Args:
        text: CSV text with a header row
        strict: Raise on the first invalid row instead of skipping it

    Returns:
        Records in file order

    Raises:
        ParseError: In strict mode, if a row is missing required fields
    """
    if not strict:
        records, skipped = decode_report(text)
        if skipped:
            logger.warning("csv_rows_skipped", rows=skipped, count=len(skipped))
        return records

    records = []
    for row_number, row in enumerate(decode_rows(text), start=2):
        try:
            records.append(ExpenseRecord.model_validate(row))
        except ValidationError as e:
            raise ParseError(f"Invalid expense in CSV row {row_number}: {e}") from e
    return records


def export_filename(on: Optional[date] = None) -> str:
    """File name for a CSV export, e.g. coffee-expenses-2024-01-31.csv."""
    return f"{EXPORT_FILENAME_PREFIX}-{(on or date.today()).isoformat()}.csv"

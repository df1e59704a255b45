"""Append-only CSV tables, one per collection.

Rows are never rewritten or reordered. The url column is the identity of a
row, and append_if_absent checks the file content for it before writing, so
calling it any number of times with the same record leaves a single row.
"""
import csv
import io
import logging
from pathlib import Path

from douban_sync.errors import TableError
from douban_sync.models import AppendResult, NormalizedRecord

logger = logging.getLogger(__name__)

HEADER = ["title", "url", "date", "rating", "status", "comment"]
LINK_COLUMN = HEADER.index("url")

_NEEDS_QUOTES = (",", '"', "\n", "\r")


def escape_field(value: str | None) -> str:
    """Quote a field containing a comma, quote or line break; double inner quotes."""
    if not value:
        return ""
    if any(ch in value for ch in _NEEDS_QUOTES):
        return '"' + value.replace('"', '""') + '"'
    return value


def unescape_field(text: str) -> str:
    """Inverse of escape_field for a single field."""
    if not text:
        return ""
    row = next(csv.reader(io.StringIO(text, newline="")), [])
    return row[0] if row else ""


def format_row(fields: list[str]) -> str:
    return ",".join(escape_field(field) for field in fields) + "\n"


def read_rows(path: Path) -> list[list[str]]:
    """All data rows of a table, header excluded.

    Raises TableError if the file is not UTF-8 CSV.
    """
    if not path.exists():
        return []
    try:
        with path.open("r", encoding="utf-8-sig", newline="") as f:
            rows = list(csv.reader(f))
    except (UnicodeDecodeError, csv.Error) as e:
        raise TableError(f"Cannot read table {path.name}: {e}") from e
    return [row for row in rows[1:] if row]


def read_links(path: Path) -> set[str]:
    return {row[LINK_COLUMN] for row in read_rows(path) if len(row) > LINK_COLUMN}


def count_rows(path: Path) -> int:
    return len(read_rows(path))


def _ends_with_newline(path: Path) -> bool:
    with path.open("rb") as f:
        f.seek(-1, 2)
        return f.read(1) == b"\n"


def append_if_absent(path: Path, record: NormalizedRecord) -> AppendResult:
    """Append record to the table unless a row with its link already exists.

    A missing (or empty) table is created with the header and the row in a
    single write. Raises OSError if the file cannot be read or written and
    TableError if it is not UTF-8 CSV.
    """
    path = Path(path)

    if not path.exists() or path.stat().st_size == 0:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8", newline="") as f:
            f.write(format_row(HEADER) + format_row(record.as_row()))
        logger.debug(f"[TABLE] Created {path.name}")
        return AppendResult(written=True, path=path)

    if record.link in read_links(path):
        return AppendResult(written=False, path=path)

    line = format_row(record.as_row())
    if not _ends_with_newline(path):
        line = "\n" + line
    with path.open("a", encoding="utf-8", newline="") as f:
        f.write(line)
    return AppendResult(written=True, path=path)

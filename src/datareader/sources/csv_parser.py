"""CSV body parsing shared by the CSV-download providers."""

from __future__ import annotations

import csv
import io
import logging

from datareader.core.exceptions import ParseError
from datareader.core.models import Row

logger = logging.getLogger(__name__)


def parse_csv(
    body: bytes | str,
    date_column: str = "Date",
    source: str = "csv",
) -> tuple[list[str], list[Row]]:
    """Parse a header + rows CSV payload.

    Rows whose field count differs from the header are dropped. Rows are
    stable-sorted ascending by ``date_column`` (plain string compare, which
    orders ISO ``YYYY-MM-DD`` dates correctly) when that column exists.

    Returns:
        (columns, rows) with each row mapping header label -> cell text.

    Raises:
        ParseError: The payload is not UTF-8, has no header line, or is
            not valid CSV.
    """
    if isinstance(body, bytes):
        try:
            text = body.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise ParseError(
                f"CSV payload is not valid UTF-8 at byte {e.start}: {e.reason}",
                context={"source": source, "value": str(e.start)},
            ) from e
    else:
        text = body
    reader = csv.reader(io.StringIO(text))

    try:
        header = next(reader, None)
        while header is not None and not header:
            header = next(reader, None)
        if header is None:
            raise ParseError(
                "empty CSV payload: no header row",
                context={"source": source},
            )
        columns = [c.strip() for c in header]

        rows: list[Row] = []
        skipped = 0
        for record in reader:
            if len(record) != len(columns):
                if record:
                    skipped += 1
                continue
            rows.append(dict(zip(columns, record)))
    except csv.Error as e:
        raise ParseError(
            f"malformed CSV at line {reader.line_num}: {e}",
            context={"source": source, "value": str(reader.line_num)},
        ) from e

    if skipped:
        logger.debug("Dropped %d malformed CSV row(s) from %s", skipped, source)

    if date_column in columns:
        rows.sort(key=lambda r: r[date_column])

    return columns, rows

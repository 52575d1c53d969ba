"""Turn the exported CSV bytes into ticket records."""

from __future__ import annotations

import csv
import io
import logging

from oss_tickets.models import TicketRecord

logger = logging.getLogger(__name__)


def decode(data: bytes) -> list[TicketRecord]:
    """Parse CSV bytes into one dict per data row, keyed by the header row.

    Header names and cells are stripped of surrounding whitespace and blank
    lines are skipped. Rows shorter than the header are padded with "" and
    longer rows are cut to the header width; both are logged. Bytes that
    are not valid UTF-8 become U+FFFD rather than failing the export.
    """
    text = data.decode("utf-8-sig", errors="replace")
    if "\ufffd" in text and b"\xef\xbf\xbd" not in data:
        logger.warning("CSV export is not valid UTF-8; undecodable bytes were replaced")
    reader = csv.reader(io.StringIO(text, newline=""))

    header: list[str] | None = None
    records: list[TicketRecord] = []
    for row in reader:
        if not any(cell.strip() for cell in row):
            continue
        cells = [cell.strip() for cell in row]
        if header is None:
            header = cells
            continue

        if len(cells) != len(header):
            logger.warning(
                f"CSV line {reader.line_num}: expected {len(header)} columns, got {len(cells)}"
            )
            cells = (cells + [""] * len(header))[: len(header)]
        records.append(dict(zip(header, cells)))

    return records

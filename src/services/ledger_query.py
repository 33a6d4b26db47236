"""Ledger query engine over the spreadsheet pivot summaries.

Every call reads the whole summary range fresh and scans it linearly. The
summaries are maintained by the spreadsheet itself; this module never
writes to them.
"""

from datetime import date, datetime, time
from typing import Final

import pytz

from src.config.logging_config import get_logger
from src.domain.exceptions import DataIntegrityError
from src.domain.models import LedgerRow
from src.domain.protocols import LedgerPort

logger = get_logger(__name__)

GRAND_TOTAL_SENTINEL: Final[str] = "Grand Total"
"""Marker of the pivot table's closing row; everything after it is not data."""

SUMMARY_DATE_FORMAT: Final[str] = "%d-%b %Y"
"""Pivot date cells render as ``02-Jan`` and ``2006`` in two columns."""

SUMMARY_ROW_WIDTH: Final[int] = 4


def is_grand_total_row(cells: list[str]) -> bool:
    """Return True if the row is the pivot table's closing total row."""
    return any(GRAND_TOTAL_SENTINEL in str(cell) for cell in cells[:SUMMARY_ROW_WIDTH])


def parse_ledger_row(cells: list[str]) -> LedgerRow:
    """Validate a raw summary row into a LedgerRow.

    Args:
        cells: ``[name, "DD-Mon", "YYYY", total]``

    Returns:
        Parsed LedgerRow

    Raises:
        DataIntegrityError: On short rows, bad dates or bad totals

    Example:
        >>> parse_ledger_row(["Alice", "15-Mar", "2024", "3"]).total
        3
    """
    if len(cells) < SUMMARY_ROW_WIDTH:
        raise DataIntegrityError(
            f"Summary row has {len(cells)} cells, expected {SUMMARY_ROW_WIDTH}",
            row=list(cells),
        )

    name = str(cells[0]).strip()
    if not name:
        raise DataIntegrityError("Summary row has an empty name", row=list(cells))

    raw_date = f"{str(cells[1]).strip()} {str(cells[2]).strip()}"
    try:
        day = datetime.strptime(raw_date, SUMMARY_DATE_FORMAT).date()
    except ValueError as e:
        raise DataIntegrityError(
            f"Unable to parse summary date {raw_date!r}", row=list(cells)
        ) from e

    raw_total = str(cells[3]).strip()
    try:
        total = int(raw_total)
    except ValueError as e:
        raise DataIntegrityError(
            f"Unable to parse summary total {raw_total!r}", row=list(cells)
        ) from e
    if total < 0:
        raise DataIntegrityError(f"Negative summary total {total}", row=list(cells))

    return LedgerRow(subject_name=name, day=day, total=total)


class LedgerQueryEngine:
    """Aggregates pivot summary rows by subject and date."""

    def __init__(self, ledger: LedgerPort, tz_name: str) -> None:
        self._ledger = ledger
        self._tz = pytz.timezone(tz_name)

    def _scan(self, range_name: str) -> list[LedgerRow]:
        """Read and validate rows up to the grand total sentinel."""
        raw_rows = self._ledger.read_rows(range_name)
        rows: list[LedgerRow] = []
        for cells in raw_rows:
            if is_grand_total_row(cells):
                logger.debug("ledger_grand_total_reached", range=range_name)
                break
            try:
                rows.append(parse_ledger_row(cells))
            except DataIntegrityError as e:
                logger.error(
                    "ledger_row_invalid", range=range_name, row=cells, error=str(e)
                )
                raise
        logger.debug("ledger_scanned", range=range_name, row_count=len(rows))
        return rows

    def _local_bounds(self, start: date, end: date) -> tuple[datetime, datetime]:
        return (
            self._tz.localize(datetime.combine(start, time.min)),
            self._tz.localize(datetime.combine(end, time(23, 59, 59))),
        )

    def daily_total_for(
        self, subject_name: str, day: date, range_name: str
    ) -> int | None:
        """Total recorded for one subject on one day.

        Returns:
            The first matching row's total, or None if the subject has no row
            for that day

        Raises:
            DataIntegrityError: If any scanned row is malformed
        """
        for row in self._scan(range_name):
            if row.subject_name == subject_name and row.day == day:
                return row.total
        return None

    def range_totals(self, start: date, end: date, range_name: str) -> dict[str, int]:
        """Sum totals per subject for rows dated within ``[start, end]``.

        Subjects without rows in the window are absent from the result.

        Raises:
            DataIntegrityError: If any scanned row is malformed
        """
        window_start, window_end = self._local_bounds(start, end)
        totals: dict[str, int] = {}
        for row in self._scan(range_name):
            row_start = self._tz.localize(datetime.combine(row.day, time.min))
            if window_start <= row_start <= window_end:
                totals[row.subject_name] = totals.get(row.subject_name, 0) + row.total
        return totals


__all__ = [
    "GRAND_TOTAL_SENTINEL",
    "LedgerQueryEngine",
    "is_grand_total_row",
    "parse_ledger_row",
]

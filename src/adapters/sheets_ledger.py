"""Google Sheets adapter implementing LedgerPort.

Raw transfers are appended to the first sheet; pivot tables maintained by
the spreadsheet summarize them per giver and per receiver per day.
"""

from typing import Any, Final

import gspread
from gspread.exceptions import GSpreadException
from requests.exceptions import RequestException

from src.config.logging_config import get_logger
from src.domain.exceptions import LedgerError

logger = get_logger(__name__)

VALUE_INPUT_OPTION: Final[str] = "USER_ENTERED"
"""Let Sheets parse dates and numbers as if typed by a user."""

DEFAULT_WRITE_RANGE: Final[str] = "A2"


class SheetsLedger:
    """Spreadsheet-backed ledger."""

    def __init__(self, spreadsheet: Any, *, write_range: str = DEFAULT_WRITE_RANGE):
        """Initialize with an opened gspread Spreadsheet.

        Args:
            spreadsheet: ``gspread.Spreadsheet`` (tests inject a stub)
            write_range: Anchor range for appending raw transfer rows
        """
        self._spreadsheet = spreadsheet
        self._write_range = write_range

    def read_rows(self, range_name: str) -> list[list[str]]:
        """Read formatted values of a range.

        Raises:
            LedgerError: On Sheets API or transport errors
        """
        try:
            response = self._spreadsheet.values_get(range_name)
        except (GSpreadException, RequestException) as e:
            raise LedgerError(f"Unable to read range {range_name}: {e}") from e

        rows: list[list[str]] = response.get("values", [])
        if not rows:
            logger.info("ledger_range_empty", range=range_name)
        return rows

    def append_row(self, values: list[str | int]) -> None:
        """Append a raw transfer record after the last row of the table.

        Raises:
            LedgerError: On Sheets API or transport errors
        """
        try:
            self._spreadsheet.values_append(
                self._write_range,
                params={"valueInputOption": VALUE_INPUT_OPTION},
                body={"values": [values]},
            )
        except (GSpreadException, RequestException) as e:
            raise LedgerError(f"Unable to append row: {e}") from e
        logger.info("ledger_row_appended", range=self._write_range)


def create_sheets_ledger(
    credentials_file: str, spreadsheet_id: str, *, write_range: str = DEFAULT_WRITE_RANGE
) -> SheetsLedger:
    """Open the spreadsheet with a service-account key file.

    Raises:
        LedgerError: If the spreadsheet cannot be opened
    """
    if not spreadsheet_id:
        raise ValueError("spreadsheet_id must be configured for the Sheets ledger")
    try:
        client = gspread.service_account(filename=credentials_file)
        spreadsheet = client.open_by_key(spreadsheet_id)
    except (GSpreadException, OSError) as e:
        raise LedgerError(f"Unable to open spreadsheet {spreadsheet_id}: {e}") from e
    logger.info("ledger_spreadsheet_opened", spreadsheet_id=spreadsheet_id)
    return SheetsLedger(spreadsheet, write_range=write_range)


__all__ = ["SheetsLedger", "create_sheets_ledger"]

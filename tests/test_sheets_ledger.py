"""Tests for the Google Sheets ledger adapter."""

from __future__ import annotations

from typing import Any

import pytest
import requests
from gspread.exceptions import GSpreadException

from src.adapters import sheets_ledger
from src.adapters.sheets_ledger import SheetsLedger, create_sheets_ledger
from src.domain.exceptions import LedgerError


class StubSpreadsheet:
    """Records values_get / values_append calls like gspread.Spreadsheet."""

    def __init__(self, values: dict[str, list[list[str]]] | None = None) -> None:
        self.values = values or {}
        self.appends: list[dict[str, Any]] = []
        self.error: Exception | None = None

    def values_get(self, range_name: str) -> dict[str, Any]:
        if self.error is not None:
            raise self.error
        response: dict[str, Any] = {"range": range_name, "majorDimension": "ROWS"}
        if range_name in self.values:
            response["values"] = self.values[range_name]
        return response

    def values_append(
        self, range_name: str, params: dict[str, Any], body: dict[str, Any]
    ) -> dict[str, Any]:
        if self.error is not None:
            raise self.error
        self.appends.append({"range": range_name, "params": params, "body": body})
        return {"updates": {"updatedRows": 1}}


def test_read_rows_returns_values() -> None:
    rows = [["Alice Nguyen", "15-Mar", "2024", "3"], ["Grand Total", "", "", "3"]]
    spreadsheet = StubSpreadsheet({"Pivot Table 1!A3:D": rows})

    assert SheetsLedger(spreadsheet).read_rows("Pivot Table 1!A3:D") == rows


def test_read_rows_empty_range() -> None:
    """Sheets omits 'values' entirely for an empty range."""
    assert SheetsLedger(StubSpreadsheet()).read_rows("Pivot Table 2!A3:D") == []


def test_append_row_uses_user_entered_values() -> None:
    spreadsheet = StubSpreadsheet()
    ledger = SheetsLedger(spreadsheet, write_range="Raw!A2")
    row: list[str | int] = ["2024-03-15T10:00:05+07:00", "03/15/2024 10:00:05", "A", "B", 2, "x"]

    ledger.append_row(row)

    assert spreadsheet.appends == [
        {
            "range": "Raw!A2",
            "params": {"valueInputOption": "USER_ENTERED"},
            "body": {"values": [row]},
        }
    ]


def test_api_errors_become_ledger_errors() -> None:
    spreadsheet = StubSpreadsheet()
    spreadsheet.error = GSpreadException("quota exceeded")
    ledger = SheetsLedger(spreadsheet)

    with pytest.raises(LedgerError):
        ledger.read_rows("Pivot Table 1!A3:D")
    with pytest.raises(LedgerError):
        ledger.append_row(["row"])


@pytest.mark.parametrize(
    "error",
    [
        requests.exceptions.ConnectionError("connection refused"),
        requests.exceptions.ReadTimeout("read timed out"),
    ],
)
def test_transport_errors_become_ledger_errors(error: Exception) -> None:
    spreadsheet = StubSpreadsheet()
    spreadsheet.error = error
    ledger = SheetsLedger(spreadsheet)

    with pytest.raises(LedgerError, match="Unable to read"):
        ledger.read_rows("Pivot Table 1!A3:D")
    with pytest.raises(LedgerError, match="Unable to append"):
        ledger.append_row(["row"])


def test_create_sheets_ledger_opens_by_key(monkeypatch: pytest.MonkeyPatch) -> None:
    opened: list[str] = []
    spreadsheet = StubSpreadsheet()

    class StubGspreadClient:
        def open_by_key(self, key: str) -> StubSpreadsheet:
            opened.append(key)
            return spreadsheet

    def fake_service_account(filename: str) -> StubGspreadClient:
        assert filename == "creds.json"
        return StubGspreadClient()

    monkeypatch.setattr(sheets_ledger.gspread, "service_account", fake_service_account)

    ledger = create_sheets_ledger("creds.json", "sheet-key", write_range="A2")
    ledger.append_row(["row"])

    assert opened == ["sheet-key"]
    assert spreadsheet.appends[0]["range"] == "A2"


def test_create_sheets_ledger_missing_credentials(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    def fake_service_account(filename: str) -> None:
        raise FileNotFoundError(filename)

    monkeypatch.setattr(sheets_ledger.gspread, "service_account", fake_service_account)

    with pytest.raises(LedgerError):
        create_sheets_ledger("missing.json", "sheet-key")


def test_create_sheets_ledger_requires_spreadsheet_id() -> None:
    with pytest.raises(ValueError):
        create_sheets_ledger("creds.json", "")

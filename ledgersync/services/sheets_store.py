"""Thin REST client for the Google Sheets API v4 values endpoints."""

import logging
from urllib.parse import quote

import requests

from ..errors import StoreError

logger = logging.getLogger(__name__)

SHEETS_API_BASE = "https://sheets.googleapis.com/v4/spreadsheets"
# Cells are stored exactly as sent: notes stay text, amounts stay numbers
VALUE_INPUT_OPTION = "RAW"


class SheetsStore:
    """One spreadsheet, addressed by A1 ranges like ``March!A2:F``.

    Every call authenticates with the token of the given identity session.
    Failures are raised as :class:`StoreError` carrying the HTTP status and
    the message from the API's error body.
    """

    def __init__(self, spreadsheet_id: str, identity, *, http=None, timeout=None, base_url=SHEETS_API_BASE):
        if not spreadsheet_id:
            raise ValueError("spreadsheet_id is required")
        self.spreadsheet_id = spreadsheet_id
        self.identity = identity
        self._http = http or requests.Session()
        self._timeout = timeout
        self._base = f"{base_url.rstrip('/')}/{spreadsheet_id}"

    def get_values(self, range_: str) -> list:
        payload = self._request(
            "GET",
            self._values_url(range_),
            params={"valueRenderOption": "UNFORMATTED_VALUE", "majorDimension": "ROWS"},
        )
        return payload.get("values", [])

    def append_values(self, range_: str, rows: list) -> dict:
        return self._request(
            "POST",
            self._values_url(range_, ":append"),
            params={"valueInputOption": VALUE_INPUT_OPTION, "insertDataOption": "INSERT_ROWS"},
            json={"values": rows},
        )

    def update_values(self, range_: str, rows: list) -> dict:
        return self._request(
            "PUT",
            self._values_url(range_),
            params={"valueInputOption": VALUE_INPUT_OPTION},
            json={"range": range_, "majorDimension": "ROWS", "values": rows},
        )

    def clear_values(self, range_: str) -> dict:
        return self._request("POST", self._values_url(range_, ":clear"), json={})

    def batch_update(self, requests_: list) -> dict:
        return self._request("POST", f"{self._base}:batchUpdate", json={"requests": requests_})

    def create_partition(self, name: str, header: list | None = None, *, header_range: str | None = None) -> None:
        """Add a sheet tab named ``name`` and optionally write ``header`` into ``header_range``."""
        if header and not header_range:
            raise ValueError("header_range is required when writing a header")
        self.batch_update([{"addSheet": {"properties": {"title": name}}}])
        if header:
            self.update_values(header_range, [header])

    def _values_url(self, range_: str, suffix: str = "") -> str:
        return f"{self._base}/values/{quote(range_, safe='')}{suffix}"

    def _request(self, method: str, url: str, **kwargs) -> dict:
        headers = {"Authorization": f"Bearer {self.identity.get_token()}"}
        try:
            resp = self._http.request(method, url, headers=headers, timeout=self._timeout, **kwargs)
        except requests.RequestException as exc:
            logger.warning("Sheets %s failed before a response: %s", method, exc)
            raise StoreError(None, str(exc)) from exc

        if not resp.ok:
            message = _api_error_message(resp)
            logger.warning("Sheets %s %s -> %s %s", method, url, resp.status_code, message)
            raise StoreError(resp.status_code, message)
        if not resp.content:
            return {}
        return resp.json()


def _api_error_message(resp) -> str:
    try:
        payload = resp.json()
    except ValueError:
        return resp.text or resp.reason or ""
    error = payload.get("error") if isinstance(payload, dict) else None
    if isinstance(error, dict):
        return error.get("message", "")
    return str(error or "")

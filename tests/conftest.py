from __future__ import annotations

import json
import re

import pytest

from ledgersync import create_app
from ledgersync.config import Config
from ledgersync.controller import SESSION_MONTH_KEY, SESSION_TOKEN_KEY
from ledgersync.errors import StoreError
from ledgersync.models.user import SESSION_USER_KEY
from ledgersync.services.ledger_client import LedgerClient
from ledgersync.services.token_vault import TokenVault

_RANGE = re.compile(r"^(?P<sheet>[^!]+)!(?P<c1>[A-Z]+)(?P<r1>\d+)(?::(?P<c2>[A-Z]+)(?P<r2>\d*))?$")


def _rstrip(row):
    row = list(row or [])
    while row and row[-1] in ("", None):
        row.pop()
    return row


class FakeSheetsStore:
    """In-memory spreadsheet that answers like the Sheets values API.

    ``sheets`` maps a tab name to its rows, row 1 first. ``fail_with`` maps an
    operation name to a queue of exceptions (or None for "no failure") that
    are consumed one per call.
    """

    def __init__(self, sheets=None):
        self.sheets = {name: [list(r) for r in rows] for name, rows in (sheets or {}).items()}
        self.calls: list[tuple] = []
        self.fail_with: dict[str, list] = {}

    def _maybe_fail(self, op):
        queue = self.fail_with.get(op)
        if queue:
            exc = queue.pop(0)
            if exc is not None:
                raise exc

    def _parse(self, range_):
        m = _RANGE.match(range_)
        assert m, f"bad range {range_}"
        sheet = m["sheet"]
        if sheet not in self.sheets:
            raise StoreError(400, f"Unable to parse range: {range_}")
        end = int(m["r2"]) if m["r2"] else None
        return sheet, int(m["r1"]), end

    def get_values(self, range_):
        self.calls.append(("get", range_))
        self._maybe_fail("get")
        sheet, start, end = self._parse(range_)
        rows = [_rstrip(r) for r in self.sheets[sheet][start - 1:end]]
        while rows and not rows[-1]:
            rows.pop()
        return rows

    def append_values(self, range_, rows):
        self.calls.append(("append", range_, rows))
        self._maybe_fail("append")
        sheet, _, _ = self._parse(range_)
        data = self.sheets[sheet]
        last = len(data)
        while last > 0 and not _rstrip(data[last - 1]):
            last -= 1
        data[last:last] = [list(r) for r in rows]
        return {"updates": {"updatedRows": len(rows)}}

    def update_values(self, range_, rows):
        self.calls.append(("update", range_, rows))
        self._maybe_fail("update")
        sheet, start, _ = self._parse(range_)
        data = self.sheets[sheet]
        while len(data) < start - 1 + len(rows):
            data.append([])
        for offset, row in enumerate(rows):
            data[start - 1 + offset] = list(row)
        return {}

    def clear_values(self, range_):
        self.calls.append(("clear", range_))
        self._maybe_fail("clear")
        sheet, start, end = self._parse(range_)
        data = self.sheets[sheet]
        for number in range(start, (end or len(data)) + 1):
            if number - 1 < len(data):
                data[number - 1] = []
        return {}

    def create_partition(self, name, header=None, *, header_range=None):
        self.calls.append(("create", name, header_range))
        self._maybe_fail("create")
        if name in self.sheets:
            raise StoreError(400, f'A sheet with the name "{name}" already exists.')
        self.sheets[name] = [list(header)] if header else []

    def ops(self):
        return [call[0] for call in self.calls]


class FakeIdentity:
    profile = {"email": "ana@example.com", "name": "Ana", "picture": "https://example.com/ana.png"}

    def __init__(self, access_token):
        self.access_token = access_token
        self.revoked = False

    def get_token(self):
        return self.access_token

    def to_dict(self):
        return {"access_token": self.access_token, "expires_at": None}

    def fetch_profile(self):
        return dict(self.profile)

    def revoke(self):
        self.revoked = True


class FakeResponse:
    def __init__(self, status=200, payload=None, text=""):
        self.status_code = status
        self._payload = payload
        self.text = text
        self.reason = ""
        self.content = b"" if payload is None else json.dumps(payload).encode()

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if self._payload is None:
            raise ValueError("no JSON body")
        return self._payload


class FakeHTTP:
    """Stands in for requests.Session; replays canned responses in order."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls: list[tuple] = []

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def get(self, url, **kwargs):
        return self.request("GET", url, **kwargs)

    def post(self, url, **kwargs):
        return self.request("POST", url, **kwargs)


@pytest.fixture
def store():
    return FakeSheetsStore()


@pytest.fixture
def identities():
    created = []

    def factory(token):
        identity = FakeIdentity(token.get("access_token"))
        created.append(identity)
        return identity

    factory.created = created
    return factory


@pytest.fixture
def app(store, identities):
    class TestConfig(Config):
        TESTING = True
        SECRET_KEY = "test-secret"
        SPREADSHEET_ID = "sheet-id"
        GOOGLE_CLIENT_ID = "client-id"
        GOOGLE_CLIENT_SECRET = "client-secret"
        APP_YEAR = 2025

    app = create_app(TestConfig)
    app.config["LEDGER_CLIENT_FACTORY"] = lambda identity: LedgerClient(store, year=2025)
    app.config["IDENTITY_FACTORY"] = identities
    return app


@pytest.fixture
def client(app):
    return app.test_client()


def sign_in(client, email="ana@example.com", name="Ana", month="March", token="tok"):
    with client.session_transaction() as sess:
        sess[SESSION_USER_KEY] = {"email": email, "name": name, "photo_url": None}
        if token:
            vault = TokenVault.from_config(client.application.config)
            sess[SESSION_TOKEN_KEY] = vault.seal({"access_token": token, "expires_at": None})
        sess[SESSION_MONTH_KEY] = month
        sess["_user_id"] = email
        sess["_fresh"] = True


@pytest.fixture
def signed_in(client):
    sign_in(client)
    return client

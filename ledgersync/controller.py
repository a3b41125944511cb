"""Per-request application state: who is signed in, which month is shown,
the records of that month and the error banner.

The controller persists only small values in the session (profile, encrypted token,
selected month, pending error). Records are fetched again on every request
and after every mutation; local state is never patched in place.
"""

import logging
from dataclasses import dataclass, field

from flask import current_app, g, session

from .errors import ErrorKind, IdentityError, InvalidAmount, LedgerError, classify_error, error_detail
from .models import Contribution, ContributionDraft, ContributionUpdate, Month, User, current_month, parse_month
from .models.user import SESSION_USER_KEY
from .services.identity import IdentitySession
from .services.ledger_client import LedgerClient
from .services.sheets_store import SheetsStore
from .services.token_vault import TokenVault
from .utils import calculate_total, parse_amount

logger = logging.getLogger(__name__)

SESSION_TOKEN_KEY = "google_token"
SESSION_MONTH_KEY = "ledger_month"
SESSION_ERROR_KEY = "ledger_error"
SESSION_ERROR_KIND_KEY = "ledger_error_kind"

SESSION_EXPIRED_MESSAGE = "Session expired. Please sign in again."
PERMISSION_DENIED_MESSAGE = "Permission Denied: Ensure this Sheet is shared with Editor access to your account."


@dataclass
class LedgerState:
    user: User | None
    month: Month
    contributions: list = field(default_factory=list)
    is_loading: bool = False
    error: str | None = None
    error_kind: ErrorKind | None = None


class LedgerController:
    def __init__(
        self,
        session,
        client_factory,
        *,
        year: int,
        vault: TokenVault,
        identity_factory=IdentitySession.from_token,
        today=None,
    ):
        self.session = session
        self.vault = vault
        self.year = year
        self._client_factory = client_factory
        self._identity_factory = identity_factory
        self._identity = None
        self._today = today

        kind = session.get(SESSION_ERROR_KIND_KEY)
        self.state = LedgerState(
            user=self._load_user(),
            month=parse_month(session.get(SESSION_MONTH_KEY)) or current_month(today),
            error=session.get(SESSION_ERROR_KEY),
            error_kind=ErrorKind(kind) if kind else None,
        )

    # ---------- session ----------
    def _load_user(self):
        data = self.session.get(SESSION_USER_KEY)
        return User.from_dict(data) if data else None

    def _current_identity(self):
        if self._identity is None:
            token = self.vault.unseal(self.session.get(SESSION_TOKEN_KEY))
            if token and token.get("access_token"):
                self._identity = self._identity_factory(token)
        return self._identity

    def _client(self):
        identity = self._current_identity()
        if identity is None:
            return None
        return self._client_factory(identity)

    def sign_in(self, identity, user: User) -> None:
        self.session[SESSION_USER_KEY] = user.to_dict()
        self.session[SESSION_TOKEN_KEY] = self.vault.seal(identity.to_dict())
        self._identity = identity
        self.state.user = user
        self.dismiss_error()
        logger.info("Signed in %s", user.email)
        self.refresh()

    def sign_out(self) -> None:
        identity = self._current_identity()
        if identity is not None:
            identity.revoke()
        if self.state.user is not None:
            logger.info("Signed out %s", self.state.user.email)
        self._clear_user()
        self.session.pop(SESSION_MONTH_KEY, None)
        self.state.month = current_month(self._today)
        self.dismiss_error()

    def _clear_user(self) -> None:
        self.session.pop(SESSION_USER_KEY, None)
        self.session.pop(SESSION_TOKEN_KEY, None)
        self._identity = None
        self.state.user = None
        self.state.contributions = []

    # ---------- errors ----------
    def report_error(self, message: str, kind: ErrorKind = ErrorKind.GENERIC) -> None:
        self.state.error = message
        self.state.error_kind = kind
        self.session[SESSION_ERROR_KEY] = message
        self.session[SESSION_ERROR_KIND_KEY] = kind.value

    def dismiss_error(self) -> None:
        self.state.error = None
        self.state.error_kind = None
        self.session.pop(SESSION_ERROR_KEY, None)
        self.session.pop(SESSION_ERROR_KIND_KEY, None)

    def _fail(self, exc: Exception, prefix: str, fallback: str) -> None:
        kind = classify_error(exc)
        if kind is ErrorKind.AUTH_EXPIRED:
            self._clear_user()
            message = SESSION_EXPIRED_MESSAGE
        elif kind is ErrorKind.PERMISSION_DENIED:
            message = PERMISSION_DENIED_MESSAGE
        else:
            message = f"{prefix}: {error_detail(exc) or fallback}"
        logger.warning("%s (%s): %s", prefix, kind.value, exc)
        self.report_error(message, kind)

    # ---------- reads ----------
    def refresh(self, clear_error: bool = False) -> list:
        if self.state.user is None:
            self.state.contributions = []
            return self.state.contributions
        client = self._client()
        if client is None:
            # Profile survived a reload but the token did not
            self.state.contributions = []
            return self.state.contributions

        self.state.is_loading = True
        try:
            self.state.contributions = client.fetch_contributions(self.state.month)
            if clear_error:
                self.dismiss_error()
        except LedgerError as exc:
            self._fail(exc, "Data error", "Check your Spreadsheet ID settings.")
        finally:
            self.state.is_loading = False
        return self.state.contributions

    def select_month(self, month) -> None:
        selected = parse_month(month)
        if selected is None:
            raise ValueError(f"Unknown month: {month!r}")
        self.state.contributions = []
        self.state.month = selected
        self.session[SESSION_MONTH_KEY] = selected.value
        self.refresh(clear_error=True)

    def find(self, contribution_id: str) -> Contribution | None:
        for contribution in self.state.contributions:
            if contribution.id == contribution_id:
                return contribution
        return None

    def can_modify(self, contribution: Contribution) -> bool:
        user = self.state.user
        return user is not None and contribution.is_owned_by(user.email)

    @property
    def total(self) -> float:
        return calculate_total(c.amount for c in self.state.contributions)

    # ---------- mutations ----------
    def _mutate(self, prefix: str, fallback: str, operation) -> bool:
        if self.state.user is None or self.state.is_loading:
            return False
        client = self._client()
        if client is None:
            self._fail(IdentityError(401, "No access token"), prefix, fallback)
            return False

        self.state.is_loading = True
        try:
            operation(client)
        except LedgerError as exc:
            self._fail(exc, prefix, fallback)
            return False
        finally:
            self.state.is_loading = False
        self.refresh(clear_error=True)
        return True

    def _invalid_input(self, exc: InvalidAmount) -> bool:
        self.report_error(str(exc), ErrorKind.GENERIC)
        return False

    def add_contribution(self, amount, note: str = "") -> bool:
        try:
            value = parse_amount(amount)
        except InvalidAmount as exc:
            return self._invalid_input(exc)
        user = self.state.user
        if user is None:
            return False
        draft = ContributionDraft(
            user_email=user.email,
            user_name=user.name,
            amount=value,
            note=(note or "").strip(),
            month=self.state.month,
            year=self.year,
        )
        return self._mutate("Save failed", "Check Sheet permissions.", lambda client: client.add_contribution(draft))

    def edit_contribution(self, contribution_id: str, amount=None, note: str | None = None) -> bool:
        try:
            value = None if amount is None else parse_amount(amount)
        except InvalidAmount as exc:
            return self._invalid_input(exc)
        updates = ContributionUpdate(amount=value, note=None if note is None else note.strip())
        month = self.state.month
        return self._mutate(
            "Update failed",
            "Could not find row to update",
            lambda client: client.update_contribution(contribution_id, updates, month),
        )

    def delete_contribution(self, contribution_id: str, confirmed: bool = False) -> bool:
        if not confirmed:
            return False
        month = self.state.month
        return self._mutate(
            "Delete failed",
            "Check Sheet permissions.",
            lambda client: client.delete_contribution(contribution_id, month),
        )


def default_client_factory(config):
    def build(identity):
        store = SheetsStore(config["SPREADSHEET_ID"], identity, timeout=config.get("SHEETS_TIMEOUT"))
        return LedgerClient(store, year=config["APP_YEAR"])

    return build


def controller_for_request() -> LedgerController:
    """The controller bound to the current request's session, built once per request."""
    if "ledger_controller" not in g:
        config = current_app.config
        g.ledger_controller = LedgerController(
            session,
            config.get("LEDGER_CLIENT_FACTORY") or default_client_factory(config),
            year=config["APP_YEAR"],
            vault=TokenVault.from_config(config),
            identity_factory=config.get("IDENTITY_FACTORY") or IdentitySession.from_token,
        )
    return g.ledger_controller

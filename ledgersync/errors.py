"""Error taxonomy shared by the store, the ledger client and the controller."""

from enum import Enum


class LedgerError(Exception):
    """Base class for every error raised by ledgersync."""


class RemoteCallError(LedgerError):
    """A call to a Google endpoint failed.

    ``status`` is the HTTP status code, or None when no response arrived.
    ``message`` is whatever detail the remote side provided.
    """

    def __init__(self, status: int | None, message: str = ""):
        self.status = status
        self.message = message or ""
        super().__init__(f"{status}: {self.message}" if status else self.message)

    @property
    def is_unauthorized(self) -> bool:
        return self.status == 401

    @property
    def is_forbidden(self) -> bool:
        return self.status == 403


class StoreError(RemoteCallError):
    """The Sheets API rejected a request."""

    _MISSING_RANGE_MARKERS = ("parse range", "find range")

    @property
    def is_range_not_found(self) -> bool:
        # Sheets reports a missing tab as a 400 on the range it cannot resolve
        text = self.message.lower()
        return self.status == 400 and any(marker in text for marker in self._MISSING_RANGE_MARKERS)


class IdentityError(RemoteCallError):
    """The identity provider rejected a userinfo or revoke call."""


class ContributionNotFound(LedgerError):
    def __init__(self, contribution_id: str, month):
        self.contribution_id = contribution_id
        self.month = month
        super().__init__(f"Could not find contribution {contribution_id} in {month}")


class RowDecodeError(LedgerError):
    def __init__(self, row_number: int, reason: str):
        self.row_number = row_number
        self.reason = reason
        super().__init__(f"row {row_number}: {reason}")


class InvalidAmount(LedgerError, ValueError):
    pass


class ErrorKind(Enum):
    AUTH_EXPIRED = "auth_expired"
    PERMISSION_DENIED = "permission_denied"
    GENERIC = "generic"


def classify_error(exc: BaseException) -> ErrorKind:
    if isinstance(exc, RemoteCallError):
        if exc.is_unauthorized:
            return ErrorKind.AUTH_EXPIRED
        if exc.is_forbidden:
            return ErrorKind.PERMISSION_DENIED
    return ErrorKind.GENERIC


def error_detail(exc: BaseException) -> str:
    if isinstance(exc, RemoteCallError):
        return exc.message
    return str(exc)

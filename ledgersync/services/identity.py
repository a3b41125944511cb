"""Explicit session context for the signed-in Google account.

An :class:`IdentitySession` is created from the token returned by the consent
flow, handed to the store and the controller, and released on sign-out. Once
released it refuses to hand out its token.
"""

import logging

import requests

from ..errors import IdentityError

logger = logging.getLogger(__name__)

USERINFO_URL = "https://www.googleapis.com/oauth2/v3/userinfo"
REVOKE_URL = "https://oauth2.googleapis.com/revoke"


class IdentitySession:
    def __init__(self, access_token: str, *, expires_at=None, http=None, timeout=None):
        if not access_token:
            raise ValueError("access_token is required")
        self._access_token = access_token
        self.expires_at = expires_at
        self._http = http or requests.Session()
        self._timeout = timeout

    @classmethod
    def from_token(cls, token: dict, **kwargs) -> "IdentitySession":
        """Build from an OAuth token response (``access_token``, ``expires_at``)."""
        return cls(token.get("access_token"), expires_at=token.get("expires_at"), **kwargs)

    @property
    def released(self) -> bool:
        return self._access_token is None

    def get_token(self) -> str:
        if self._access_token is None:
            # Same classification as an expired token
            raise IdentityError(401, "Identity session has been released")
        return self._access_token

    def to_dict(self) -> dict:
        return {"access_token": self.get_token(), "expires_at": self.expires_at}

    def fetch_profile(self) -> dict:
        """Return the userinfo document (``email``, ``name``, ``picture``)."""
        try:
            resp = self._http.get(
                USERINFO_URL,
                headers={"Authorization": f"Bearer {self.get_token()}"},
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            raise IdentityError(None, f"userinfo request failed: {exc}") from exc
        if not resp.ok:
            raise IdentityError(resp.status_code, _error_message(resp))
        return resp.json()

    def revoke(self) -> None:
        """Revoke the token at Google and release the session.

        The session is released even when the revoke call fails; the failure is
        logged because the user asked to sign out either way.
        """
        token, self._access_token = self._access_token, None
        if token is None:
            return
        try:
            resp = self._http.post(
                REVOKE_URL,
                params={"token": token},
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            logger.warning("Token revoke request failed: %s", exc)
            return
        if not resp.ok:
            logger.warning("Token revoke rejected with status %s", resp.status_code)


def _error_message(resp) -> str:
    try:
        payload = resp.json()
    except ValueError:
        return resp.text or resp.reason or ""
    if isinstance(payload, dict):
        err = payload.get("error")
        if isinstance(err, dict):
            return err.get("message", "")
        return payload.get("error_description") or (err or "")
    return ""

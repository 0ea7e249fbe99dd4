"""
Credential providers for collaborator calls.

Each provider exposes the same lifecycle:
  acquire()  return a usable bearer credential (logging in if needed)
  refresh()  drop the current credential and acquire a new one
  clear()    drop the current credential (logout)

Providers are passed explicitly to the clients that need them; there is no
process-wide token cache.
"""
import logging
from typing import Optional

from .errors import AuthenticationError, RemoteRequestError
from .http import JsonHttpClient

logger = logging.getLogger(__name__)

LOGIN_PATH = "/api/v1/auth/login"


class StaticCredential:
    """A fixed API key, e.g. the table store's service key."""

    def __init__(self, key: Optional[str]) -> None:
        self._key = key

    def acquire(self) -> str:
        if not self._key:
            raise AuthenticationError("No API key configured for the table store")
        return self._key

    def refresh(self) -> str:
        return self.acquire()

    def clear(self) -> None:
        """Static keys have nothing to drop."""


class SessionContext:
    """
    Bearer token session for the ledger service.

    The token is obtained lazily by logging in with the configured username
    and password, and kept until clear() or refresh() is called.
    """

    def __init__(
        self,
        base_url: str,
        username: Optional[str],
        password: Optional[str],
        http: Optional[JsonHttpClient] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.username = username
        self.password = password
        # Login itself is anonymous; never route it through this session.
        self._http = http or JsonHttpClient()
        self._token: Optional[str] = None

    @property
    def token(self) -> Optional[str]:
        """The current token, or None when signed out."""
        return self._token

    def acquire(self) -> str:
        if self._token:
            return self._token
        self._token = self._login()
        return self._token

    def refresh(self) -> str:
        self.clear()
        return self.acquire()

    def clear(self) -> None:
        if self._token:
            logger.info("Clearing ledger session for %s", self.username)
        self._token = None

    def _login(self) -> str:
        if not self.username or not self.password:
            raise AuthenticationError(
                "Ledger credentials are not configured (LEDGER_USERNAME / LEDGER_PASSWORD)"
            )
        try:
            body = self._http.request(
                "POST",
                f"{self.base_url}{LOGIN_PATH}",
                {"username": self.username, "password": self.password},
            )
        except RemoteRequestError as exc:
            self._token = None
            raise AuthenticationError(
                "Ledger login failed", status=exc.status, remote_text=exc.remote_text
            ) from exc

        token = ((body or {}).get("data") or {}).get("token") if isinstance(body, dict) else None
        if not token:
            self._token = None
            raise AuthenticationError("Ledger login response did not contain a token")
        logger.info("Signed in to ledger service as %s", self.username)
        return token

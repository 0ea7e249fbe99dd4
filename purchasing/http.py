"""
JSON-over-HTTP transport shared by the ledger client, the session and the
remote table store.

Every collaborator call goes through JsonHttpClient.request(), which:
  - serialises the payload as UTF-8 JSON
  - attaches the bearer credential from the injected credential provider
  - refreshes the credential and retries once on HTTP 401
  - translates transport failures into RemoteRequestError (status + remote text)
"""
import json
import logging
import urllib.error
import urllib.request
from typing import Any, Callable, Optional

from .errors import RemoteRequestError

logger = logging.getLogger(__name__)

USER_AGENT = "Purchasing-Ledger/0.1"

# Remote error bodies are truncated to this many characters
MAX_REMOTE_TEXT = 500


class JsonHttpClient:
    """
    Thin JSON request/response wrapper around urllib.

    credentials: any object with acquire() -> str and refresh() -> str
                 (SessionContext, StaticCredential), or None for anonymous calls.
    timeout:     seconds, or None for no local timeout.
    """

    def __init__(
        self,
        credentials: Any = None,
        timeout: Optional[float] = None,
        default_headers: Optional[dict] = None,
        opener: Optional[Callable] = None,
    ) -> None:
        self.credentials = credentials
        self.timeout = timeout
        self.default_headers = dict(default_headers or {})
        self._open = opener or urllib.request.urlopen

    def request(
        self,
        method: str,
        url: str,
        payload: Any = None,
        headers: Optional[dict] = None,
    ) -> Any:
        """
        Send one request and return the decoded JSON body (None when empty).

        Raises RemoteRequestError for non-2xx responses and unreachable hosts.
        """
        try:
            return self._send(method, url, payload, headers)
        except urllib.error.HTTPError as e:
            if e.code != 401 or self.credentials is None:
                raise self._http_error(method, url, e) from e
            logger.info("HTTP 401 from %s — refreshing credential and retrying once", url)
            self.credentials.refresh()
        try:
            return self._send(method, url, payload, headers)
        except urllib.error.HTTPError as e:
            raise self._http_error(method, url, e) from e

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _send(self, method: str, url: str, payload: Any, headers: Optional[dict]) -> Any:
        data = json.dumps(payload).encode("utf-8") if payload is not None else None
        req = urllib.request.Request(url, data=data, method=method.upper())
        req.add_header("Content-Type", "application/json; charset=utf-8")
        req.add_header("Accept", "application/json")
        req.add_header("User-Agent", USER_AGENT)
        for k, v in {**self.default_headers, **(headers or {})}.items():
            req.add_header(k, str(v))
        if self.credentials is not None:
            req.add_header("Authorization", f"Bearer {self.credentials.acquire()}")

        logger.debug("%s %s", method.upper(), url)
        try:
            with self._open(req, timeout=self.timeout) as response:
                body = response.read().decode("utf-8", errors="replace")
        except urllib.error.HTTPError:
            raise
        except (urllib.error.URLError, OSError) as e:
            reason = getattr(e, "reason", e)
            logger.error("%s %s unreachable: %s", method.upper(), url, reason)
            raise RemoteRequestError(
                f"{method.upper()} {url} failed", remote_text=str(reason)
            ) from e

        if not body.strip():
            return None
        try:
            return json.loads(body)
        except json.JSONDecodeError as e:
            raise RemoteRequestError(
                f"{method.upper()} {url} returned invalid JSON",
                remote_text=body[:MAX_REMOTE_TEXT],
            ) from e

    @staticmethod
    def _http_error(method: str, url: str, e: urllib.error.HTTPError) -> RemoteRequestError:
        body = e.read().decode("utf-8", errors="replace") if e.fp else str(e)
        logger.error("%s %s failed: HTTP %d - %s", method.upper(), url, e.code, body[:200])
        return RemoteRequestError(
            f"{method.upper()} {url} failed with HTTP {e.code}",
            status=e.code,
            remote_text=body[:MAX_REMOTE_TEXT],
        )

"""Shared HTTP helpers used across the backend clients.

Encapsulates common request/timeout error handling so backend modules avoid
duplicating try/except blocks. Transport failures surface as UpstreamError;
HTTP status handling is left to the caller.
"""
from __future__ import annotations

import logging
from typing import Any, Optional, Tuple

import requests

from constants import Constants
from common.errors import UpstreamError
from common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer

logger = logging.getLogger(__name__)


def safe_request(method: str, url: str, *, context: str, **kwargs: Any) -> requests.Response:
    """Perform an HTTP request with consistent error handling and DEBUG traces.

    Args:
        method: HTTP verb.
        url: Target URL.
        context: Human-readable source tag for logs (e.g., "marathon", "consul").
        **kwargs: Passed through to requests.request.

    Returns:
        requests.Response: The HTTP response object, whatever its status.

    Raises:
        UpstreamError: On timeout or connection failure.
    """
    safe_target = safe_url(url)
    kwargs.setdefault("timeout", Constants.REQUEST_TIMEOUT)
    with Timer() as t:
        if is_debug_enabled(logger):
            logger.debug(
                "HTTP request",
                extra=extra_context(
                    event="http_request",
                    component="http_client",
                    action=method,
                    target=safe_target,
                    context=context,
                ),
            )
        try:
            res = requests.request(method, url, **kwargs)
        except requests.Timeout as exc:
            logger.error(
                "%s %s request to %s timed out after %s seconds",
                context,
                method,
                safe_target,
                kwargs["timeout"],
            )
            raise UpstreamError(
                f"{context} request timed out",
                operation=method,
                target=safe_target,
            ) from exc
        except requests.RequestException as exc:  # includes ConnectionError
            logger.error("%s %s %s connection error: %s", context, method, safe_target, exc)
            raise UpstreamError(
                f"{context} connection error: {exc}",
                operation=method,
                target=safe_target,
            ) from exc

        if is_debug_enabled(logger):
            logger.debug(
                "HTTP response",
                extra=extra_context(
                    event="http_response",
                    component="http_client",
                    action=method,
                    status_code=res.status_code,
                    duration_ms=t.duration_ms(),
                    target=safe_target,
                    context=context,
                ),
            )
        return res


def parse_base_url(url: str) -> str:
    """Normalize a backend address into ``scheme://host[:port]``.

    Bare ``host:port`` values default to http.
    """
    value = (url or "").strip()
    if not value.startswith("http"):
        value = f"http://{value}"
    return value.rstrip("/")


class ServiceClient:
    """Base class for JSON-over-HTTP backends (scheduler, resource manager, KV)."""

    context = "http"

    def __init__(
        self,
        url: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
        verify_ssl: bool = True,
    ):
        self.base_url = parse_base_url(url)
        self.username = username
        self.password = password
        self.verify_ssl = verify_ssl

    def url(self, path: str) -> str:
        """Absolute URL for ``path``."""
        if not path.startswith("/"):
            path = "/" + path
        return f"{self.base_url}{path}"

    def _auth(self) -> Optional[Tuple[str, str]]:
        if self.username and self.password:
            return self.username, self.password
        return None

    def request(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        """Send ``method`` to ``path`` with the client's auth and TLS settings."""
        headers = {"Accept": "application/json"}
        headers.update(kwargs.pop("headers", None) or {})
        return safe_request(
            method,
            self.url(path),
            context=self.context,
            headers=headers,
            auth=self._auth(),
            verify=self.verify_ssl,
            **kwargs,
        )

    def error(self, message: str, response: requests.Response, operation: str, path: str = "") -> UpstreamError:
        """Build an UpstreamError describing a non-success ``response``."""
        body = (response.text or "").strip()
        return UpstreamError(
            f"{message}: {response.status_code} {body}".rstrip(),
            operation=operation,
            target=safe_url(self.url(path)),
            status_code=response.status_code,
        )

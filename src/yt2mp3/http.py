"""Outbound HTTP client shared by the resolver and the payload fetcher."""

from __future__ import annotations

import urllib.error
import urllib.request
from typing import Dict, Mapping, Optional

DEFAULT_USER_AGENT = "Mozilla/5.0"


class HttpStatusError(Exception):
    def __init__(self, url: str, status: int, reason: str = "") -> None:
        super().__init__(f"{status} {reason}".strip())
        self.url = url
        self.status = status
        self.reason = reason


class HttpClient:
    """Thin ``urllib`` wrapper holding only immutable request settings.

    A single instance is safe to share between concurrently running tasks.
    """

    def __init__(
        self,
        *,
        timeout: float = 30.0,
        user_agent: str = DEFAULT_USER_AGENT,
        headers: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.timeout = timeout
        merged: Dict[str, str] = {"User-Agent": user_agent}
        merged.update(headers or {})
        self._headers = merged

    @property
    def headers(self) -> Dict[str, str]:
        return dict(self._headers)

    def open(self, url: str):
        """Open ``url`` and return the response; non-2xx raises ``HttpStatusError``."""
        request = urllib.request.Request(url, headers=self.headers)
        try:
            response = urllib.request.urlopen(request, timeout=self.timeout)
        except urllib.error.HTTPError as exc:
            raise HttpStatusError(url, exc.code, str(exc.reason)) from exc
        status = getattr(response, "status", 200)
        if not 200 <= status < 300:
            response.close()
            raise HttpStatusError(url, status, getattr(response, "reason", ""))
        return response

    def get_text(self, url: str, *, encoding: str = "utf-8") -> str:
        with self.open(url) as response:
            return response.read().decode(encoding, errors="replace")

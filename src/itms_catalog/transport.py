# itms_catalog/transport.py

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass, field
from typing import Protocol

import httpx

from itms_catalog.config import DEFAULT_ACCEPT_LANGUAGE, DEFAULT_MAX_RETRIES, DEFAULT_TIMEOUT
from itms_catalog.errors import TransportError

logger = logging.getLogger(__name__)


# The store only answers with full pages for clients that claim to be in a
# verified country and that can take encrypted, compressed bodies.
COUNTRY_COOKIE = "countryVerified=1"
ACCEPT_ENCODING = "gzip, x-aes-cbc"
USER_AGENT = "iTunes/4.2 (Macintosh; U; PPC Mac OS X 10.2)"


@dataclass(slots=True)
class RawResponse:
    """A response body exactly as received, plus its headers."""

    url: str
    status_code: int
    content: bytes
    headers: dict[str, str] = field(default_factory=dict)


class Transport(Protocol):
    def fetch(self, url: str) -> RawResponse: ...

    def close(self) -> None: ...


class HttpTransport:
    """One GET per fetch against the store, without body decoding."""

    def __init__(
        self,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = DEFAULT_MAX_RETRIES,
        accept_language: str = DEFAULT_ACCEPT_LANGUAGE,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        if max_retries < 0:
            msg = "max_retries must be non-negative."
            raise ValueError(msg)

        self._max_retries = max_retries

        headers = {
            "User-Agent": USER_AGENT,
            "Accept-Language": accept_language,
            "Accept-Encoding": ACCEPT_ENCODING,
            "Cookie": COUNTRY_COOKIE,
        }

        self._client = httpx.Client(
            headers=headers,
            timeout=timeout,
            follow_redirects=True,
            transport=transport,
        )

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()

    def __enter__(self) -> "HttpTransport":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # type: ignore[override]
        self.close()

    def fetch(self, url: str) -> RawResponse:
        """GET ``url`` and return the undecoded body.

        The body is read with ``iter_raw`` so that neither gzip nor the
        store's cipher has been touched; the decode pipeline handles both.

        Raises:
            TransportError: On a non-success status, or on a network error
                once ``max_retries`` retries are used up. Only 5xx statuses
                and network errors are retried.
        """
        for attempt in range(1, self._max_retries + 2):
            try:
                with self._client.stream("GET", url) as response:
                    content = b"".join(response.iter_raw())
                    response.raise_for_status()
                    logger.debug(
                        "Fetched %s (status=%s, %d bytes).",
                        url,
                        response.status_code,
                        len(content),
                    )
                    return RawResponse(
                        url=url,
                        status_code=response.status_code,
                        content=content,
                        headers=dict(response.headers.items()),
                    )
            except httpx.HTTPStatusError as exc:
                status = exc.response.status_code
                # Retry only on 5xx errors.
                if 500 <= status < 600 and attempt <= self._max_retries:
                    logger.warning(
                        "Server error for %s (status=%s, attempt=%s/%s). Retrying...",
                        url,
                        status,
                        attempt,
                        self._max_retries,
                    )
                    _sleep_backoff(attempt)
                    continue

                logger.error("Unrecoverable HTTP error for %s (status=%s).", url, status)
                raise TransportError(url, status) from exc
            except httpx.RequestError as exc:
                if attempt <= self._max_retries:
                    logger.warning(
                        "Request error for %s (attempt=%s/%s): %s. Retrying...",
                        url,
                        attempt,
                        self._max_retries,
                        exc,
                    )
                    _sleep_backoff(attempt)
                    continue

                logger.error("Request error for %s after %s attempts: %s", url, attempt, exc)
                raise TransportError(url, reason=str(exc)) from exc

        # Shouldn't be reached, but keeps mypy happy.
        raise TransportError(url, reason="no attempts made")


def _sleep_backoff(attempt: int) -> None:
    """Sleep for a short exponential backoff based on the attempt number."""
    base = 0.5
    max_sleep = 5.0
    delay = min(max_sleep, base * (2 ** (attempt - 1)))
    jitter = random.uniform(0.0, 0.25 * delay)
    time.sleep(delay + jitter)

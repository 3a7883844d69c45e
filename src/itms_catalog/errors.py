# itms_catalog/errors.py

"""Exception hierarchy for catalog fetching, decoding and extraction."""

from __future__ import annotations


class CatalogError(Exception):
    """Base class for every error raised by itms_catalog."""


class UsageError(CatalogError, ValueError):
    """An identifier or search term was empty or otherwise unusable."""


class TransportError(CatalogError):
    """A request failed or returned a non-success status."""

    def __init__(self, url: str, status_code: int | None = None, reason: str = "") -> None:
        self.url = url
        self.status_code = status_code
        self.reason = reason

        if status_code is not None:
            msg = f"GET {url} failed with status {status_code}"
        else:
            msg = f"GET {url} failed"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg)


class DecodeError(CatalogError):
    """Raw response bytes could not be turned into a text document."""


class BadIVError(DecodeError):
    """The encryption IV header is missing or malformed."""


class DecryptError(DecodeError):
    """AES decryption or padding removal failed."""


class DecompressError(DecodeError):
    """The gzip stream is malformed, truncated or fails its checksum."""


class ExtractionError(CatalogError):
    """A required structural node was missing from a fetched document."""

    def __init__(self, path: str, detail: str = "") -> None:
        self.path = path
        self.detail = detail

        msg = f"Missing required node: {path}"
        if detail:
            msg = f"{msg} ({detail})"
        super().__init__(msg)


class FetchInProgressError(CatalogError):
    """A field group was accessed while its own fetch was still running."""

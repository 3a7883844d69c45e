# itms_catalog/decode.py

"""Turn raw store responses into text: optional AES-CBC, optional gzip."""

from __future__ import annotations

import gzip
import logging
import shutil
import tempfile
import zlib
from collections.abc import Mapping
from enum import Enum

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from itms_catalog.errors import BadIVError, DecodeError, DecompressError, DecryptError

logger = logging.getLogger(__name__)

# The store encrypts with one fixed AES-128 key; it is not user-configurable.
STORE_KEY = bytes.fromhex("8a9dad399fb014c131be611820d78895")

IV_HEADER = "x-apple-crypto-iv"

GZIP_MAGIC = b"\x1f\x8b"

# Decompression stays in memory up to this size before spilling to disk.
SPOOL_MAX_SIZE = 1024 * 1024

_BLOCK_SIZE_BITS = 128
_CHUNK_SIZE = 64 * 1024


class DecryptMode(str, Enum):
    SKIP = "skip"
    AUTO = "auto"
    FORCE = "force"


def decode(
    raw: bytes,
    headers: Mapping[str, str] | None = None,
    *,
    decrypt: DecryptMode | str = DecryptMode.AUTO,
    gunzip: bool = True,
    tmpdir: str | None = None,
) -> str:
    """Decode a raw response body into a UTF-8 document.

    Args:
        raw: The response body exactly as received.
        headers: Response headers; only the IV header is consulted.
        decrypt: ``skip`` never decrypts, ``auto`` decrypts when an IV header
            is present, ``force`` always decrypts and fails without an IV.
        gunzip: Whether the (decrypted) stream is gzip-compressed.
        tmpdir: Directory for the decompression buffer if it spills to disk.

    Raises:
        BadIVError: The IV is required but missing, or is not 16 hex bytes.
        DecryptError: AES decryption or padding removal failed.
        DecompressError: The gzip stream is empty, malformed or truncated.
        DecodeError: The decoded bytes are not valid UTF-8.
    """
    mode = DecryptMode(decrypt)
    data = raw

    if mode is not DecryptMode.SKIP:
        iv = read_iv(headers or {})
        if iv is not None:
            data = decrypt_body(data, iv)
        elif mode is DecryptMode.FORCE:
            msg = f"Decryption forced but no {IV_HEADER} header present."
            raise BadIVError(msg)
        else:
            logger.debug("No %s header; treating body as plaintext.", IV_HEADER)

    if gunzip:
        data = gunzip_body(data, tmpdir=tmpdir)

    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as exc:
        msg = f"Response body is not valid UTF-8: {exc}"
        raise DecodeError(msg) from exc


def read_iv(headers: Mapping[str, str]) -> bytes | None:
    """Return the raw IV from the response headers, or None if absent."""
    value = None
    for name, header_value in headers.items():
        if name.lower() == IV_HEADER:
            value = header_value
            break

    if value is None:
        return None

    try:
        iv = bytes.fromhex(value.strip())
    except ValueError:
        msg = f"{IV_HEADER} header is not hex: {value!r}"
        raise BadIVError(msg) from None

    if len(iv) != _BLOCK_SIZE_BITS // 8:
        msg = f"{IV_HEADER} header must be 16 bytes, got {len(iv)}."
        raise BadIVError(msg)

    return iv


def decrypt_body(data: bytes, iv: bytes, key: bytes = STORE_KEY) -> bytes:
    """AES-CBC decrypt and strip PKCS#7 padding."""
    decryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).decryptor()
    unpadder = padding.PKCS7(_BLOCK_SIZE_BITS).unpadder()

    try:
        padded = decryptor.update(data) + decryptor.finalize()
        plain = unpadder.update(padded) + unpadder.finalize()
    except ValueError as exc:
        msg = f"AES-CBC decryption failed: {exc}"
        raise DecryptError(msg) from exc

    logger.debug("Decrypted %d bytes into %d bytes.", len(data), len(plain))
    return plain


def gunzip_body(data: bytes, *, tmpdir: str | None = None) -> bytes:
    """Inflate a gzip stream through a scoped spooled temporary buffer."""
    if not data.startswith(GZIP_MAGIC):
        msg = f"Response body is not a gzip stream ({len(data)} bytes)."
        raise DecompressError(msg)

    with tempfile.SpooledTemporaryFile(
        max_size=SPOOL_MAX_SIZE,
        dir=tmpdir,
    ) as compressed, tempfile.SpooledTemporaryFile(
        max_size=SPOOL_MAX_SIZE,
        dir=tmpdir,
    ) as inflated:
        compressed.write(data)
        compressed.seek(0)

        try:
            with gzip.GzipFile(fileobj=compressed, mode="rb") as stream:
                shutil.copyfileobj(stream, inflated, _CHUNK_SIZE)
        except (OSError, EOFError, zlib.error) as exc:
            msg = f"Could not gunzip response body: {exc}"
            raise DecompressError(msg) from exc

        inflated.seek(0)
        result = inflated.read()

    logger.debug("Inflated %d bytes into %d bytes.", len(data), len(result))
    return result

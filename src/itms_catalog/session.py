# itms_catalog/session.py

"""Entry point: a session builds entities and fetches the pages they need."""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

from itms_catalog.config import CatalogConfig
from itms_catalog.decode import decode
from itms_catalog.document import Document, parse_document
from itms_catalog.entities import Album, Artist, Genre, SearchResults, Song
from itms_catalog.errors import UsageError
from itms_catalog.records import Image
from itms_catalog.transport import HttpTransport, Transport

logger = logging.getLogger(__name__)

_STORE = "http://phobos.apple.com/WebObjects/MZStore.woa/wa"
_DIRECT = f"{_STORE}/com.apple.jingle.app.store.DirectAction"

# The identifier (or URL-quoted search term) is appended to each template.
URL_TEMPLATES: dict[str, str] = {
    "search": (
        "http://phobos.apple.com/WebObjects/MZSearch.woa/wa/"
        "com.apple.jingle.search.DirectAction/search?term="
    ),
    "viewAlbum": f"{_STORE}/viewAlbum?playlistId=",
    "viewArtist": f"{_STORE}/viewArtist?artistId=",
    "biography": f"{_DIRECT}/biography?artistId=",
    "influencers": f"{_DIRECT}/influencers?artistId=",
    "browseArtist": f"{_DIRECT}/browseArtist?artistId=",
}


class CatalogSession:
    """Access to artists, albums, songs, genres and searches in the store.

    Example:

        with CatalogSession() as store:
            artist = store.get_artist("2893902")
            for album in artist.discography:
                print(album.title)
                for track in album.tracks:
                    print("   ", track.number, track.title)

    The session is read-only after construction and may be shared by any
    number of entities.
    """

    def __init__(
        self,
        config: CatalogConfig | None = None,
        *,
        transport: Transport | None = None,
        url_templates: dict[str, str] | None = None,
    ) -> None:
        self.config = config or CatalogConfig.from_env()
        self._urls = dict(url_templates or URL_TEMPLATES)
        self._transport = transport or HttpTransport(
            timeout=self.config.timeout,
            max_retries=self.config.max_retries,
            accept_language=self.config.accept_language,
        )

    def close(self) -> None:
        """Close the underlying transport."""
        self._transport.close()

    def __enter__(self) -> "CatalogSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # type: ignore[override]
        self.close()

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------

    def get_artist(self, artist_id: str | int, **prefill: Any) -> Artist:
        return Artist(self, _require_id(artist_id, "artist"), **prefill)

    def get_album(
        self,
        album_id: str | int,
        *,
        thumb: Image | None = None,
        **prefill: Any,
    ) -> Album:
        return Album(self, _require_id(album_id, "album"), thumb=thumb, **prefill)

    def get_song(self, song_id: str | int, **fields: Any) -> Song:
        """Build a song from known fields; songs are never fetched on their own."""
        return Song(_require_id(song_id, "song"), **fields)

    def get_genre(self, genre_id: str | int, name: str | None = None) -> Genre:
        return Genre(_require_id(genre_id, "genre"), name)

    def search_for(self, term: str) -> SearchResults:
        """Return lazily fetched results of a basic search for ``term``."""
        if term is None or not str(term).strip():
            msg = "No search terms passed."
            raise UsageError(msg)
        return SearchResults(self, str(term).strip())

    # ------------------------------------------------------------------
    # Fetching
    # ------------------------------------------------------------------

    def build_url(self, kind: str, identifier: str) -> str:
        """Build the page URL of ``kind`` (a URL_TEMPLATES key) for ``identifier``."""
        try:
            template = self._urls[kind]
        except KeyError:
            msg = f"Unknown page kind {kind!r}; expected one of {sorted(self._urls)}."
            raise UsageError(msg) from None
        return template + quote(identifier, safe="")

    def fetch_page(self, kind: str, identifier: str | int) -> Document:
        """Fetch, decode and parse one page.

        Raises:
            UsageError: Unknown page kind or empty identifier (before any I/O).
            TransportError: The request failed.
            DecodeError: The body could not be decrypted or inflated.
            ExtractionError: The body is not an XML document.
        """
        identifier = _require_id(identifier, kind)
        url = self.build_url(kind, identifier)

        logger.debug("Fetching %s page for %s: %s", kind, identifier, url)
        response = self._transport.fetch(url)

        xml = decode(
            response.content,
            response.headers,
            decrypt=self.config.decrypt,
            gunzip=self.config.gunzip,
            tmpdir=self.config.tmpdir,
        )
        if self.config.show_xml:
            logger.debug("XML for %s:\n%s", url, xml)

        return parse_document(xml)


def _require_id(identifier: str | int | None, what: str) -> str:
    if identifier is None or not str(identifier).strip():
        msg = f"No {what} ID passed."
        raise UsageError(msg)
    return str(identifier).strip()

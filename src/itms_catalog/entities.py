# itms_catalog/entities.py

"""Artists, albums, songs, genres and search results from the store.

Artist, Album and SearchResults fetch their data on first use: reading any
field of a field group performs one request and fills every field of that
group. Fields passed in at construction (a *prefill*) are returned without a
request. Song and Genre are only ever built from data already at hand.

Every factory call builds a new object; there is no identity map, so two
Artist objects for the same id fetch independently.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from itms_catalog.errors import ExtractionError
from itms_catalog.extractors import (
    extract_album,
    extract_artist,
    extract_discography,
    extract_search,
    path_genre,
)
from itms_catalog.lazy import LazyEntity, lazy_field
from itms_catalog.records import Image, PathSegment

if TYPE_CHECKING:
    from itms_catalog.session import CatalogSession

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Genre:
    """A store genre. Only carries what the referring page said about it."""

    id: str | None
    name: str | None = None


@dataclass(slots=True, eq=False)
class Song:
    """A track of an album, filled from the album's track list."""

    id: str | None
    title: str | None = None
    album: Album | None = None
    artist: Artist | None = None
    genre: Genre | None = None
    year: int | None = None
    number: int | None = None
    count: int | None = None
    disc_number: int | None = None
    disc_count: int | None = None
    explicit: bool | None = None
    comments: str | None = None
    copyright: str | None = None
    preview_url: str | None = None
    released: str | None = None
    price: str | None = None
    vendor: str | None = None

    def __repr__(self) -> str:
        return f"Song(id={self.id!r}, title={self.title!r}, number={self.number!r})"


class Artist(LazyEntity):
    """An artist in the store.

    ``name``, ``genre``, ``website``, ``path``, ``selected_albums``,
    ``selected_albums_start``, ``selected_albums_end`` and ``total_albums``
    come from one viewArtist request. ``discography`` comes from a separate
    browseArtist request.
    """

    name: str | None = lazy_field("basic")
    genre: Genre | None = lazy_field("basic")
    website: str | None = lazy_field("basic", "Outbound website URL, if listed.")
    path: list[PathSegment] = lazy_field("basic", "Breadcrumb of the artist page.")
    selected_albums: list[Album] = lazy_field(
        "basic",
        "A best-selling selection of the artist's albums.",
    )
    selected_albums_start: int | None = lazy_field("basic")
    selected_albums_end: int | None = lazy_field("basic")
    total_albums: int = lazy_field("basic")
    discography: list[Album] = lazy_field("discography", "Every album, in store order.")

    def __init__(self, session: CatalogSession, id: str, **prefill: Any) -> None:
        super().__init__(**prefill)
        self.id = id
        self._session = session
        self._register_group("basic", self._load_basic_info)
        self._register_group("discography", self._load_discography)

    def __repr__(self) -> str:
        return f"Artist(id={self.id!r}, name={self._fields.get('name')!r})"

    def _load_basic_info(self) -> dict[str, Any]:
        document = self._session.fetch_page("viewArtist", self.id)
        page = extract_artist(document)

        if page.name is None:
            raise ExtractionError("Path/PathElement@displayName", f"artist {self.id}")

        selected = [
            self._session.get_album(
                tile.id,
                title=tile.title,
                artist=self,
                thumb=tile.thumb,
            )
            for tile in page.albums
            if tile.id
        ]

        logger.info(
            "Loaded artist %s (%s): %d of %s albums.",
            self.id,
            page.name,
            len(selected),
            page.albums_total,
        )

        return {
            "name": page.name,
            "genre": Genre(page.genre_id, path_genre(page.path)),
            "website": page.website,
            "path": page.path or [],
            "selected_albums": selected,
            "selected_albums_start": page.albums_start,
            "selected_albums_end": page.albums_end,
            "total_albums": max(page.albums_total or 0, len(selected)),
        }

    def _load_discography(self) -> dict[str, Any]:
        document = self._session.fetch_page("browseArtist", self.id)
        entries = extract_discography(document)

        if entries is None:
            raise ExtractionError("plist/dict/array", f"discography of artist {self.id}")

        albums = [
            self._session.get_album(entry.id, title=entry.title, artist=self)
            for entry in entries
            if entry.id
        ]
        logger.info("Loaded discography of artist %s: %d albums.", self.id, len(albums))
        return {"discography": albums}


class Album(LazyEntity):
    """An album in the store.

    Every field except ``id`` and ``thumb`` comes from one viewAlbum request.
    ``thumb`` is only known when the album was listed on another page.
    """

    title: str | None = lazy_field("basic")
    artist: Artist | None = lazy_field("basic")
    genre: Genre | None = lazy_field("basic")
    cover: Image | None = lazy_field("basic")
    path: list[PathSegment] = lazy_field("basic")
    info: list[str] = lazy_field("basic", "Free-standing text lines of the album page.")
    notes: list[str] = lazy_field("basic", "Lines of the album notes block.")
    tracks: list[Song] = lazy_field("basic", "Track list in store order.")
    price_format: str | None = lazy_field("basic")
    list_type: str | None = lazy_field("basic")

    def __init__(
        self,
        session: CatalogSession,
        id: str,
        *,
        thumb: Image | None = None,
        **prefill: Any,
    ) -> None:
        super().__init__(**prefill)
        self.id = id
        self.thumb = thumb
        self._session = session
        # A parent entity handed in as artist stays the album's artist.
        self._keep_prefilled.add("artist")
        self._register_group("basic", self._load_basic_info)

    def __repr__(self) -> str:
        return f"Album(id={self.id!r}, title={self._fields.get('title')!r})"

    @property
    def name(self) -> str | None:
        return self.title

    @property
    def songs(self) -> list[Song]:
        return self.tracks

    def _load_basic_info(self) -> dict[str, Any]:
        document = self._session.fetch_page("viewAlbum", self.id)
        page = extract_album(document)

        if page.title is None or page.cover is None:
            raise ExtractionError(
                "ScrollView//ViewAlbum[@draggingName][PictureView]",
                f"album {self.id}",
            )
        if page.tracks is None:
            raise ExtractionError("TrackList/plist/dict/items", f"album {self.id}")

        artist = self._fields.get("artist")
        if artist is None and page.artist_id:
            prefill = {"name": page.artist_name} if page.artist_name else {}
            artist = self._session.get_artist(page.artist_id, **prefill)

        tracks = [
            Song(
                id=track.id,
                title=track.title,
                album=self,
                artist=artist,
                genre=Genre(track.genre_id, track.genre),
                year=track.year,
                number=track.number,
                count=track.count,
                disc_number=track.disc_number,
                disc_count=track.disc_count,
                explicit=track.explicit,
                comments=track.comments,
                copyright=track.copyright,
                preview_url=track.preview_url,
                released=track.released,
                price=track.price,
                vendor=track.vendor,
            )
            for track in page.tracks
        ]

        logger.info("Loaded album %s (%s): %d tracks.", self.id, page.title, len(tracks))

        return {
            "title": page.title,
            "artist": artist,
            "genre": Genre(page.genre_id, path_genre(page.path)),
            "cover": page.cover,
            "path": page.path or [],
            "info": page.info,
            "notes": page.notes,
            "tracks": tracks,
            "price_format": page.price_format,
            "list_type": page.list_type,
        }


class SearchResults(LazyEntity):
    """Albums found by a basic search, fetched on first access."""

    albums: list[Album] = lazy_field("results", "Matching albums in result order.")

    def __init__(self, session: CatalogSession, term: str) -> None:
        super().__init__()
        self.term = term
        self._session = session
        self._register_group("results", self._load_results)

    def __repr__(self) -> str:
        return f"SearchResults(term={self.term!r})"

    def __iter__(self):
        return iter(self.albums)

    def __len__(self) -> int:
        return len(self.albums)

    def _load_results(self) -> dict[str, Any]:
        document = self._session.fetch_page("search", self.term)
        hits = extract_search(document)

        if hits is None:
            raise ExtractionError("ScrollView", f"search for {self.term!r}")

        albums: list[Album] = []
        for hit in hits:
            if not hit.album.id:
                continue

            prefill: dict[str, Any] = {"title": hit.album.title}
            if hit.artist is not None and hit.artist.id:
                prefill["artist"] = self._session.get_artist(
                    hit.artist.id,
                    name=hit.artist.name,
                )
            if hit.genre is not None:
                prefill["genre"] = Genre(hit.genre.id, hit.genre.name)

            albums.append(
                self._session.get_album(hit.album.id, thumb=hit.album.thumb, **prefill),
            )

        logger.info("Search for %r found %d albums.", self.term, len(albums))
        return {"albums": albums}

# itms_catalog/records.py

"""Plain records produced by the extractors, before entities are built."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(slots=True)
class PathSegment:
    """One breadcrumb element of a page's location in the store."""

    name: str | None
    url: str


@dataclass(slots=True)
class Image:
    url: str | None
    width: int | None = None
    height: int | None = None


@dataclass(slots=True)
class AlbumTile:
    """An album summary from a grid of tiles (artist page, search page)."""

    id: str | None
    title: str | None
    thumb: Image | None = None


@dataclass(slots=True)
class PartialRef:
    """A name/id pair for an entity referenced but not described by a page."""

    id: str | None
    name: str | None


@dataclass(slots=True)
class SearchHit:
    album: AlbumTile
    artist: PartialRef | None = None
    genre: PartialRef | None = None


@dataclass(slots=True)
class ArtistPage:
    """Everything a viewArtist page tells about an artist."""

    id: str | None
    genre_id: str | None
    name: str | None
    path: list[PathSegment] | None
    website: str | None = None
    albums: list[AlbumTile] = field(default_factory=list)
    albums_start: int | None = None
    albums_end: int | None = None
    albums_total: int | None = None


@dataclass(slots=True)
class DiscographyEntry:
    id: str | None
    title: str | None


@dataclass(slots=True)
class TrackRecord:
    """One entry of an album's track list."""

    id: str | None
    title: str | None
    genre_id: str | None = None
    genre: str | None = None
    year: int | None = None
    number: int | None = None
    count: int | None = None
    disc_number: int | None = None
    disc_count: int | None = None
    explicit: bool | None = None
    comments: str | None = None
    copyright: str | None = None
    preview_url: str | None = None
    released: str | None = None  # release date with letters stripped
    price: str | None = None
    vendor: str | None = None


@dataclass(slots=True)
class AlbumPage:
    """Everything a viewAlbum page tells about an album."""

    id: str | None
    artist_id: str | None
    genre_id: str | None
    path: list[PathSegment] | None
    title: str | None = None
    cover: Image | None = None
    artist_name: str | None = None
    info: list[str] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)
    tracks: list[TrackRecord] | None = None
    price_format: str | None = None
    list_type: str | None = None

# itms_catalog/extractors.py

"""Extract records from the store's view-description pages.

The store does not label its data; each value is found by walking a fixed
chain of layout containers from the page's ``ScrollView``. A missing
container yields ``None`` (or an empty list) for the values below it. Whether
that is fatal is up to the caller.
"""

from __future__ import annotations

import logging
import re
from typing import Any

from bs4 import Tag

from itms_catalog.document import (
    Document,
    attribute,
    children,
    descendants,
    find_path,
    first_child,
    has_only_text,
    last_child,
    next_sibling,
    next_siblings,
    text,
)
from itms_catalog.records import (
    AlbumPage,
    AlbumTile,
    ArtistPage,
    DiscographyEntry,
    Image,
    PartialRef,
    PathSegment,
    SearchHit,
    TrackRecord,
)

logger = logging.getLogger(__name__)

ALBUM_RANGE_RE = re.compile(r"^Albums: (\d+)-(\d+) of (\d+)$")
GENRE_LABEL_RE = re.compile(r"^Genre:\s+", re.IGNORECASE)
_LETTERS_RE = re.compile(r"[A-Za-z]")

# Layout chains, relative to the page's ScrollView.
ARTIST_HEADER = ("MatrixView", "View", "MatrixView")
ARTIST_CONTENT = (*ARTIST_HEADER, "VBoxView")
ARTIST_GRID = (*ARTIST_CONTENT, "VBoxView")
ALBUM_CONTENT = ("MatrixView", "VBoxView")
ALBUM_INFO = (*ALBUM_CONTENT, "MatrixView", "VBoxView")
SEARCH_RESULTS = ("MatrixView", "VBoxView", "MatrixView")
SEARCH_GRID = ("VBoxView", "MatrixView", "MatrixView")


# ---------------------------------------------------------------------------
# Breadcrumb
# ---------------------------------------------------------------------------


def extract_path(document: Document) -> list[PathSegment] | None:
    """Read the ``<Path>`` breadcrumb, or None if the page has none.

    Example XML (simplified):

        <Path>
            <PathElement displayName="Alternative">http://…/viewGenre?genreId=20</PathElement>
            <PathElement displayName="Elliott Smith">http://…/viewArtist?artistId=2893902</PathElement>
        </Path>
    """
    path = first_child(document.root, "Path")
    if path is None:
        return None

    return [
        PathSegment(name=attribute(element, "displayName"), url=text(element))
        for element in children(path, "PathElement")
    ]


def path_title(path: list[PathSegment] | None) -> str | None:
    """The page subject's title: the last breadcrumb's display name."""
    return path[-1].name if path else None


def path_genre(path: list[PathSegment] | None) -> str | None:
    """The primary genre's name: the first breadcrumb's display name."""
    return path[0].name if path else None


# ---------------------------------------------------------------------------
# Artist page (viewArtist)
# ---------------------------------------------------------------------------


def extract_artist(document: Document) -> ArtistPage:
    """Extract name, website, album grid and album counters of an artist."""
    root = document.root
    scroll = first_child(root, "ScrollView")
    path = extract_path(document)

    name = path_title(path)
    if name is None:
        heading = first_child(find_path(scroll, *ARTIST_HEADER), "TextView")
        name = text(heading) or None

    content = find_path(scroll, *ARTIST_CONTENT)
    website = attribute(first_child(content, "OpenURL"), "url")

    albums = _album_grid(find_path(scroll, *ARTIST_GRID))
    start, end, total = _album_range(content)
    if not total:
        total = len(albums)
    elif total < len(albums):
        logger.warning(
            "Album counter (%s) is below the %s album tiles found; using tile count.",
            total,
            len(albums),
        )
        total = len(albums)

    return ArtistPage(
        id=document.root_attribute("artistId"),
        genre_id=document.root_attribute("genreId"),
        name=name,
        path=path,
        website=website,
        albums=albums,
        albums_start=start,
        albums_end=end,
        albums_total=total,
    )


def _album_grid(grid: Tag | None) -> list[AlbumTile]:
    """Read row containers (HBoxView) of column containers (VBoxView)."""
    tiles: list[AlbumTile] = []
    for row in children(grid, "HBoxView"):
        for column in children(row, "VBoxView"):
            album = find_path(column, "MatrixView", "ViewAlbum")
            if album is None:
                continue
            tiles.append(_album_tile(album))
    return tiles


def _album_tile(album: Tag) -> AlbumTile:
    picture = first_child(album, "PictureView")
    return AlbumTile(
        id=attribute(album, "id"),
        title=attribute(album, "draggingName"),
        thumb=_image(picture) if picture is not None else None,
    )


def _album_range(content: Tag | None) -> tuple[int | None, int | None, int | None]:
    """Parse bold text like 'Albums: 1-6 of 42' into (start, end, total).

    Every bold node is checked; the last match wins.
    """
    counters: tuple[int | None, int | None, int | None] = (None, None, None)
    for bold in descendants(content, "B"):
        m = ALBUM_RANGE_RE.match(text(bold))
        if m:
            start, end, total = (int(group) for group in m.groups())
            counters = (start, end, total)
    return counters


# ---------------------------------------------------------------------------
# Discography (browseArtist)
# ---------------------------------------------------------------------------


def extract_discography(document: Document) -> list[DiscographyEntry] | None:
    """Read the album list of a browseArtist page, in document order.

    Returns None if the page has no ``plist/dict/array`` structure.
    """
    plist = next(descendants(document.root, "plist"), None)
    array = find_path(plist, "dict", "array")
    if array is None:
        return None

    entries: list[DiscographyEntry] = []
    for item in children(array, "dict"):
        data = read_plist_dict(item)
        entries.append(
            DiscographyEntry(
                id=_as_str(data.get("playlistId")),
                title=_as_str(data.get("playlistName")),
            ),
        )
    return entries


# ---------------------------------------------------------------------------
# Album page (viewAlbum)
# ---------------------------------------------------------------------------


def extract_album(document: Document) -> AlbumPage:
    """Extract title, cover, artist, info, notes and track list of an album."""
    root = document.root
    scroll = first_child(root, "ScrollView")
    artist_id = document.root_attribute("artistId")

    page = AlbumPage(
        id=document.root_attribute("playlistId"),
        artist_id=artist_id,
        genre_id=document.root_attribute("genreId"),
        path=extract_path(document),
    )

    # Several ViewAlbum nodes may exist; the first one with a title and a
    # picture is the album itself.
    for album in descendants(scroll, "ViewAlbum"):
        picture = first_child(album, "PictureView")
        if attribute(album, "draggingName") is not None and picture is not None:
            page.title = attribute(album, "draggingName")
            page.cover = _image(picture)
            break

    if artist_id is not None:
        for artist in descendants(scroll, "ViewArtist"):
            if attribute(artist, "id") == artist_id:
                page.artist_name = text(artist)
                break

    for line in children(find_path(scroll, *ALBUM_INFO), "TextView"):
        value = text(line)
        if has_only_text(line) and value:
            page.info.append(value)

    page.notes = _album_notes(scroll)

    track_list = _track_list(first_child(root, "TrackList"))
    if track_list is not None:
        page.tracks, page.price_format, page.list_type = track_list

    return page


def _album_notes(scroll: Tag | None) -> list[str]:
    """Text lines following the heading of the trailing notes block."""
    block = last_child(find_path(scroll, *ALBUM_CONTENT), "HBoxView")
    column = first_child(block, "VBoxView")
    heading = first_child(column, "TextView")
    return [text(line) for line in next_siblings(heading, "TextView")]


def _track_list(
    track_list: Tag | None,
) -> tuple[list[TrackRecord], str | None, str | None] | None:
    """Parse ``TrackList/plist/dict`` into tracks, price format and list type."""
    meta = find_path(track_list, "plist", "dict")
    if meta is None:
        return None

    data = read_plist_dict(meta)
    items = data.get("items")
    if not isinstance(items, list):
        return None

    tracks = [_track_record(item) for item in items if isinstance(item, dict)]
    return tracks, _as_str(data.get("priceFormat")), _as_str(data.get("listType"))


def _track_record(data: dict[str, Any]) -> TrackRecord:
    released = _as_str(data.get("releaseDate"))
    if released is not None:
        released = _LETTERS_RE.sub("", released)

    explicit = data.get("explicit")

    return TrackRecord(
        id=_as_str(data.get("songId")),
        title=_as_str(data.get("songName")),
        genre_id=_as_str(data.get("genreId")),
        genre=_as_str(data.get("genre")),
        year=_as_int(data.get("year")),
        number=_as_int(data.get("trackNumber")),
        count=_as_int(data.get("trackCount")),
        disc_number=_as_int(data.get("discNumber")),
        disc_count=_as_int(data.get("discCount")),
        explicit=None if explicit is None else bool(_as_int(explicit)),
        comments=_as_str(data.get("comments")),
        copyright=_as_str(data.get("copyright")),
        preview_url=_as_str(data.get("previewUrl")),
        released=released,
        price=_as_str(data.get("priceDisplay")),
        vendor=_as_str(data.get("vendorId")),
    )


# ---------------------------------------------------------------------------
# Search results
# ---------------------------------------------------------------------------


def extract_search(document: Document) -> list[SearchHit] | None:
    """Read the album tiles of a basic search page.

    Returns None if the page has no ``ScrollView`` at all and an empty list
    if it has one without results.
    """
    scroll = first_child(document.root, "ScrollView")
    if scroll is None:
        return None

    results = find_path(scroll, *SEARCH_RESULTS)
    hits: list[SearchHit] = []
    for tile in children(find_path(results, *SEARCH_GRID), "VBoxView"):
        album = find_path(tile, "MatrixView", "ViewAlbum")
        if album is None:
            continue

        hit = SearchHit(album=_album_tile(album))

        artist = find_path(tile, "MatrixView", "VBoxView", "TextView", "ViewArtist")
        if artist is not None:
            hit.artist = PartialRef(id=attribute(artist, "id"), name=text(artist))

            artist_line = artist.parent
            genre = first_child(next_sibling(artist_line, "TextView"), "ViewGenre")
            if genre is not None:
                hit.genre = PartialRef(
                    id=attribute(genre, "id"),
                    name=GENRE_LABEL_RE.sub("", text(genre)),
                )

        hits.append(hit)

    return hits


# ---------------------------------------------------------------------------
# Property lists
# ---------------------------------------------------------------------------


def read_plist_dict(node: Tag) -> dict[str, Any]:
    """Read alternating ``<key>``/value children into a dict."""
    data: dict[str, Any] = {}
    for key in children(node, "key"):
        value = next_sibling(key)
        if value is None or value.name == "key":
            data[text(key)] = None
            continue
        data[text(key)] = read_plist_value(value)
    return data


def read_plist_value(node: Tag) -> Any:
    """Convert one property-list value node into a Python value."""
    kind = node.name
    if kind == "dict":
        return read_plist_dict(node)
    if kind == "array":
        return [read_plist_value(child) for child in children(node)]
    if kind == "true":
        return True
    if kind == "false":
        return False
    if kind == "integer":
        return _as_int(text(node))
    if kind == "real":
        try:
            return float(text(node))
        except ValueError:
            return None
    # string, date and anything unknown stay as text
    return text(node)


# ---------------------------------------------------------------------------
# Helper functions
# ---------------------------------------------------------------------------


def _image(picture: Tag) -> Image:
    return Image(
        url=attribute(picture, "url"),
        width=_as_int(attribute(picture, "width")),
        height=_as_int(attribute(picture, "height")),
    )


def _as_int(value: Any) -> int | None:
    if value is None:
        return None
    if isinstance(value, (bool, int)):
        return int(value)
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def _as_str(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return "1" if value else "0"
    return str(value)

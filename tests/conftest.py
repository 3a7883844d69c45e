"""Pytest configuration and fixtures for catalog tests."""

from __future__ import annotations

import gzip

import httpx
import pytest

from itms_catalog.config import CatalogConfig
from itms_catalog.session import URL_TEMPLATES, CatalogSession
from itms_catalog.transport import HttpTransport

ARTIST_XML = """<?xml version="1.0" encoding="UTF-8"?>
<Document artistId="2893902" genreId="20">
  <Path>
    <PathElement displayName="Alternative">http://phobos.apple.com/viewGenre?genreId=20</PathElement>
    <PathElement displayName="Elliott Smith">http://phobos.apple.com/viewArtist?artistId=2893902</PathElement>
  </Path>
  <ScrollView>
    <MatrixView>
      <View>
        <MatrixView>
          <TextView>Elliott Smith (heading)</TextView>
          <VBoxView>
            <OpenURL url="http://www.sweetadeline.net/"/>
            <TextView><B>Top Albums</B></TextView>
            <TextView><B>Albums: 1-3 of 42</B></TextView>
            <VBoxView>
              <HBoxView>
                <VBoxView>
                  <MatrixView>
                    <ViewAlbum id="100" draggingName="Figure 8">
                      <PictureView url="http://a1.phobos.apple.com/100.jpg" width="60" height="60"/>
                    </ViewAlbum>
                  </MatrixView>
                </VBoxView>
                <VBoxView>
                  <MatrixView>
                    <ViewAlbum id="101" draggingName="XO"/>
                  </MatrixView>
                </VBoxView>
              </HBoxView>
              <HBoxView>
                <VBoxView>
                  <TextView>spacer</TextView>
                </VBoxView>
                <VBoxView>
                  <MatrixView>
                    <ViewAlbum id="102" draggingName="Either/Or">
                      <PictureView url="http://a1.phobos.apple.com/102.jpg" width="60" height="60"/>
                    </ViewAlbum>
                  </MatrixView>
                </VBoxView>
              </HBoxView>
            </VBoxView>
          </VBoxView>
        </MatrixView>
      </View>
    </MatrixView>
  </ScrollView>
</Document>
"""

ALBUM_XML = """<?xml version="1.0" encoding="UTF-8"?>
<Document artistId="2893902" genreId="20" playlistId="100">
  <Path>
    <PathElement displayName="Alternative">http://phobos.apple.com/viewGenre?genreId=20</PathElement>
    <PathElement displayName="Elliott Smith">http://phobos.apple.com/viewArtist?artistId=2893902</PathElement>
    <PathElement displayName="Figure 8">http://phobos.apple.com/viewAlbum?playlistId=100</PathElement>
  </Path>
  <ScrollView>
    <MatrixView>
      <VBoxView>
        <MatrixView>
          <ViewAlbum id="100" draggingName="Figure 8"/>
          <ViewAlbum id="100">
            <PictureView url="http://a1.phobos.apple.com/untitled.jpg" width="10" height="10"/>
          </ViewAlbum>
          <ViewAlbum id="100" draggingName="Figure 8">
            <PictureView url="http://a1.phobos.apple.com/100-cover.jpg" width="170" height="170"/>
          </ViewAlbum>
          <VBoxView>
            <TextView><ViewArtist id="999">Someone Else</ViewArtist></TextView>
            <TextView><ViewArtist id="2893902">Elliott Smith</ViewArtist></TextView>
            <TextView>Released Apr 18, 2000</TextView>
            <TextView>   </TextView>
            <TextView>Total Songs: 2</TextView>
          </VBoxView>
        </MatrixView>
        <HBoxView>
          <VBoxView>
            <TextView>Album Notes</TextView>
            <TextView>Recorded in Los Angeles.</TextView>
            <TextView>Produced by   Rob Schnapf.</TextView>
          </VBoxView>
        </HBoxView>
      </VBoxView>
    </MatrixView>
  </ScrollView>
  <TrackList>
    <plist version="1.0">
      <dict>
        <key>listType</key><string>album</string>
        <key>priceFormat</key><string>$#,##0.99</string>
        <key>items</key>
        <array>
          <dict>
            <key>songId</key><integer>1001</integer>
            <key>songName</key><string>Son of Sam</string>
            <key>genreId</key><integer>20</integer>
            <key>genre</key><string>Alternative</string>
            <key>year</key><integer>2000</integer>
            <key>trackNumber</key><integer>1</integer>
            <key>trackCount</key><integer>2</integer>
            <key>discNumber</key><integer>1</integer>
            <key>discCount</key><integer>1</integer>
            <key>explicit</key><integer>0</integer>
            <key>comments</key><string>Single</string>
            <key>copyright</key><string>2000 DreamWorks</string>
            <key>previewUrl</key><string>http://a2.phobos.apple.com/1001.m4p</string>
            <key>releaseDate</key><string>2000-04-18T07:00:00Z</string>
            <key>priceDisplay</key><string>$0.99</string>
            <key>vendorId</key><integer>17</integer>
          </dict>
          <dict>
            <key>songId</key><integer>1002</integer>
            <key>songName</key><string>Somebody That I Used to Know</string>
            <key>genreId</key><integer>20</integer>
            <key>genre</key><string>Alternative</string>
            <key>year</key><integer>2000</integer>
            <key>trackNumber</key><integer>2</integer>
            <key>trackCount</key><integer>2</integer>
            <key>discNumber</key><integer>1</integer>
            <key>discCount</key><integer>1</integer>
            <key>explicit</key><true/>
            <key>releaseDate</key><string>2000-04-18T07:00:00Z</string>
            <key>priceDisplay</key><string>$0.99</string>
          </dict>
        </array>
      </dict>
    </plist>
  </TrackList>
</Document>
"""

DISCOGRAPHY_XML = """<?xml version="1.0" encoding="UTF-8"?>
<Document artistId="2893902">
  <View>
    <plist version="1.0">
      <dict>
        <key>items</key>
        <array>
          <dict>
            <key>playlistId</key><integer>102</integer>
            <key>playlistName</key><string>Either/Or</string>
          </dict>
          <dict>
            <key>playlistId</key><integer>101</integer>
            <key>playlistName</key><string>XO</string>
          </dict>
          <dict>
            <key>playlistId</key><integer>100</integer>
            <key>playlistName</key><string>Figure 8</string>
          </dict>
        </array>
      </dict>
    </plist>
  </View>
</Document>
"""

SEARCH_XML = """<?xml version="1.0" encoding="UTF-8"?>
<Document>
  <ScrollView>
    <MatrixView>
      <VBoxView>
        <MatrixView>
          <VBoxView>
            <MatrixView>
              <MatrixView>
                <VBoxView>
                  <MatrixView>
                    <ViewAlbum id="100" draggingName="Figure 8">
                      <PictureView url="http://a1.phobos.apple.com/100.jpg" width="60" height="60"/>
                    </ViewAlbum>
                    <VBoxView>
                      <TextView><ViewArtist id="2893902">Elliott Smith</ViewArtist></TextView>
                      <TextView><ViewGenre id="20">Genre: Alternative</ViewGenre></TextView>
                    </VBoxView>
                  </MatrixView>
                </VBoxView>
                <VBoxView>
                  <TextView>No album in this tile</TextView>
                </VBoxView>
                <VBoxView>
                  <MatrixView>
                    <ViewAlbum id="200" draggingName="Elliott Smith"/>
                  </MatrixView>
                </VBoxView>
              </MatrixView>
            </MatrixView>
          </VBoxView>
        </MatrixView>
      </VBoxView>
    </MatrixView>
  </ScrollView>
</Document>
"""


class FakeStore:
    """Serves canned pages through httpx.MockTransport and records requests."""

    def __init__(self) -> None:
        self.pages: dict[str, tuple[int, bytes, dict[str, str]]] = {}
        self.requests: list[httpx.Request] = []

    def add(
        self,
        kind: str,
        identifier: str,
        xml: str,
        *,
        status: int = 200,
        compress: bool = True,
        headers: dict[str, str] | None = None,
    ) -> str:
        url = URL_TEMPLATES[kind] + identifier
        body = xml.encode("utf-8")
        if compress:
            body = gzip.compress(body)
        self.pages[url] = (status, body, headers or {})
        return url

    def calls(self, kind: str | None = None) -> int:
        if kind is None:
            return len(self.requests)
        prefix = URL_TEMPLATES[kind]
        return sum(1 for r in self.requests if str(r.url).startswith(prefix))

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        status, body, headers = self.pages.get(str(request.url), (404, b"", {}))
        # an iterator body keeps the response unread, as on the wire
        return httpx.Response(status, headers=headers, content=iter([body]))


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def session(store: FakeStore):
    transport = HttpTransport(transport=httpx.MockTransport(store.handler))
    with CatalogSession(CatalogConfig(), transport=transport) as catalog:
        yield catalog


@pytest.fixture
def artist_xml() -> str:
    return ARTIST_XML


@pytest.fixture
def album_xml() -> str:
    return ALBUM_XML


@pytest.fixture
def discography_xml() -> str:
    return DISCOGRAPHY_XML


@pytest.fixture
def search_xml() -> str:
    return SEARCH_XML

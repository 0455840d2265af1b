from unittest import mock

import feedparser
import pytest
import requests

from api.config import ServiceConfig
from api.resolver import (
    EpisodeResolver,
    ItunesRssStrategy,
    PodcastIndexStrategy,
    PodcastInfo,
    ResolverStrategy,
    WebPageStrategy,
    clean_text,
    extract_episode_id,
    parse_duration,
    split_title,
    titles_similar,
)
from conftest import EPISODE_URL

EPISODE_ID = "64a1b2c3d4e5f6a7b8c9d0e1"

EPISODE_PAGE = """
<html><head>
<title>fallback title</title>
<meta property="og:title" content="Why We Sleep | Night Owls">
<meta property="og:description" content="A talk about sleep">
<meta property="og:image" content="https://img.example.com/ep.jpg">
</head><body>
<script>window.__DATA__ = {"duration": 3725, "mediaUrl": "https://media.xyzcdn.net/ep.m4a"}</script>
</body></html>
"""

RSS = f"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0" xmlns:itunes="http://www.itunes.com/dtds/podcast-1.0.dtd">
<channel>
  <title>Night Owls</title>
  <itunes:image href="https://img.example.com/show.jpg"/>
  <item>
    <title>Morning Routines</title>
    <guid>other-guid</guid>
    <enclosure url="https://cdn.example.com/morning.mp3" type="audio/mpeg" length="1"/>
  </item>
  <item>
    <title>Why We Sleep</title>
    <guid>https://www.xiaoyuzhoufm.com/episode/{EPISODE_ID}</guid>
    <description><![CDATA[<p>A talk &amp; more</p>]]></description>
    <itunes:duration>1:02:05</itunes:duration>
    <itunes:image href="https://img.example.com/sleep.jpg"/>
    <enclosure url="https://cdn.example.com/sleep.mp3" type="audio/mpeg" length="1"/>
  </item>
</channel>
</rss>
"""


class TestHelpers:
    def test_extract_episode_id(self):
        assert extract_episode_id(EPISODE_URL) == EPISODE_ID
        assert extract_episode_id("https://example.com/podcast/1") is None

    @pytest.mark.parametrize("title,expected", [
        ("Why We Sleep | Night Owls", ("Why We Sleep", "Night Owls")),
        ("Why We Sleep - Night Owls", ("Why We Sleep", "Night Owls")),
        ("Standalone", ("Standalone", "")),
    ])
    def test_split_title(self, title, expected):
        assert split_title(title) == expected

    @pytest.mark.parametrize("a,b,similar", [
        ("Why We Sleep", "why we  sleep", True),
        ("EP12 Why We Sleep", "Why We Sleep", True),
        ("“Quoted” title", "quoted title", True),
        ("Why we sleep at night", "Why we sleep at noon", True),
        ("Why We Sleep", "Cooking with Fire", False),
        ("", "anything", False),
    ])
    def test_titles_similar(self, a, b, similar):
        assert titles_similar(a, b) is similar

    @pytest.mark.parametrize("value,seconds", [
        ("1:02:05", 3725),
        ("12:30", 750),
        ("900", 900),
        (1800, 1800),
        ("", 0),
        (None, 0),
        ("abc", 0),
    ])
    def test_parse_duration(self, value, seconds):
        assert parse_duration(value) == seconds

    def test_clean_text(self):
        assert clean_text("<p>Tom &amp; Jerry</p>") == "Tom & Jerry"
        assert clean_text("") == ""


class TestWebPageStrategy:
    def test_parse_page(self):
        info = WebPageStrategy.parse_page(EPISODE_PAGE)

        assert info.title == "Why We Sleep | Night Owls"
        assert info.description == "A talk about sleep"
        assert info.cover_url == "https://img.example.com/ep.jpg"
        assert info.audio_url == "https://media.xyzcdn.net/ep.m4a"
        assert info.duration == 3725

    def test_page_without_audio(self):
        info = WebPageStrategy.parse_page("<html><head><title>Just a page</title></head></html>")
        assert info.title == "Just a page"
        assert info.audio_url == ""


class TestItunesRss:
    def test_match_by_guid(self):
        info = ItunesRssStrategy.match_episode(feedparser.parse(RSS), EPISODE_ID, "unrelated")

        assert info.audio_url == "https://cdn.example.com/sleep.mp3"
        assert info.title == "Why We Sleep"
        assert info.description == "A talk & more"
        assert info.cover_url == "https://img.example.com/sleep.jpg"
        assert info.duration == 3725

    def test_match_by_title(self):
        info = ItunesRssStrategy.match_episode(feedparser.parse(RSS), "", "Morning Routines")
        assert info.audio_url == "https://cdn.example.com/morning.mp3"

    def test_no_match(self):
        assert ItunesRssStrategy.match_episode(feedparser.parse(RSS), "nope", "Cooking with Fire") is None

    def test_try_resolve_end_to_end(self):
        def get(url, **kwargs):
            if url == EPISODE_URL:
                return mock.Mock(ok=True, text=EPISODE_PAGE)
            if url == ItunesRssStrategy.search_url:
                assert kwargs["params"]["term"] == "Night Owls"
                return mock.Mock(ok=True, json=lambda: {"results": [
                    {"collectionName": "Something Else", "feedUrl": "https://feeds.example.com/other"},
                    {"collectionName": "Night Owls", "feedUrl": "https://feeds.example.com/owls",
                     "artworkUrl600": "https://img.example.com/600.jpg"},
                ]})
            if url == "https://feeds.example.com/owls":
                return mock.Mock(ok=True, content=RSS.encode("utf-8"))
            return mock.Mock(ok=False, status_code=404)

        session = mock.Mock(spec=requests.Session)
        session.get.side_effect = get

        info = ItunesRssStrategy(ServiceConfig(), session).try_resolve(EPISODE_URL)

        assert info.audio_url == "https://cdn.example.com/sleep.mp3"

    def test_episode_page_unavailable(self):
        session = mock.Mock(spec=requests.Session)
        session.get.return_value = mock.Mock(ok=False, status_code=503)
        assert ItunesRssStrategy(ServiceConfig(), session).try_resolve(EPISODE_URL) is None


def test_podcastindex_skipped_without_credentials():
    session = mock.Mock(spec=requests.Session)
    assert PodcastIndexStrategy(ServiceConfig(), session).try_resolve(EPISODE_URL) is None
    session.get.assert_not_called()


class _Stub(ResolverStrategy):
    def __init__(self, name, result=None, error=None):
        super().__init__(ServiceConfig(), session=mock.Mock())
        self.name = name
        self.result = result
        self.error = error
        self.calls = 0

    def try_resolve(self, url):
        self.calls += 1
        if self.error:
            raise self.error
        return self.result


class TestEpisodeResolver:
    def test_first_result_with_audio_wins(self):
        first = _Stub("first", PodcastInfo(title="no audio"))
        second = _Stub("second", PodcastInfo(title="hit", audio_url="https://a/1.mp3"))
        third = _Stub("third", PodcastInfo(title="later", audio_url="https://a/2.mp3"))

        info = EpisodeResolver([first, second, third]).resolve(EPISODE_URL)

        assert info.title == "hit"
        assert third.calls == 0

    def test_errors_fall_through_to_next_strategy(self):
        broken = _Stub("broken", error=requests.ConnectionError("down"))
        bad_json = _Stub("bad_json", error=ValueError("bad json"))
        good = _Stub("good", PodcastInfo(audio_url="https://a/1.mp3"))

        assert EpisodeResolver([broken, bad_json, good]).resolve(EPISODE_URL).audio_url == "https://a/1.mp3"

    def test_unexpected_strategy_error_falls_through(self):
        broken = _Stub("broken", error=AttributeError("'list' object has no attribute 'get'"))
        good = _Stub("good", PodcastInfo(audio_url="https://a/1.mp3"))

        info = EpisodeResolver([broken, good]).resolve(EPISODE_URL)

        assert info.audio_url == "https://a/1.mp3"
        assert good.calls == 1

    def test_first_partial_result_is_kept(self):
        resolver = EpisodeResolver([_Stub("a", PodcastInfo(title="first")), _Stub("b", PodcastInfo(title="second"))])
        assert resolver.resolve(EPISODE_URL).title == "first"

    def test_partial_metadata_when_no_audio_anywhere(self):
        resolver = EpisodeResolver([_Stub("a"), _Stub("b", PodcastInfo(title="meta only")), _Stub("c")])

        info = resolver.resolve(EPISODE_URL)

        assert info.title == "meta only"
        assert info.audio_url == ""

    def test_nothing_found(self):
        assert EpisodeResolver([_Stub("a"), _Stub("b")]).resolve(EPISODE_URL) is None

    def test_url_without_episode_id(self):
        stub = _Stub("a", PodcastInfo(audio_url="https://a/1.mp3"))
        assert EpisodeResolver([stub]).resolve("https://www.xiaoyuzhoufm.com/podcast/1") is None
        assert stub.calls == 0

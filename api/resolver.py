"""
Resolve a podcast episode page to playable audio plus metadata.

Several independent strategies are tried in a fixed order; the first one that
produces an audio URL wins. A result without audio is still kept so the
caller can persist whatever metadata was found.
"""
import hashlib
import html
import logging
import re
import time
from dataclasses import dataclass
from urllib.parse import quote

import feedparser
import requests
from bs4 import BeautifulSoup

from .config import ServiceConfig

logger = logging.getLogger(__name__)

BROWSER_UA = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
MOBILE_UA = "Mozilla/5.0 (iPhone; CPU iPhone OS 16_0 like Mac OS X)"
PAGE_HEADERS = {
    "User-Agent": BROWSER_UA,
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "zh-CN,zh;q=0.9,en;q=0.8",
}

EPISODE_ID_RE = re.compile(r"episode/(\w+)")
TITLE_SPLIT_RE = re.compile(r"\s*\|\s*|\s+-\s+")
AUDIO_URL_PATTERNS = [
    re.compile(r'"mediaUrl"\s*:\s*"([^"]+)"'),
    re.compile(r'"audioUrl"\s*:\s*"([^"]+)"'),
    re.compile(r'"audio"\s*:\s*"([^"]+)"'),
    re.compile(r'"(https://[^"]*\.xiaoyuzhoufm\.com[^"]*\.mp3[^"]*)"'),
    re.compile(r'"(https://media\.xyzcdn\.net[^"]*\.mp3[^"]*)"'),
]
DURATION_PATTERNS = [
    re.compile(r'"duration"\s*:\s*(\d+)'),
    re.compile(r'"durationInSeconds"\s*:\s*(\d+)'),
]


@dataclass
class PodcastInfo:
    title: str = ""
    description: str = ""
    cover_url: str = ""
    audio_url: str = ""
    duration: int = 0


# -----------------------------------------------------
# Helpers
# -----------------------------------------------------
def extract_episode_id(url: str) -> str | None:
    m = EPISODE_ID_RE.search(url or "")
    return m.group(1) if m else None


def split_title(title: str) -> tuple[str, str]:
    """'Episode | Show' -> ('Episode', 'Show'); show is '' when there is no separator."""
    parts = TITLE_SPLIT_RE.split(title or "")
    if len(parts) >= 2:
        return parts[0].strip(), parts[-1].strip()
    return (title or "").strip(), ""


def _normalize_title(s: str) -> str:
    s = re.sub(r"[\s\u3000]+", "", s.lower())
    return re.sub(r"[\"'“”‘’]", "", s).strip()


def _bigrams(s: str) -> set[str]:
    return {s[i:i + 2] for i in range(len(s) - 1)}


def titles_similar(a: str, b: str, threshold: float = 0.4) -> bool:
    """Equal or contained after normalization, else character-bigram Jaccard >= threshold."""
    if not a or not b:
        return False
    t1, t2 = _normalize_title(a), _normalize_title(b)
    if not t1 or not t2:
        return False
    if t1 == t2 or t1 in t2 or t2 in t1:
        return True
    b1, b2 = _bigrams(t1), _bigrams(t2)
    if not b1 or not b2:
        return False
    inter = len(b1 & b2)
    return inter / (len(b1) + len(b2) - inter) >= threshold


def parse_duration(value) -> int:
    """'H:MM:SS', 'MM:SS' or plain seconds -> seconds (0 when unparseable)."""
    if value is None or value == "":
        return 0
    if isinstance(value, (int, float)):
        return max(0, int(value))
    parts = str(value).strip().split(":")
    try:
        nums = [int(float(p)) for p in parts]
    except ValueError:
        return 0
    if len(nums) == 3:
        return nums[0] * 3600 + nums[1] * 60 + nums[2]
    if len(nums) == 2:
        return nums[0] * 60 + nums[1]
    return max(0, nums[0]) if len(nums) == 1 else 0


def clean_text(text: str) -> str:
    """Strip markup and entities from feed/page text."""
    if not text:
        return ""
    return BeautifulSoup(html.unescape(text), "html.parser").get_text().strip()


def meta_content(soup: BeautifulSoup, prop: str) -> str:
    tag = soup.find("meta", attrs={"property": prop}) or soup.find("meta", attrs={"name": prop})
    return (tag.get("content") or "").strip() if tag else ""


def page_title(soup: BeautifulSoup) -> str:
    title = meta_content(soup, "og:title")
    if title:
        return title
    return soup.title.string.strip() if soup.title and soup.title.string else ""


def _best_match(items: list[dict], name: str, key: str) -> dict:
    if name:
        wanted = name.lower()
        for item in items:
            candidate = (item.get(key) or "").lower()
            if candidate and (wanted in candidate or candidate in wanted):
                return item
    return items[0]


# -----------------------------------------------------
# Strategies
# -----------------------------------------------------
class ResolverStrategy:
    name = "base"

    def __init__(self, config: ServiceConfig, session: requests.Session | None = None):
        self.config = config
        self.session = session or requests.Session()

    def try_resolve(self, url: str) -> PodcastInfo | None:
        raise NotImplementedError

    def _get(self, url: str, headers: dict | None = None, **kwargs) -> requests.Response | None:
        resp = self.session.get(url, headers=headers or PAGE_HEADERS, timeout=self.config.http_timeout, **kwargs)
        if not resp.ok:
            logger.info("[%s] GET %s -> %s", self.name, url, resp.status_code)
            return None
        return resp

    def _page(self, url: str) -> BeautifulSoup | None:
        resp = self._get(url)
        return BeautifulSoup(resp.text, "html.parser") if resp is not None else None


class ItunesRssStrategy(ResolverStrategy):
    """Find the show on iTunes, then the episode in the show's RSS feed."""

    name = "itunes_rss"
    search_url = "https://itunes.apple.com/search"

    def try_resolve(self, url: str) -> PodcastInfo | None:
        episode_id = extract_episode_id(url) or ""
        soup = self._page(url)
        if soup is None:
            return None
        full_title = page_title(soup)
        if not full_title:
            logger.info("[%s] no episode title on page", self.name)
            return None

        episode_title, show_name = split_title(full_title)
        if not show_name:
            m = re.search(r'"podcastTitle":"([^"]+)"', str(soup))
            show_name = m.group(1) if m else ""
        logger.info("[%s] show=%r episode=%r", self.name, show_name, episode_title)

        resp = self._get(
            self.search_url,
            headers={"User-Agent": "Mozilla/5.0", "Accept": "application/json"},
            params={"term": show_name or episode_title, "entity": "podcast", "limit": 5},
        )
        if resp is None:
            return None
        results = resp.json().get("results") or []
        if not results:
            return None
        show = _best_match(results, show_name, "collectionName")
        if not show.get("feedUrl"):
            return None

        rss = self._get(
            show["feedUrl"],
            headers={"User-Agent": "Mozilla/5.0", "Accept": "application/rss+xml,application/xml,text/xml,*/*"},
        )
        if rss is None:
            return None
        info = self.match_episode(feedparser.parse(rss.content), episode_id, episode_title)
        if info and not info.cover_url:
            info.cover_url = show.get("artworkUrl600") or ""
        return info

    @staticmethod
    def match_episode(feed, episode_id: str, episode_title: str) -> PodcastInfo | None:
        entries = feed.entries or []
        logger.debug("Found %d items in RSS", len(entries))

        for entry in entries:
            audio = _enclosure_url(entry)
            guid = entry.get("id", "")
            if not audio:
                continue
            if (episode_id and episode_id in guid) or titles_similar(entry.get("title", ""), episode_title):
                return _entry_info(entry, audio, feed)
        return None


def _enclosure_url(entry) -> str:
    for enc in entry.get("enclosures") or []:
        if enc.get("href"):
            return enc["href"]
    for link in entry.get("links") or []:
        if link.get("rel") == "enclosure" and link.get("href"):
            return link["href"]
    return ""


def _entry_info(entry, audio_url: str, feed=None) -> PodcastInfo:
    cover = (entry.get("image") or {}).get("href", "")
    if not cover and feed is not None:
        cover = (feed.feed.get("image") or {}).get("href", "")
    return PodcastInfo(
        title=entry.get("title", ""),
        description=clean_text(entry.get("summary", "")),
        cover_url=cover,
        audio_url=audio_url,
        duration=parse_duration(entry.get("itunes_duration")),
    )


class PodcastIndexStrategy(ResolverStrategy):
    """Look the show up in the PodcastIndex API and match the episode by title."""

    name = "podcastindex"
    base_url = "https://api.podcastindex.org/api/1.0"

    def _auth_headers(self) -> dict:
        now = str(int(time.time()))
        digest = hashlib.sha1(
            f"{self.config.podcastindex_api_key}{self.config.podcastindex_api_secret}{now}".encode("utf-8")
        ).hexdigest()
        return {
            "User-Agent": "PodcastDigest/1.0",
            "X-Auth-Key": self.config.podcastindex_api_key,
            "X-Auth-Date": now,
            "Authorization": digest,
        }

    def try_resolve(self, url: str) -> PodcastInfo | None:
        if not self.config.has_podcastindex:
            logger.debug("[%s] no credentials configured, skipping", self.name)
            return None
        soup = self._page(url)
        if soup is None:
            return None
        episode_title, show_name = split_title(page_title(soup))
        if not show_name:
            return None

        resp = self._get(f"{self.base_url}/search/byterm?q={quote(show_name)}", headers=self._auth_headers())
        if resp is None:
            return None
        feeds = resp.json().get("feeds") or []
        if not feeds:
            logger.info("[%s] no feeds found for %r", self.name, show_name)
            return None
        feed = _best_match(feeds, show_name, "title")

        # auth headers are time-stamped, so sign each request separately
        resp = self._get(
            f"{self.base_url}/episodes/byfeedid?id={feed['id']}&max=100",
            headers=self._auth_headers(),
        )
        if resp is None:
            return None
        for ep in resp.json().get("items") or []:
            if titles_similar(ep.get("title", ""), episode_title):
                return PodcastInfo(
                    title=ep.get("title", ""),
                    description=clean_text(ep.get("description") or ""),
                    cover_url=ep.get("image") or ep.get("feedImage") or feed.get("image") or "",
                    audio_url=ep.get("enclosureUrl") or "",
                    duration=parse_duration(ep.get("duration")),
                )
        logger.info("[%s] no matching episode in feed %s", self.name, feed.get("id"))
        return None


class XiaoyuzhouApiStrategy(ResolverStrategy):
    name = "xiaoyuzhou_api"
    api_urls = (
        "https://www.xiaoyuzhoufm.com/api/episode/{id}",
        "https://api.xiaoyuzhoufm.com/v1/episodes/{id}",
    )

    def try_resolve(self, url: str) -> PodcastInfo | None:
        episode_id = extract_episode_id(url)
        if not episode_id:
            return None
        headers = {
            "User-Agent": MOBILE_UA,
            "Accept": "application/json",
            "Referer": "https://www.xiaoyuzhoufm.com/",
        }
        for api_url in self.api_urls:
            try:
                resp = self._get(api_url.format(id=episode_id), headers=headers)
                if resp is None:
                    continue
                data = resp.json()
            except (requests.RequestException, ValueError) as e:
                logger.info("[%s] %s failed: %s", self.name, api_url, e)
                continue

            episode = data.get("data") or data.get("episode") or data
            audio = episode.get("mediaUrl") or episode.get("audio") or episode.get("audioUrl")
            if audio:
                return PodcastInfo(
                    title=episode.get("title") or "Unknown",
                    description=episode.get("description") or "",
                    cover_url=episode.get("cover") or episode.get("image") or "",
                    audio_url=audio,
                    duration=parse_duration(episode.get("duration")),
                )
        return None


class WebPageStrategy(ResolverStrategy):
    """Scrape the episode page itself (Open Graph tags and embedded JSON)."""

    name = "web_page"

    def try_resolve(self, url: str) -> PodcastInfo | None:
        resp = self._get(url)
        if resp is None:
            return None
        return self.parse_page(resp.text)

    @staticmethod
    def parse_page(text: str) -> PodcastInfo:
        soup = BeautifulSoup(text, "html.parser")
        audio = meta_content(soup, "og:audio")
        if not audio:
            tag = soup.find("audio")
            audio = (tag.get("src") or "") if tag else ""
        if not audio:
            for pattern in AUDIO_URL_PATTERNS:
                m = pattern.search(text)
                if m:
                    audio = m.group(1)
                    break

        duration = 0
        for pattern in DURATION_PATTERNS:
            m = pattern.search(text)
            if m:
                duration = int(m.group(1))
                break

        return PodcastInfo(
            title=page_title(soup) or "Unknown",
            description=meta_content(soup, "og:description"),
            cover_url=meta_content(soup, "og:image"),
            audio_url=audio,
            duration=duration,
        )


DEFAULT_STRATEGIES = (ItunesRssStrategy, PodcastIndexStrategy, XiaoyuzhouApiStrategy, WebPageStrategy)


class EpisodeResolver:
    def __init__(self, strategies: list[ResolverStrategy]):
        self.strategies = list(strategies)

    @classmethod
    def from_config(cls, config: ServiceConfig) -> "EpisodeResolver":
        session = requests.Session()
        return cls([strategy(config, session) for strategy in DEFAULT_STRATEGIES])

    def resolve(self, url: str) -> PodcastInfo | None:
        """
        First strategy result carrying an audio URL. Falls back to the first
        metadata-only result, or None when every strategy came up empty.
        """
        if not extract_episode_id(url):
            logger.error("Could not extract an episode id from %s", url)
            return None

        partial = None
        for strategy in self.strategies:
            logger.info("Resolving %s via %s", url, strategy.name)
            try:
                info = strategy.try_resolve(url)
            except Exception:
                logger.warning("Strategy %s failed for %s", strategy.name, url, exc_info=True)
                continue
            if info is None:
                continue
            if info.audio_url:
                logger.info("Resolved %s via %s", url, strategy.name)
                return info
            if partial is None:
                partial = info

        logger.error("All strategies failed to find audio for %s", url)
        return partial

"""Normalizers for Otakudesu-style HTML pages.

Selectors churn between mirrors and releases; each field therefore goes through
a ranked strategy list (see ``strategies``). Only normalized models leave this
module.
"""

from __future__ import annotations

import re
from typing import NamedTuple

from bs4 import BeautifulSoup, Tag

from kitsuneid.models.catalog import (
    AiringStatus,
    AnimeDetail,
    CatalogEntry,
    DaySchedule,
    DownloadLink,
    EpisodeRef,
    EpisodeVideo,
    QualityOption,
)
from kitsuneid.normalizer.episodes import dedupe_entries, parse_episode_number, sort_episodes
from kitsuneid.normalizer.identifiers import derive_identifier, slug_from_url, title_from_slug
from kitsuneid.normalizer.strategies import (
    clean_text,
    first_match,
    first_present,
    select_attr,
    select_text,
)

SYNOPSIS_PLACEHOLDER = "No synopsis available."
MAX_DOWNLOADS_PER_QUALITY = 3

# Known admin-ajax actions, used when the episode page scripts do not reveal them.
DEFAULT_STREAM_ACTION = "2a3505c93b0035d3f455df82bf976b84"
DEFAULT_NONCE_ACTION = "aa1208d27f29ca340c92c66d1926f13f"

_COUNT_RE = re.compile(r"\d+(?:\s*-\s*\d+)?")
_RATING_RE = re.compile(r"\d+(?:[.,]\d+)?")
_QUALITY_RE = re.compile(r"\d{3,4}p", re.IGNORECASE)
_ACTION_RE = re.compile(r"""action\s*[:=]\s*["']([^"']+)["']""")
_TITLE_SUFFIX_RE = re.compile(r"\s*[|–-]\s*Otakudesu.*$", re.IGNORECASE)

_LISTING_ITEM = ".venz ul li"
_IMG_ATTRS = ("src", "data-src", "data-lazy-src")


def parse_html(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "lxml")


def parse_status(text: str | None) -> AiringStatus:
    value = (text or "").lower()
    if "ongoing" in value or "on-going" in value or "currently" in value:
        return AiringStatus.ONGOING
    if "complete" in value or "finished" in value or "tamat" in value:
        return AiringStatus.COMPLETE
    return AiringStatus.UNKNOWN


def _episode_count(text: str | None) -> str | None:
    match = _COUNT_RE.search(text or "")
    return re.sub(r"\s+", "", match.group(0)) if match else None


def _rating(text: str | None) -> str | None:
    match = _RATING_RE.search(text or "")
    return match.group(0).replace(",", ".") if match else None


# ---------------------------------------------------------------------------
# Listings
# ---------------------------------------------------------------------------

_ENTRY_LINK = [
    select_attr(".thumb a", "href"),
    select_attr("a[href*='/anime/']", "href"),
    select_attr("a", "href"),
]
_ENTRY_TITLE = [
    select_text(".jdlflm"),
    select_text("h2"),
    select_attr("img", "alt", "title"),
    select_text("a"),
]
_ENTRY_THUMB = [select_attr("img", *_IMG_ATTRS)]
_ENTRY_EPISODES = [select_text(".epz"), select_text(".episode")]
_ENTRY_DAY = [select_text(".epztipe"), select_text(".epzdesc"), select_text(".epsdate")]
_ENTRY_RATING = [select_text(".epztipe"), select_text(".rattingflm")]


def normalize_listing_entry(node: Tag, status: AiringStatus) -> CatalogEntry | None:
    """Normalize one ``<li>`` of an ongoing/complete listing.

    Returns ``None`` when neither a title nor an identifier can be recovered.
    """
    url = first_match(node, _ENTRY_LINK)
    if url and "/anime/" not in url:
        url = None
    title = first_match(node, _ENTRY_TITLE)
    identifier = derive_identifier(url, title)
    if identifier is None:
        return None

    ongoing = status is AiringStatus.ONGOING
    return CatalogEntry(
        title=title or title_from_slug(identifier),
        identifier=identifier,
        source_url=url,
        thumbnail=first_match(node, _ENTRY_THUMB),
        episode_count=_episode_count(first_match(node, _ENTRY_EPISODES)),
        # The middle badge is the release day on ongoing pages and the score on complete pages
        rating=None if ongoing else _rating(first_match(node, _ENTRY_RATING)),
        status=status,
        air_day=first_match(node, _ENTRY_DAY) if ongoing else None,
    )


def normalize_listing(html: str, status: AiringStatus) -> list[CatalogEntry]:
    soup = parse_html(html)
    entries = (normalize_listing_entry(li, status) for li in soup.select(_LISTING_ITEM))
    return dedupe_entries(entry for entry in entries if entry is not None)


def _search_sets(node: Tag) -> dict[str, str]:
    """``<div class="set"><b>Status</b> : Completed</div>`` → ``{"status": "Completed"}``."""
    sets: dict[str, str] = {}
    for div in node.select(".set"):
        text = clean_text(div.get_text(" "))
        if text and ":" in text:
            key, value = text.split(":", 1)
            sets[key.strip().lower()] = value.strip()
    return sets


def normalize_search_entry(node: Tag) -> CatalogEntry | None:
    url = first_match(node, [select_attr("h2 a", "href"), select_attr("a", "href")])
    title = first_match(node, [select_text("h2"), select_text("a")])
    identifier = derive_identifier(url, title)
    if identifier is None:
        return None
    sets = _search_sets(node)
    return CatalogEntry(
        title=title or title_from_slug(identifier),
        identifier=identifier,
        source_url=url,
        thumbnail=first_match(node, _ENTRY_THUMB),
        rating=_rating(sets.get("rating")),
        status=parse_status(sets.get("status")),
    )


def normalize_search(html: str) -> list[CatalogEntry]:
    soup = parse_html(html)
    entries = (normalize_search_entry(li) for li in soup.select("ul.chivsrc li"))
    return dedupe_entries(entry for entry in entries if entry is not None)


def normalize_schedule(html: str) -> list[DaySchedule]:
    soup = parse_html(html)
    schedules: list[DaySchedule] = []
    for block in soup.select(".kglist321"):
        day = first_match(block, [select_text("h2"), select_text("h3")])
        if not day:
            continue
        entries: list[CatalogEntry] = []
        for link in block.select("ul li a"):
            url = clean_text(link.get("href"))
            title = clean_text(link.get_text(" "))
            identifier = derive_identifier(url, title)
            if identifier is None:
                continue
            entries.append(
                CatalogEntry(
                    title=title or title_from_slug(identifier),
                    identifier=identifier,
                    source_url=url,
                    status=AiringStatus.ONGOING,
                    air_day=day,
                )
            )
        schedules.append(DaySchedule(day=day, anime_list=dedupe_entries(entries)))
    return schedules


# ---------------------------------------------------------------------------
# Detail
# ---------------------------------------------------------------------------


def _info_fields(soup: BeautifulSoup) -> dict[str, str]:
    """``<p><b>Skor</b>: 8.5</p>`` rows of the info box, keyed by lowercased label."""
    info: dict[str, str] = {}
    for p in soup.select(".infozingle p"):
        text = clean_text(p.get_text(" "))
        if text and ":" in text:
            key, value = text.split(":", 1)
            value = value.strip()
            if value:
                info.setdefault(key.strip().lower(), value)
    return info


def _synopsis(soup: BeautifulSoup) -> str:
    paragraphs = [clean_text(p.get_text(" ")) for p in soup.select(".sinopc p")]
    joined = " ".join(p for p in paragraphs if p)
    return first_present(
        joined,
        first_match(soup, [select_text(".sinopc"), select_text(".sinom")]),
        first_match(soup, [select_attr("meta[property='og:description']", "content")]),
        default=SYNOPSIS_PLACEHOLDER,
    )


def _genres(soup: BeautifulSoup, info: dict[str, str]) -> list[str]:
    genres: list[str] = []
    links = soup.select(".infozingle a[rel~=tag]") or soup.select(".infozingle a[href*='/genres/']")
    names = [clean_text(a.get_text(" ")) for a in links]
    if not names and info.get("genre"):
        names = [clean_text(part) for part in info["genre"].split(",")]
    for name in names:
        if name and name not in genres:
            genres.append(name)
    return genres


def _episode_links(soup: BeautifulSoup) -> list[Tag]:
    """Links of the regular episode list, skipping batch and full-season blocks."""
    for block in soup.select(".episodelist"):
        header = first_match(block, [select_text(".smokelister"), select_text(".monktit")], "")
        header = header.lower()
        if "episode" in header and "batch" not in header:
            links = block.select("ul li a")
            if links:
                return links
    return [a for a in soup.select("a[href*='/episode/']") if "batch" not in (a.get("href") or "")]


def _episodes(soup: BeautifulSoup) -> list[EpisodeRef]:
    # Keep-first in upstream order, before positions are assigned.
    links: dict[str, Tag] = {}
    for link in _episode_links(soup):
        identifier = slug_from_url(clean_text(link.get("href")))
        if identifier is not None and identifier not in links:
            links[identifier] = link

    refs: list[EpisodeRef] = []
    # Upstream lists newest first; positions count from the oldest.
    for position, (identifier, link) in enumerate(reversed(links.items()), start=1):
        title = clean_text(link.get_text(" ")) or ""
        refs.append(
            EpisodeRef(
                title=title or title_from_slug(identifier),
                episode_number=parse_episode_number(title, position),
                identifier=identifier,
            )
        )
    return sort_episodes(refs)


def normalize_detail(html: str, slug: str) -> AnimeDetail | None:
    """Normalize an anime detail page; ``None`` when the page has no usable record."""
    soup = parse_html(html)
    info = _info_fields(soup)

    heading = first_match(soup, [select_text(".jdlrx h1"), select_text("h1.entry-title")])
    episodes = _episodes(soup)
    # Challenge and soft-404 pages carry a <title> but none of these.
    if not info and not heading and not episodes:
        return None

    page_title = first_match(soup, [select_text("title")])
    title = first_present(
        heading,
        info.get("judul"),
        first_match(soup, [select_text("h1")]),
        _TITLE_SUFFIX_RE.sub("", page_title) if page_title else None,
    )
    canonical = first_match(soup, [select_attr("meta[property='og:url']", "content")])
    return AnimeDetail(
        title=title or title_from_slug(slug),
        identifier=slug,
        source_url=canonical,
        thumbnail=first_match(
            soup,
            [
                select_attr(".fotoanime img", *_IMG_ATTRS),
                select_attr("meta[property='og:image']", "content"),
            ],
        ),
        episode_count=first_present(
            info.get("total episode"),
            str(len(episodes)) if episodes else None,
            default="?",
        ),
        rating=_rating(info.get("skor")),
        status=parse_status(info.get("status")),
        media_type=info.get("tipe") or "TV",
        synopsis=_synopsis(soup),
        genres=_genres(soup, info),
        studio=info.get("studio"),
        duration=info.get("durasi"),
        aired_range=info.get("tanggal rilis"),
        episodes=episodes,
    )


# ---------------------------------------------------------------------------
# Episode
# ---------------------------------------------------------------------------


class AjaxActions(NamedTuple):
    stream: str
    nonce: str


def extract_ajax_actions(html: str) -> AjaxActions:
    """Find the admin-ajax action names in the inline player scripts.

    The stream call sends ``nonce`` alongside its action; the nonce call sends
    its action alone. Falls back to the known action names.
    """
    stream: str | None = None
    nonce: str | None = None
    for match in _ACTION_RE.finditer(html):
        preceding = html[max(0, match.start() - 120) : match.start()]
        if "nonce" in preceding.lower():
            stream = stream or match.group(1)
        else:
            nonce = nonce or match.group(1)
    if stream and not nonce:
        nonce = DEFAULT_NONCE_ACTION
    return AjaxActions(stream=stream or DEFAULT_STREAM_ACTION, nonce=nonce or DEFAULT_NONCE_ACTION)


def _quality_label(ul: Tag) -> str:
    classes = ul.get("class") or []
    for cls in classes:
        match = _QUALITY_RE.search(cls)
        if match:
            return match.group(0).lower()
    heading = first_match(ul, [select_text("span"), select_text("strong")])
    if heading is None:
        sibling = ul.find_previous_sibling()
        heading = clean_text(sibling.get_text(" ")) if isinstance(sibling, Tag) else None
    if heading:
        match = _QUALITY_RE.search(heading)
        return match.group(0).lower() if match else heading
    return "HD"


def _qualities(soup: BeautifulSoup) -> list[QualityOption]:
    options: list[QualityOption] = []
    for ul in soup.select(".mirrorstream > ul"):
        label = _quality_label(ul)
        for link in ul.select("li a[data-content]"):
            token = clean_text(link.get("data-content"))
            if not token:
                continue
            options.append(
                QualityOption(
                    quality_label=label,
                    server_label=clean_text(link.get_text(" ")) or "Server",
                    server_token=token,
                )
            )
    return options


def _downloads(soup: BeautifulSoup) -> list[DownloadLink]:
    links: list[DownloadLink] = []
    per_quality: dict[str, int] = {}
    for li in soup.select(".download ul li"):
        heading = first_match(li, [select_text("strong"), select_text("b")])
        if not heading:
            continue
        match = _QUALITY_RE.search(heading)
        quality = match.group(0).lower() if match else heading
        for a in li.select("a[href]"):
            if per_quality.get(quality, 0) >= MAX_DOWNLOADS_PER_QUALITY:
                break
            url = clean_text(a.get("href"))
            if not url or not url.startswith("http"):
                continue
            links.append(
                DownloadLink(
                    quality_label=quality,
                    host_label=clean_text(a.get_text(" ")) or "Download",
                    url=url,
                )
            )
            per_quality[quality] = per_quality.get(quality, 0) + 1
    return links


def _navigation(soup: BeautifulSoup) -> tuple[str | None, str | None]:
    prev_id: str | None = None
    next_id: str | None = None
    for link in soup.select(".flir a"):
        label = " ".join(filter(None, [link.get_text(" "), link.get("title")])).lower()
        href = clean_text(link.get("href"))
        if "/episode/" not in (href or ""):
            continue
        if prev_id is None and ("prev" in label or "sebelum" in label):
            prev_id = slug_from_url(href)
        elif next_id is None and ("next" in label or "selanjut" in label):
            next_id = slug_from_url(href)
    return prev_id, next_id


def normalize_episode(html: str, slug: str) -> EpisodeVideo:
    soup = parse_html(html)
    page_title = first_match(soup, [select_text("title")])
    title = first_present(
        first_match(
            soup, [select_text("h1.posttl"), select_text(".venutama h1"), select_text("h1")]
        ),
        _TITLE_SUFFIX_RE.sub("", page_title) if page_title else None,
        default=title_from_slug(slug),
    )
    default_stream = first_match(
        soup,
        [
            select_attr(".player-embed iframe", *_IMG_ATTRS),
            select_attr("#pembed iframe", *_IMG_ATTRS),
            select_attr("iframe[src*='embed']", "src"),
            select_attr("iframe", *_IMG_ATTRS),
        ],
    )
    if default_stream and not default_stream.startswith("http"):
        default_stream = None
    prev_id, next_id = _navigation(soup)
    return EpisodeVideo(
        title=title,
        qualities=_qualities(soup),
        default_stream_url=default_stream,
        prev_episode_id=prev_id,
        next_episode_id=next_id,
        downloads=_downloads(soup),
    )

"""Field extraction from rendered stihirus.ru pages.

Selectors for every field live at module level. Most fields degrade to an
empty/default value when missing; only a document that is not a profile page
at all raises :class:`ParsingError`.
"""

import logging
import re

from bs4 import BeautifulSoup, Tag

from stihirus.config import ClientConfig
from stihirus.errors import ParsingError
from stihirus.models import AuthorStats, Collection, HomepageAuthor, HomepagePoem, ProfileFields

logger = logging.getLogger(__name__)

PROFILE_CSS = ".avtorinfo"
AUTHOR_ID_ATTR = "data-userid"
DISPLAY_NAME_CSS = (".avtorinfo__name",)
DESCRIPTION_CSS = (".avtorinfo__userinfo",)
AVATAR_CSS = ".page_avatar_img"
HEADER_CSS = ".page_header_img"
STATS_BAR_CSS = "#show_stat .progress-bar"
COLLECTION_LINK_CSS = "#show_sborniki a"
FOOTER_CSS = ".card-footer .small"

AVATAR_PLACEHOLDER = "/img/profile/none.jpg"
HEADER_PLACEHOLDER_MARKER = "none_header"

LAST_VISIT_LABEL = "Последний визит:"
STATUS_LABEL = "Статус:"
PREMIUM_LABEL = "Премиум доступ"

RECOMMENDED_SECTION_CSS = ".card-recomended"
WEEKLY_RATED_SECTION_CSS = ".card-week-rating"
ACTIVE_SECTION_CSS = ".card-active-avtors"
AUTHOR_CARD_CSS = ".friends-window__friend-card"
PROMO_POEM_CSS = ".card-recomended-proizv .border-bottom"

_STYLE_URL_RE = re.compile(r"url\(([^)]+)\)")
_INT_RE = re.compile(r"-?\d+")


def soup_of(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


def parse_int(value: object, default: int = 0) -> int:
    """Parse the first integer in ``value``; ``default`` when there is none."""
    if value is None:
        return default
    if isinstance(value, int):
        return value
    match = _INT_RE.search(str(value))
    return int(match.group(0)) if match else default


def text_of(soup: BeautifulSoup | Tag, selectors: tuple[str, ...]) -> str:
    """First non-empty stripped text among ``selectors``."""
    for css in selectors:
        el = soup.select_one(css)
        if el:
            text = el.get_text(" ", strip=True)
            if text:
                return text
    return ""


def meta_content(soup: BeautifulSoup, prop: str) -> str:
    el = soup.select_one(f"meta[property='{prop}']") or soup.select_one(f"meta[name='{prop}']")
    if el and el.get("content"):
        return str(el["content"]).strip()
    return ""


def extract_author_id(html: str) -> int:
    """Read the numeric author id from a profile page."""
    soup = soup_of(html)
    el = soup.select_one(f"{PROFILE_CSS}[{AUTHOR_ID_ATTR}]")
    if el is None:
        raise ParsingError("Author id not found in profile page")
    raw = str(el.get(AUTHOR_ID_ATTR, "")).strip()
    if not raw.isdigit() or int(raw) <= 0:
        raise ParsingError(f"Invalid author id in profile page: {raw!r}")
    return int(raw)


def _image_url(raw: str | None, config: ClientConfig, placeholder: str) -> str | None:
    if not raw:
        return None
    url = raw.strip()
    if not url or placeholder in url:
        return None
    return config.absolute_url(url)


def _stats(soup: BeautifulSoup) -> AuthorStats:
    bars = soup.select(STATS_BAR_CSS)
    if len(bars) < 3:
        return AuthorStats()
    values = []
    for bar in bars[:3]:
        value = parse_int(bar.get("aria-valuenow"), default=-1)
        if value < 0:
            value = parse_int(bar.get_text(strip=True))
        values.append(max(value, 0))
    return AuthorStats(poems_declared=values[0], reviews_sent=values[1], reviews_received=values[2])


def _collections(soup: BeautifulSoup, config: ClientConfig) -> tuple[Collection, ...]:
    collections = []
    for link in soup.select(COLLECTION_LINK_CSS):
        name = link.get_text(" ", strip=True)
        href = link.get("href")
        if not name or not href:
            continue
        collections.append(Collection(name=name, url=config.absolute_url(str(href))))
    return tuple(collections)


def extract_profile(html: str, config: ClientConfig | None = None) -> ProfileFields:
    """Read profile fields from an author's page."""
    config = config or ClientConfig()
    soup = soup_of(html)
    info = soup.select_one(PROFILE_CSS)
    if info is None:
        raise ParsingError("Document is not an author profile page")

    author_id = None
    raw_id = str(info.get(AUTHOR_ID_ATTR, "")).strip()
    if raw_id.isdigit():
        author_id = int(raw_id)

    display_name = text_of(soup, DISPLAY_NAME_CSS) or meta_content(soup, "og:title")
    description = text_of(soup, DESCRIPTION_CSS) or meta_content(soup, "og:description")

    avatar_el = soup.select_one(AVATAR_CSS)
    avatar_raw = avatar_el.get("src") if avatar_el else None
    if not avatar_raw:
        avatar_raw = meta_content(soup, "og:image")
    avatar_url = _image_url(str(avatar_raw or ""), config, AVATAR_PLACEHOLDER)

    header_el = soup.select_one(HEADER_CSS)
    header_url = _image_url(
        str(header_el.get("src") or "") if header_el else None, config, HEADER_PLACEHOLDER_MARKER
    )

    last_visit = ""
    status = ""
    is_premium = False
    for el in soup.select(FOOTER_CSS):
        text = el.get_text(" ", strip=True)
        if LAST_VISIT_LABEL in text:
            last_visit = text.replace(LAST_VISIT_LABEL, "").strip()
        if STATUS_LABEL in text:
            bold = el.find("b")
            status = bold.get_text(strip=True) if bold else ""
            if not status:
                status = text.split(STATUS_LABEL, 1)[1].strip()
        if PREMIUM_LABEL in text:
            is_premium = True

    return ProfileFields(
        author_id=author_id,
        display_name=display_name,
        description=description,
        avatar_url=avatar_url,
        header_url=header_url,
        status=status,
        last_visit=last_visit,
        is_premium=is_premium,
        stats=_stats(soup),
        collections=_collections(soup, config),
    )


def _canonical_username(profile_url: str) -> str:
    path = profile_url.split("/avtor/", 1)
    if len(path) == 2:
        return path[1].strip("/").split("/")[0]
    return profile_url.split("//", 1)[-1].split(".", 1)[0]


def extract_homepage_authors(
    html: str,
    section_css: str,
    config: ClientConfig | None = None,
    *,
    badge_is_rating: bool = False,
) -> list[HomepageAuthor]:
    """Read author cards from one landing page section.

    The card badge is a poem count, except in the weekly rating section where
    it is the rating.
    """
    config = config or ClientConfig()
    soup = soup_of(html)
    section = soup.select_one(section_css)
    if section is None:
        logger.debug("Homepage section %s not found", section_css)
        return []

    authors = []
    for card in section.select(AUTHOR_CARD_CSS):
        link = card.find("a")
        href = link.get("href") if link else None
        if not href:
            continue
        profile_url = config.absolute_url(str(href))

        avatar_url = None
        avatar = card.select_one(".avatarimg")
        style = avatar.get("style") if avatar else None
        if style:
            match = _STYLE_URL_RE.search(str(style))
            if match:
                raw = match.group(1).strip().strip("'\"")
                avatar_url = _image_url(raw, config, AVATAR_PLACEHOLDER)

        badge = card.select_one(".u-badge")
        badge_value = None
        if badge:
            text = badge.get_text(strip=True)
            badge_value = parse_int(text) if _INT_RE.search(text) else None

        canonical = _canonical_username(profile_url)
        authors.append(
            HomepageAuthor(
                username=text_of(card, (".friends-window__fname",)) or canonical,
                canonical_username=canonical,
                profile_url=profile_url,
                avatar_url=avatar_url,
                poems_count=None if badge_is_rating else badge_value,
                rating=badge_value if badge_is_rating else None,
            )
        )
    return authors


def extract_promo_poems(html: str, config: ClientConfig | None = None) -> list[HomepagePoem]:
    """Read the promoted poems block of the landing page."""
    config = config or ClientConfig()
    soup = soup_of(html)
    poems = []
    for row in soup.select(PROMO_POEM_CSS):
        link = row.select_one("span.link[data-proizvid]")
        if link is None:
            continue
        poem_id = parse_int(link.get("data-proizvid"))
        if poem_id <= 0:
            continue

        author_div = row.select_one(".small.text-right")
        author_username = author_div.get_text(strip=True) if author_div else ""
        author_profile_url = config.path_profile_url(author_username)
        author_link = author_div.find("a") if author_div else None
        if author_link and author_link.get("href"):
            author_profile_url = config.absolute_url(str(author_link["href"]))

        rating = None
        comments_count = None
        for span in row.select("span.text-nowrap.small"):
            icon = span.find("i")
            classes = icon.get("class", []) if icon else []
            value = parse_int(span.get_text(strip=True))
            if "fa-heart-o" in classes or "fa-heart" in classes:
                rating = value
            elif "fa-comments-o" in classes:
                comments_count = value

        poems.append(
            HomepagePoem(
                id=poem_id,
                title=link.get_text(strip=True),
                url=config.poem_url(poem_id),
                author_username=author_username,
                author_profile_url=author_profile_url,
                rating=rating,
                comments_count=comments_count,
            )
        )
    return poems

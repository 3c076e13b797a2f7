"""Normalize raw poem records into :class:`Poem`.

Two sources exist: rows of the ``pr_read_avtor`` API and the rendered poem
page. Both are pure functions over already-fetched data.
"""

import re
from typing import Any

from bs4 import Tag

from stihirus.config import ClientConfig
from stihirus.extract import meta_content, parse_int, soup_of, text_of
from stihirus.models import (
    Contest,
    DateFilter,
    HolidaySection,
    Poem,
    PoemAuthor,
    Rubric,
    RubricFilter,
)

DEFAULT_TITLE = "***"
DEFAULT_RUBRIC = "Произведения без рубрики"
NO_COLLECTION = "не в сборнике"
DEFAULT_GIFT = "proizv_like"
UNIQUENESS_VALUES = frozenset({-1, 0, 1})

POEM_CSS = ".proizv"
POEM_TITLE_CSS = (".proizv__title", "h1")
POEM_TEXT_CSS = ".proizv__text"
POEM_DATE_CSS = (".proizv__date",)
POEM_RUBRIC_CSS = "a.proizv__razdel"
POEM_COLLECTION_CSS = (".proizv__sbornik",)
POEM_LIKES_CSS = ".proizv__likes"
POEM_COMMENTS_CSS = ".proizv__comments"
POEM_IMAGE_CSS = ".proizv__image img"
POEM_CERTIFICATE_CSS = ".proizv__certificate"
POEM_CONTEST_CSS = "a.proizv__contest[data-contest-id]"
POEM_HOLIDAY_CSS = "a.proizv__holiday[data-holiday-id]"
POEM_AUTHOR_CSS = ".proizv__author a[data-userid]"

_BR_RE = re.compile(r"<br\s*/?>", re.IGNORECASE)


def normalize_text(body: str | None) -> str:
    """Turn line-break markup into newlines and trim."""
    text = _BR_RE.sub("\n", body or "")
    return text.replace("\r\n", "\n").strip()


def parse_gifts(raw: str | None) -> tuple[str, ...]:
    if not raw or raw.strip() == DEFAULT_GIFT:
        return ()
    return tuple(g.strip() for g in raw.split(",") if g.strip())


def parse_uniqueness(raw: object) -> int:
    """Map the uniqueness flag to -1 (unknown), 0 or 1."""
    try:
        value = int(str(raw).strip())
    except (TypeError, ValueError):
        return -1
    return value if value in UNIQUENESS_VALUES else -1


def parse_collection(raw: str | None) -> str | None:
    name = (raw or "").strip()
    if not name or name == NO_COLLECTION:
        return None
    return name


def _rubric(name: str | None, slug: str | None, config: ClientConfig) -> Rubric:
    name = (name or "").strip() or DEFAULT_RUBRIC
    slug = (slug or "").strip()
    if not slug or slug == "0" or name == DEFAULT_RUBRIC:
        return Rubric(name=name, url=None)
    return Rubric(name=name, url=f"{config.base_url}/razdel/{slug}")


def _optional_int(raw: object) -> int | None:
    value = parse_int(raw, default=0)
    return value if value > 0 else None


def map_poem(raw: dict[str, Any], config: ClientConfig | None = None) -> Poem:
    """Map one ``pr_read_avtor`` row."""
    config = config or ClientConfig()

    image_url = None
    if raw.get("background"):
        image_url = config.absolute_url(str(raw["background"]))

    contest = None
    contest_id = _optional_int(raw.get("contest_id"))
    if contest_id is not None:
        contest = Contest(id=contest_id, name=str(raw.get("contest_name") or ""))

    author = None
    author_id = _optional_int(raw.get("avtor_id") or raw.get("user_id"))
    if author_id is not None:
        useruri = raw.get("useruri")
        author = PoemAuthor(
            id=author_id,
            username=str(raw.get("username") or useruri or ""),
            profile_url=config.path_profile_url(useruri) if useruri else None,
        )

    return Poem(
        id=parse_int(raw.get("id")),
        title=str(raw.get("title") or "").strip() or DEFAULT_TITLE,
        text=normalize_text(raw.get("body")),
        created=str(raw.get("created") or ""),
        rubric=_rubric(raw.get("razd_name"), raw.get("razd_url"), config),
        collection=parse_collection(raw.get("urazd_name")),
        rating=max(parse_int(raw.get("rating")), 0),
        comments_count=max(parse_int(raw.get("comments_count")), 0),
        image_url=image_url,
        has_certificate=str(raw.get("have_certificate") or "") == "1",
        gifts=parse_gifts(raw.get("podarki")),
        uniqueness_status=parse_uniqueness(raw.get("text_unique")),
        contest=contest,
        holiday_section=None,
        author=author,
    )


def has_poem(html: str) -> bool:
    return soup_of(html).select_one(POEM_CSS) is not None


def _poem_text(el: Tag | None) -> str:
    if el is None:
        return ""
    for br in el.find_all("br"):
        br.replace_with("\n")
    return normalize_text(el.get_text())


def _count(container: Tag, css: str) -> int:
    el = container.select_one(css)
    return max(parse_int(el.get_text(strip=True)), 0) if el else 0


def map_poem_document(html: str, poem_id: int, config: ClientConfig | None = None) -> Poem:
    """Map a rendered poem page, including the author summary when present."""
    config = config or ClientConfig()
    soup = soup_of(html)
    container = soup.select_one(POEM_CSS) or soup

    title = text_of(container, POEM_TITLE_CSS) or meta_content(soup, "og:title")

    rubric_el = container.select_one(POEM_RUBRIC_CSS)
    rubric_name = rubric_el.get_text(strip=True) if rubric_el else None
    rubric_href = str(rubric_el.get("href") or "") if rubric_el else ""
    rubric_slug = ""
    if "/razdel/" in rubric_href:
        rubric_slug = rubric_href.rstrip("/").rsplit("/razdel/", 1)[-1]

    image_el = container.select_one(POEM_IMAGE_CSS)
    image_raw = str(image_el.get("src") or "") if image_el else ""
    image_url = config.absolute_url(image_raw) if image_raw else None

    contest = None
    contest_el = container.select_one(POEM_CONTEST_CSS)
    if contest_el:
        contest_id = _optional_int(contest_el.get("data-contest-id"))
        if contest_id is not None:
            contest = Contest(id=contest_id, name=contest_el.get_text(strip=True))

    holiday = None
    holiday_el = container.select_one(POEM_HOLIDAY_CSS)
    if holiday_el:
        holiday_id = _optional_int(holiday_el.get("data-holiday-id"))
        if holiday_id is not None:
            href = holiday_el.get("href")
            holiday = HolidaySection(
                id=holiday_id,
                title=holiday_el.get_text(strip=True),
                url=config.absolute_url(str(href)) if href else None,
            )

    author = None
    author_el = soup.select_one(POEM_AUTHOR_CSS)
    if author_el:
        author_id = _optional_int(author_el.get("data-userid"))
        if author_id is not None:
            href = author_el.get("href")
            author = PoemAuthor(
                id=author_id,
                username=author_el.get_text(strip=True),
                profile_url=config.absolute_url(str(href)) if href else None,
            )

    return Poem(
        id=poem_id,
        title=title or DEFAULT_TITLE,
        text=_poem_text(container.select_one(POEM_TEXT_CSS)),
        created=text_of(container, POEM_DATE_CSS),
        rubric=_rubric(rubric_name, rubric_slug, config),
        collection=parse_collection(text_of(container, POEM_COLLECTION_CSS)),
        rating=_count(container, POEM_LIKES_CSS),
        comments_count=_count(container, POEM_COMMENTS_CSS),
        image_url=image_url,
        has_certificate=container.select_one(POEM_CERTIFICATE_CSS) is not None,
        gifts=parse_gifts(str(container.get("data-podarki") or "")),
        uniqueness_status=parse_uniqueness(container.get("data-text-unique")),
        contest=contest,
        holiday_section=holiday,
        author=author,
    )


def map_rubric_filter(raw: dict[str, Any]) -> RubricFilter:
    return RubricFilter(
        id=parse_int(raw.get("id")),
        name=str(raw.get("razd_name") or ""),
        count=max(parse_int(raw.get("cnt")), 0),
    )


def map_date_filter(raw: dict[str, Any]) -> DateFilter:
    return DateFilter(
        year=parse_int(raw.get("year")),
        month=parse_int(raw.get("month")),
        count=max(parse_int(raw.get("cnt")), 0),
    )

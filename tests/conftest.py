from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any
from urllib.parse import parse_qs

import httpx
import pytest

from stihirus import ClientConfig, StihirusClient

TEST_AUTHOR_USERNAME = "oreh-orehov"
TEST_AUTHOR_ID = 14260
TEST_AUTHOR_SUBDOMAIN_URL = f"https://{TEST_AUTHOR_USERNAME}.stihirus.ru/"
TEST_AUTHOR_PATH_URL = f"https://stihirus.ru/avtor/{TEST_AUTHOR_USERNAME}"
TEST_AUTHOR_DECLARED_POEMS = 42
TEST_AUTHOR_RETRIEVABLE_POEMS = 40
TEST_AUTHOR_RUBRIC_ID = 5

TEST_AUTHOR_WITH_PREMIUM_USERNAME = "olesya-rassmatova"
TEST_AUTHOR_WITH_PREMIUM_ID = 14381

TEST_POEM_ID = 317868
TEST_POEM_ID_404 = 999999999

NON_EXISTENT_AUTHOR_ID = 99999999
INVALID_IDENTIFIER_SPACES = "invalid identifier with spaces"

# JSON framing around bytes that are not valid UTF-8
GARBLED_API_BODY = b'{"status": "success", "data": "\xff\xfe"}'


def profile_html(
    author_id: int,
    *,
    name: str = "Орех Орехов",
    description: str = "Пишу стихи о природе.",
    avatar: str | None = "/img/profile/14260.jpg",
    header: str | None = None,
    stats: tuple[int, int, int] = (TEST_AUTHOR_DECLARED_POEMS, 10, 12),
    collections: tuple[tuple[str, str], ...] = (("Лирика", "/sbornik/1"), ("Осень", "/sbornik/2")),
    status: str = "новенький",
    last_visit: str = "5 минут назад",
    premium: bool = False,
) -> str:
    header_src = header or "/img/profile/none_header.jpg"
    avatar_img = f'<img class="page_avatar_img" src="{avatar}">' if avatar else ""
    bars = "".join(
        f'<div class="progress-bar" aria-valuenow="{value}">{value}</div>' for value in stats
    )
    links = "".join(f'<a href="{href}">{title}</a>' for title, href in collections)
    premium_html = '<div class="small">Премиум доступ</div>' if premium else ""
    return f"""<html>
<head><meta property="og:title" content="{name}"></head>
<body>
  <img class="page_header_img" src="{header_src}">
  {avatar_img}
  <div class="avtorinfo" data-userid="{author_id}">
    <h1 class="avtorinfo__name">{name}</h1>
    <div class="avtorinfo__userinfo">{description}</div>
  </div>
  <div id="show_stat">{bars}</div>
  <div id="show_sborniki">{links}</div>
  <div class="card-footer">
    <div class="small">Последний визит: {last_visit}</div>
    <div class="small">Статус: <b>{status}</b></div>
    {premium_html}
  </div>
</body>
</html>"""


def poem_row(
    poem_id: int,
    author_id: int = TEST_AUTHOR_ID,
    username: str = TEST_AUTHOR_USERNAME,
    **overrides: Any,
) -> dict[str, Any]:
    row: dict[str, Any] = {
        "id": str(poem_id),
        "title": f"Стих {poem_id}",
        "body": "Первая строка<br>Вторая строка<br />\r\n",
        "created": "27.03.2025 20:19",
        "rating": "3",
        "comments_count": "1",
        "razd_id": str(TEST_AUTHOR_RUBRIC_ID),
        "razd_name": "Пейзажная лирика",
        "razd_url": "peyzazhnaya-lirika",
        "urazd_name": "не в сборнике",
        "background": "",
        "text_unique": "1",
        "have_certificate": "0",
        "podarki": "proizv_like",
        "contest_id": None,
        "contest_name": None,
        "avtor_id": str(author_id),
        "username": "Орех Орехов",
        "useruri": username,
    }
    row.update(overrides)
    return row


POEM_PAGE_HTML = f"""<html>
<head><meta property="og:title" content="Глупый Мудрец"></head>
<body>
  <div class="proizv" data-proizvid="{TEST_POEM_ID}" data-podarki="rose, heart,, star"
       data-text-unique="1">
    <h1 class="proizv__title">Глупый Мудрец</h1>
    <div class="proizv__author"><a data-userid="{TEST_AUTHOR_ID}"
       href="/avtor/{TEST_AUTHOR_USERNAME}">Орех Орехов</a></div>
    <div class="proizv__text">Мудрец сидел<br>и думал<br/>о своём</div>
    <span class="proizv__date">27.03.2025 20:19</span>
    <a class="proizv__razdel" href="/razdel/filosofskaya-lirika">Философская лирика</a>
    <span class="proizv__sbornik">не в сборнике</span>
    <span class="proizv__likes">12</span>
    <span class="proizv__comments">4</span>
    <div class="proizv__image"><img src="//stihirus.ru/img/proizv/317868.jpg"></div>
    <div class="proizv__certificate">Сертификат</div>
    <a class="proizv__contest" data-contest-id="77" href="/konkurs/77">Весенний конкурс</a>
    <a class="proizv__holiday" data-holiday-id="3" href="/prazdnik/3">8 Марта</a>
  </div>
</body>
</html>"""


def author_card(username: str, display: str, badge: str, avatar: str | None = None) -> str:
    style = f" style=\"background-image: url('{avatar}')\"" if avatar else ""
    return f"""<div class="friends-window__friend-card">
  <a href="/avtor/{username}"><div class="avatarimg"{style}></div></a>
  <div class="friends-window__fname">{display}</div>
  <span class="u-badge">{badge}</span>
</div>"""


HOMEPAGE_HTML = f"""<html><body>
<div class="card-recomended">
  {author_card("oreh-orehov", "Орех Орехов", "42", "/img/profile/14260.jpg")}
  {author_card("vitaminka", "Витаминка", "130")}
</div>
<div class="card-week-rating">
  {author_card("olesya-rassmatova", "Олеся", "57", "//cdn.stihirus.ru/a.jpg")}
</div>
<div class="card-active-avtors">
  {author_card("poet-1", "Поэт", "")}
  <div class="friends-window__friend-card"><div class="friends-window__fname">Без ссылки</div></div>
</div>
<div class="card-recomended-proizv">
  <div class="border-bottom">
    <span class="link" data-proizvid="{TEST_POEM_ID}">Глупый Мудрец</span>
    <div class="small text-right"><a href="/avtor/{TEST_AUTHOR_USERNAME}">oreh-orehov</a></div>
    <span class="text-nowrap small"><i class="fa fa-heart-o"></i> 12</span>
    <span class="text-nowrap small"><i class="fa fa-comments-o"></i> 4</span>
  </div>
  <div class="border-bottom">
    <span class="link" data-proizvid="5">Без автора</span>
    <div class="small text-right">anon</div>
  </div>
  <div class="border-bottom"><span class="link">Без id</span></div>
</div>
</body></html>"""


@dataclass
class FakeSite:
    """In-memory stand-in for stihirus.ru, served through ``httpx.MockTransport``."""

    profiles: dict[str, str] = field(default_factory=dict)
    poems: dict[int, list[dict[str, Any]]] = field(default_factory=dict)
    poem_pages: dict[int, str] = field(default_factory=dict)
    filters: dict[int, dict[str, Any]] = field(default_factory=dict)
    homepage: str = HOMEPAGE_HTML
    broken_urls: set[str] = field(default_factory=set)
    failing_offsets: set[int] = field(default_factory=set)
    garbled_offsets: set[int] = field(default_factory=set)
    page_size: int = 20
    requests: list[httpx.Request] = field(default_factory=list)

    def add_author(
        self,
        username: str,
        author_id: int,
        poems: list[dict[str, Any]] | None = None,
        **profile: Any,
    ) -> None:
        self.profiles[username] = profile_html(author_id, **profile)
        self.poems[author_id] = list(poems or [])

    @property
    def api_calls(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path.startswith("/-zbb/api/")]

    @property
    def page_calls(self) -> list[dict[str, str]]:
        return [
            self.form(r) for r in self.api_calls if r.url.path.endswith("/pr_read_avtor")
        ]

    @staticmethod
    def form(request: httpx.Request) -> dict[str, str]:
        return {k: v[0] for k, v in parse_qs(request.content.decode()).items()}

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if str(request.url) in self.broken_urls:
            return httpx.Response(500, text="Internal Server Error")

        host = request.url.host
        path = request.url.path
        if path.startswith("/-zbb/api/"):
            return self._api(path.rsplit("/", 1)[-1], self.form(request))
        if host != "stihirus.ru" and host.endswith(".stihirus.ru"):
            return self._profile(host.split(".")[0])
        if path.startswith("/avtor/"):
            return self._profile(path.split("/")[2])
        if path.startswith("/proizv/"):
            html = self.poem_pages.get(int(path.split("/")[2]))
            if html is None:
                return httpx.Response(404, text="Not Found")
            return httpx.Response(200, text=html)
        if path in ("", "/"):
            return httpx.Response(200, text=self.homepage)
        return httpx.Response(404, text="Not Found")

    def _profile(self, username: str) -> httpx.Response:
        html = self.profiles.get(username)
        if html is None:
            return httpx.Response(404, text="Not Found")
        return httpx.Response(200, text=html)

    def _api(self, endpoint: str, form: dict[str, str]) -> httpx.Response:
        if endpoint == "pr_read_avtor":
            offset = int(form.get("from", "0"))
            if offset in self.failing_offsets:
                return httpx.Response(500, text="Internal Server Error")
            if offset in self.garbled_offsets:
                return httpx.Response(200, content=GARBLED_API_BODY)
            rows = self.poems.get(int(form["id"]), [])
            if "razdel_id" in form:
                rows = [r for r in rows if r.get("razd_id") == form["razdel_id"]]
            if "year" in form:
                rows = [r for r in rows if r["created"][6:10] == form["year"]]
            if "month" in form:
                rows = [r for r in rows if int(r["created"][3:5]) == int(form["month"])]
            return httpx.Response(
                200, json={"status": "success", "data": rows[offset : offset + self.page_size]}
            )
        if endpoint == "pr_read_avtor_prozv_filter":
            data = self.filters.get(int(form["for_user_id"]))
            if data is None:
                return httpx.Response(200, json={"status": "error", "message": "доступ запрещен"})
            return httpx.Response(200, json={"status": "success", **data})
        return httpx.Response(404, text="Not Found")


@pytest.fixture
def config() -> ClientConfig:
    return ClientConfig(
        base_url="https://stihirus.ru",
        request_delay_ms=0,
        fan_out_pause_ms=0,
    )


@pytest.fixture
def site() -> FakeSite:
    site = FakeSite()
    site.add_author(
        TEST_AUTHOR_USERNAME,
        TEST_AUTHOR_ID,
        poems=[poem_row(1000 + i) for i in range(TEST_AUTHOR_RETRIEVABLE_POEMS)],
    )
    site.add_author(
        TEST_AUTHOR_WITH_PREMIUM_USERNAME,
        TEST_AUTHOR_WITH_PREMIUM_ID,
        poems=[poem_row(2000, TEST_AUTHOR_WITH_PREMIUM_ID, TEST_AUTHOR_WITH_PREMIUM_USERNAME)],
        name="Олеся",
        premium=True,
        stats=(1, 0, 0),
    )
    site.poem_pages[TEST_POEM_ID] = POEM_PAGE_HTML
    site.filters[TEST_AUTHOR_ID] = {
        "razd": [{"id": "5", "razd_name": "Пейзажная лирика", "cnt": "40"}],
        "year_month": [{"year": "2025", "month": "3", "cnt": "40"}],
    }
    return site


def make_client(site: FakeSite, config: ClientConfig) -> StihirusClient:
    return StihirusClient(config, httpx.MockTransport(site))

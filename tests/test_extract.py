from __future__ import annotations

import pytest

from stihirus.errors import ParsingError
from stihirus.extract import (
    ACTIVE_SECTION_CSS,
    RECOMMENDED_SECTION_CSS,
    WEEKLY_RATED_SECTION_CSS,
    extract_author_id,
    extract_homepage_authors,
    extract_profile,
    extract_promo_poems,
    parse_int,
)
from stihirus.models import AuthorStats, Collection
from tests.conftest import (
    HOMEPAGE_HTML,
    TEST_AUTHOR_DECLARED_POEMS,
    TEST_AUTHOR_ID,
    TEST_POEM_ID,
    profile_html,
)


def test_parse_int():
    assert parse_int("42") == 42
    assert parse_int(" 12 поэм") == 12
    assert parse_int(None) == 0
    assert parse_int("n/a", default=7) == 7


class TestAuthorId:
    def test_reads_data_attribute(self):
        assert extract_author_id(profile_html(TEST_AUTHOR_ID)) == TEST_AUTHOR_ID

    def test_missing_block_raises(self):
        with pytest.raises(ParsingError):
            extract_author_id("<html><body><h1>404</h1></body></html>")

    def test_non_numeric_id_raises(self):
        with pytest.raises(ParsingError):
            extract_author_id('<div class="avtorinfo" data-userid="abc"></div>')


class TestProfile:
    def test_all_fields(self, config):
        fields = extract_profile(profile_html(TEST_AUTHOR_ID), config)

        assert fields.author_id == TEST_AUTHOR_ID
        assert fields.display_name == "Орех Орехов"
        assert fields.description == "Пишу стихи о природе."
        assert fields.avatar_url == "https://stihirus.ru/img/profile/14260.jpg"
        assert fields.header_url is None
        assert fields.status == "новенький"
        assert fields.last_visit == "5 минут назад"
        assert fields.is_premium is False
        assert fields.stats == AuthorStats(TEST_AUTHOR_DECLARED_POEMS, 10, 12)
        assert fields.collections == (
            Collection("Лирика", "https://stihirus.ru/sbornik/1"),
            Collection("Осень", "https://stihirus.ru/sbornik/2"),
        )

    def test_premium_and_header(self, config):
        html = profile_html(1, premium=True, header="//cdn.stihirus.ru/header/1.jpg")
        fields = extract_profile(html, config)

        assert fields.is_premium is True
        assert fields.header_url == "https://cdn.stihirus.ru/header/1.jpg"

    def test_avatar_placeholder_is_absent(self, config):
        fields = extract_profile(profile_html(1, avatar="/img/profile/none.jpg"), config)
        assert fields.avatar_url is None

    def test_avatar_falls_back_to_og_image(self, config):
        html = profile_html(1, avatar=None).replace(
            "<head>", '<head><meta property="og:image" content="/img/profile/og.jpg">'
        )
        assert extract_profile(html, config).avatar_url == "https://stihirus.ru/img/profile/og.jpg"

    def test_description_falls_back_to_meta(self, config):
        html = profile_html(1, description="").replace(
            "<head>", '<head><meta property="og:description" content="Из мета">'
        )
        assert extract_profile(html, config).description == "Из мета"

    def test_missing_stats_default_to_zero(self, config):
        html = profile_html(1).replace('id="show_stat"', 'id="other"')
        assert extract_profile(html, config).stats == AuthorStats()

    def test_stats_fall_back_to_bar_text(self, config):
        html = profile_html(1, stats=(5, 6, 7)).replace('aria-valuenow="5"', 'aria-valuenow=""')
        assert extract_profile(html, config).stats == AuthorStats(5, 6, 7)

    def test_collections_without_name_or_link_are_skipped(self, config):
        html = profile_html(1, collections=(("", "/sbornik/1"), ("Есть", "/sbornik/2"))).replace(
            '<a href="/sbornik/2">Есть</a>', '<a href="/sbornik/2">Есть</a><a>Без ссылки</a>'
        )
        fields = extract_profile(html, config)
        assert fields.collections == (Collection("Есть", "https://stihirus.ru/sbornik/2"),)

    def test_status_without_bold_uses_label_text(self, config):
        html = profile_html(1).replace("Статус: <b>новенький</b>", "Статус: мастер")
        assert extract_profile(html, config).status == "мастер"

    def test_not_a_profile_page(self, config):
        with pytest.raises(ParsingError):
            extract_profile("<html><body>Главная</body></html>", config)


class TestHomepage:
    def test_recommended_authors(self, config):
        authors = extract_homepage_authors(HOMEPAGE_HTML, RECOMMENDED_SECTION_CSS, config)

        assert [a.canonical_username for a in authors] == ["oreh-orehov", "vitaminka"]
        first = authors[0]
        assert first.username == "Орех Орехов"
        assert first.profile_url == "https://stihirus.ru/avtor/oreh-orehov"
        assert first.avatar_url == "https://stihirus.ru/img/profile/14260.jpg"
        assert first.poems_count == 42
        assert first.rating is None
        assert authors[1].avatar_url is None

    def test_weekly_badge_is_rating(self, config):
        authors = extract_homepage_authors(
            HOMEPAGE_HTML, WEEKLY_RATED_SECTION_CSS, config, badge_is_rating=True
        )

        assert len(authors) == 1
        assert authors[0].rating == 57
        assert authors[0].poems_count is None
        assert authors[0].avatar_url == "https://cdn.stihirus.ru/a.jpg"

    def test_cards_without_link_are_skipped(self, config):
        authors = extract_homepage_authors(HOMEPAGE_HTML, ACTIVE_SECTION_CSS, config)

        assert [a.canonical_username for a in authors] == ["poet-1"]
        assert authors[0].poems_count is None

    def test_missing_section(self, config):
        assert extract_homepage_authors("<html></html>", RECOMMENDED_SECTION_CSS, config) == []

    def test_promo_poems(self, config):
        poems = extract_promo_poems(HOMEPAGE_HTML, config)

        assert [p.id for p in poems] == [TEST_POEM_ID, 5]
        first = poems[0]
        assert first.title == "Глупый Мудрец"
        assert first.url == f"https://stihirus.ru/proizv/{TEST_POEM_ID}"
        assert first.author_username == "oreh-orehov"
        assert first.author_profile_url == "https://stihirus.ru/avtor/oreh-orehov"
        assert first.rating == 12
        assert first.comments_count == 4

        second = poems[1]
        assert second.author_profile_url == "https://stihirus.ru/avtor/anon"
        assert second.rating is None
        assert second.comments_count is None

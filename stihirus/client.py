"""Top-level read queries.

Every query returns a :data:`Response` envelope and never raises: input
errors are reported before any request is made, and every internal failure
is converted into a :class:`Failure`.
"""

import dataclasses
import logging
from collections.abc import Awaitable, Callable

import httpx

from stihirus.config import ClientConfig
from stihirus.errors import InvalidInput, NotFound, StihirusError
from stihirus.extract import (
    ACTIVE_SECTION_CSS,
    RECOMMENDED_SECTION_CSS,
    WEEKLY_RATED_SECTION_CSS,
    extract_homepage_authors,
    extract_profile,
    extract_promo_poems,
)
from stihirus.mapping import (
    has_poem,
    map_date_filter,
    map_poem,
    map_poem_document,
    map_rubric_filter,
)
from stihirus.models import (
    AuthorFilters,
    AuthorProfile,
    Failure,
    FilterOptions,
    Homepage,
    HomepageAuthor,
    HomepagePoem,
    Poem,
    Response,
    Success,
)
from stihirus.pagination import AllPages, PageSpec, Paginator, ProfileOnly, SinglePage
from stihirus.resolver import Resolver
from stihirus.transport import FILTERS_ENDPOINT, Transport

logger = logging.getLogger(__name__)


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def page_spec_for(page: int | None) -> PageSpec:
    """Map the ``page`` argument to a page spec: None = all, 0 = none, N = page N."""
    if page is None:
        return AllPages()
    if not _is_int(page) or page < 0:
        raise InvalidInput(f"Invalid page: {page!r}")
    if page == 0:
        return ProfileOnly()
    return SinglePage(page)


def validate_filters(filters: FilterOptions | None) -> FilterOptions:
    filters = filters or FilterOptions()
    for name in ("rubric_id", "year", "month"):
        value = getattr(filters, name)
        if value is not None and (not _is_int(value) or value <= 0):
            raise InvalidInput(f"Invalid filter {name}: {value!r}")
    if filters.month is not None and filters.month > 12:
        raise InvalidInput(f"Invalid filter month: {filters.month}")
    return filters


def validate_poem_id(poem_id: object) -> int:
    if not _is_int(poem_id) or poem_id <= 0:  # type: ignore[operator]
        raise InvalidInput(f"Invalid poem ID: {poem_id!r}")
    return poem_id  # type: ignore[return-value]


class StihirusClient:
    """Read-only client for stihirus.ru.

    Use as an async context manager so the HTTP connection pool is shared
    across queries::

        async with StihirusClient() as client:
            response = await client.get_author_data("oreh-orehov", page=1)
            if response.ok:
                print(response.data.display_name)
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config or ClientConfig()
        self._transport = Transport(self.config, transport)
        self._resolver = Resolver(self._transport, self.config)
        self._paginator = Paginator(self._transport, self.config)

    async def __aenter__(self) -> "StihirusClient":
        await self._transport.__aenter__()
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self._transport.__aexit__(*exc)

    async def _run[T](self, name: str, query: Callable[[], Awaitable[T]]) -> Response[T]:
        try:
            return Success(await query())
        except StihirusError as e:
            logger.debug("%s failed: %s", name, e)
            return Failure.from_exception(e)
        except Exception as e:
            logger.exception("Unexpected error in %s", name)
            return Failure.from_exception(e)

    async def get_author_data(
        self,
        identifier: int | str,
        page: int | None = None,
        delay_ms: int | None = None,
        filters: FilterOptions | None = None,
    ) -> Response[AuthorProfile]:
        """Fetch an author's profile and poems.

        Args:
            identifier: Author id, username, subdomain URL or path URL.
            page: ``None`` for all poems, ``0`` for the profile only, ``N`` for page N.
            delay_ms: Pause between page requests; defaults to the config value.
            filters: Optional rubric/year/month filter.
        """

        async def query() -> AuthorProfile:
            spec = page_spec_for(page)
            checked = validate_filters(filters)
            if delay_ms is not None and (not _is_int(delay_ms) or delay_ms < 0):
                raise InvalidInput(f"Invalid delay: {delay_ms!r}")

            resolution = await self._resolver.resolve_with_document(identifier)
            identity = resolution.identity
            document = resolution.document
            if document is None:
                document = await self._transport.fetch_document(identity.canonical_profile_url)
            fields = extract_profile(document, self.config)
            if fields.author_id is not None and fields.author_id != identity.author_id:
                logger.warning(
                    "Profile page id %d differs from resolved id %d",
                    fields.author_id,
                    identity.author_id,
                )
            profile = AuthorProfile.build(identity, fields)

            if isinstance(spec, ProfileOnly):
                return profile

            rows = await self._paginator.collect(
                identity.author_id,
                spec,
                checked,
                delay_ms,
                referer=identity.canonical_profile_url,
                declared_total=profile.stats.poems_declared,
            )
            poems = tuple(map_poem(row, self.config) for row in rows)
            logger.debug(
                "Author %d: %d poems fetched, %d declared",
                identity.author_id,
                len(poems),
                profile.stats.poems_declared,
            )
            return dataclasses.replace(profile, poems=poems)

        return await self._run("get_author_data", query)

    async def get_author_filters(self, identifier: int | str) -> Response[AuthorFilters]:
        """Fetch the rubric and date filters available for an author's poems."""

        async def query() -> AuthorFilters:
            identity = await self._resolver.resolve(identifier)
            result = await self._transport.call_api(
                FILTERS_ENDPOINT,
                {"for_user_id": identity.author_id},
                referer=identity.canonical_profile_url,
            )
            return AuthorFilters(
                rubrics=tuple(map_rubric_filter(r) for r in result["razd"] if isinstance(r, dict)),
                dates=tuple(
                    map_date_filter(d) for d in result["year_month"] if isinstance(d, dict)
                ),
            )

        return await self._run("get_author_filters", query)

    async def get_poem_by_id(self, poem_id: int) -> Response[Poem]:
        """Fetch a single poem from its own page."""

        async def query() -> Poem:
            checked = validate_poem_id(poem_id)
            document = await self._transport.fetch_document(self.config.poem_url(checked))
            if not has_poem(document):
                raise NotFound(f"Poem {checked} not found")
            return map_poem_document(document, checked, self.config)

        return await self._run("get_poem_by_id", query)

    async def _homepage_authors(
        self, section_css: str, *, badge_is_rating: bool = False
    ) -> list[HomepageAuthor]:
        html = await self._transport.fetch_document(self.config.base_url)
        return extract_homepage_authors(
            html, section_css, self.config, badge_is_rating=badge_is_rating
        )

    async def get_recommended_authors(self) -> Response[list[HomepageAuthor]]:
        return await self._run(
            "get_recommended_authors", lambda: self._homepage_authors(RECOMMENDED_SECTION_CSS)
        )

    async def get_weekly_rated_authors(self) -> Response[list[HomepageAuthor]]:
        return await self._run(
            "get_weekly_rated_authors",
            lambda: self._homepage_authors(WEEKLY_RATED_SECTION_CSS, badge_is_rating=True),
        )

    async def get_active_authors(self) -> Response[list[HomepageAuthor]]:
        return await self._run(
            "get_active_authors", lambda: self._homepage_authors(ACTIVE_SECTION_CSS)
        )

    async def get_promo_poems(self) -> Response[list[HomepagePoem]]:
        async def query() -> list[HomepagePoem]:
            html = await self._transport.fetch_document(self.config.base_url)
            return extract_promo_poems(html, self.config)

        return await self._run("get_promo_poems", query)

    async def get_homepage(self) -> Response[Homepage]:
        """All landing page sections from a single fetch."""

        async def query() -> Homepage:
            html = await self._transport.fetch_document(self.config.base_url)
            return Homepage(
                recommended_authors=tuple(
                    extract_homepage_authors(html, RECOMMENDED_SECTION_CSS, self.config)
                ),
                weekly_rated_authors=tuple(
                    extract_homepage_authors(
                        html, WEEKLY_RATED_SECTION_CSS, self.config, badge_is_rating=True
                    )
                ),
                active_authors=tuple(
                    extract_homepage_authors(html, ACTIVE_SECTION_CSS, self.config)
                ),
                promo_poems=tuple(extract_promo_poems(html, self.config)),
            )

        return await self._run("get_homepage", query)


async def get_author_data(
    identifier: int | str,
    page: int | None = None,
    delay_ms: int | None = None,
    filters: FilterOptions | None = None,
    config: ClientConfig | None = None,
) -> Response[AuthorProfile]:
    async with StihirusClient(config) as client:
        return await client.get_author_data(identifier, page, delay_ms, filters)


async def get_author_filters(
    identifier: int | str, config: ClientConfig | None = None
) -> Response[AuthorFilters]:
    async with StihirusClient(config) as client:
        return await client.get_author_filters(identifier)


async def get_poem_by_id(poem_id: int, config: ClientConfig | None = None) -> Response[Poem]:
    async with StihirusClient(config) as client:
        return await client.get_poem_by_id(poem_id)


async def get_recommended_authors(
    config: ClientConfig | None = None,
) -> Response[list[HomepageAuthor]]:
    async with StihirusClient(config) as client:
        return await client.get_recommended_authors()


async def get_weekly_rated_authors(
    config: ClientConfig | None = None,
) -> Response[list[HomepageAuthor]]:
    async with StihirusClient(config) as client:
        return await client.get_weekly_rated_authors()


async def get_active_authors(config: ClientConfig | None = None) -> Response[list[HomepageAuthor]]:
    async with StihirusClient(config) as client:
        return await client.get_active_authors()


async def get_promo_poems(config: ClientConfig | None = None) -> Response[list[HomepagePoem]]:
    async with StihirusClient(config) as client:
        return await client.get_promo_poems()


async def get_homepage(config: ClientConfig | None = None) -> Response[Homepage]:
    async with StihirusClient(config) as client:
        return await client.get_homepage()

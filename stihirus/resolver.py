"""Turn any accepted author identifier into an :class:`AuthorIdentity`.

Accepted shapes, checked in order:

1. ``int``: the author id; the username comes from a reverse lookup.
2. Subdomain URL, e.g. ``https://oreh-orehov.stihirus.ru/``.
3. Path URL, e.g. ``https://stihirus.ru/avtor/oreh-orehov``.
4. Any other URL is rejected.
5. Bare username matching ``^[A-Za-z0-9-]+$``.

String identifiers are confirmed by fetching the profile page. The site
serves the same profile under both URL shapes and either one can be
unavailable on its own, so a failed fetch is retried once on the path form.
"""

import logging
import re
from dataclasses import dataclass
from typing import Literal
from urllib.parse import urlparse

from stihirus.config import ClientConfig
from stihirus.errors import InvalidInput, NotFound, StihirusError, UnknownError
from stihirus.extract import extract_author_id
from stihirus.models import AuthorIdentity
from stihirus.transport import POEMS_ENDPOINT, Transport

logger = logging.getLogger(__name__)

USERNAME_RE = re.compile(r"^[A-Za-z0-9-]+$")
AUTHOR_PATH_PREFIX = "/avtor/"

IdentifierKind = Literal["id", "subdomain", "path", "username"]


@dataclass(frozen=True)
class Classified:
    """Result of classifying an identifier, before any I/O."""

    kind: IdentifierKind
    author_id: int | None = None
    username: str | None = None
    candidate_url: str | None = None


@dataclass(frozen=True)
class Resolution:
    identity: AuthorIdentity
    document: str | None = None  # profile page, when resolution fetched it


def _looks_like_url(value: str) -> bool:
    return "://" in value or "/" in value or "." in value


def _check_username(username: str) -> str:
    if not USERNAME_RE.match(username):
        raise InvalidInput(f"Invalid username format: {username!r}")
    return username


def classify(identifier: int | str, config: ClientConfig | None = None) -> Classified:
    """Classify ``identifier`` without touching the network."""
    config = config or ClientConfig()

    if isinstance(identifier, bool) or not isinstance(identifier, (int, str)):
        raise InvalidInput(f"Invalid identifier type: {type(identifier).__name__}")

    if isinstance(identifier, int):
        if identifier <= 0:
            raise InvalidInput(f"Invalid author id: {identifier}")
        return Classified("id", author_id=identifier)

    if not identifier or any(ch.isspace() for ch in identifier):
        raise InvalidInput("Invalid identifier format")

    if not _looks_like_url(identifier):
        return Classified(
            "username",
            username=_check_username(identifier),
            candidate_url=config.subdomain_profile_url(identifier),
        )

    url = identifier if "://" in identifier else f"https://{identifier}"
    parsed = urlparse(url)
    host = (parsed.hostname or "").lower()
    domain = config.site_domain
    if parsed.scheme not in ("http", "https") or not host:
        raise InvalidInput("Unrecognized URL format")

    if host.endswith(f".{domain}") and host != f"www.{domain}" and len(host.split(".")) > 2:
        sub = host[: -len(domain) - 1]
        return Classified(
            "subdomain",
            username=_check_username(sub),
            candidate_url=f"{parsed.scheme}://{host}/",
        )

    if host in (domain, f"www.{domain}") and parsed.path.startswith(AUTHOR_PATH_PREFIX):
        username = parsed.path[len(AUTHOR_PATH_PREFIX) :].split("/")[0]
        if not username:
            raise InvalidInput("Missing username in profile URL")
        return Classified(
            "path",
            username=_check_username(username),
            candidate_url=config.subdomain_profile_url(username),
        )

    raise InvalidInput("Unrecognized URL format")


class Resolver:
    """Resolves identifiers using the site's API and profile pages."""

    def __init__(self, transport: Transport, config: ClientConfig | None = None) -> None:
        self._transport = transport
        self.config = config or transport.config

    async def resolve(self, identifier: int | str) -> AuthorIdentity:
        return (await self.resolve_with_document(identifier)).identity

    async def resolve_with_document(self, identifier: int | str) -> Resolution:
        classified = classify(identifier, self.config)
        logger.debug("Identifier %r classified as %s", identifier, classified.kind)

        if classified.author_id is not None:
            return Resolution(await self._from_id(classified.author_id))

        if classified.username is None or classified.candidate_url is None:
            raise UnknownError(f"Identifier {identifier!r} classified without a username")
        return await self._from_username(classified.username, classified.candidate_url)

    async def _from_id(self, author_id: int) -> AuthorIdentity:
        try:
            result = await self._transport.call_api(POEMS_ENDPOINT, {"id": author_id, "from": 0})
        except StihirusError as e:
            raise NotFound(f"Author ID {author_id} not found") from e

        rows = result.get("data")
        username = None
        if isinstance(rows, list) and rows and isinstance(rows[0], dict):
            username = rows[0].get("useruri")
        if not username:
            raise NotFound(f"Author ID {author_id} not found")

        username = str(username)
        return AuthorIdentity(
            author_id=author_id,
            username=username,
            canonical_profile_url=self.config.path_profile_url(username),
        )

    async def _from_username(self, username: str, candidate_url: str) -> Resolution:
        fallback_url = self.config.path_profile_url(username)
        urls = [candidate_url]
        if fallback_url != candidate_url:
            urls.append(fallback_url)

        last_error: StihirusError | None = None
        for url in urls:
            try:
                document = await self._transport.fetch_document(url)
                author_id = extract_author_id(document)
            except StihirusError as e:
                logger.warning("Profile lookup failed for %s: %s", url, e)
                last_error = e
                continue
            identity = AuthorIdentity(
                author_id=author_id, username=username, canonical_profile_url=url
            )
            return Resolution(identity, document)

        raise NotFound(f"Author '{username}' not found") from last_error

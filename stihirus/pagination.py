"""Collect raw poem rows from the paginated ``pr_read_avtor`` endpoint."""

import asyncio
import logging
import math
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from typing import Any

import streamish as st

from stihirus.config import ClientConfig
from stihirus.errors import StihirusError
from stihirus.extract import parse_int
from stihirus.models import FilterOptions
from stihirus.transport import POEMS_ENDPOINT, Transport

logger = logging.getLogger(__name__)

type RawPoem = dict[str, Any]


@dataclass(frozen=True)
class ProfileOnly:
    """Fetch no poems."""


@dataclass(frozen=True)
class SinglePage:
    """Fetch page ``number`` (1-based), best effort."""

    number: int

    def __post_init__(self) -> None:
        if self.number < 1:
            raise ValueError("SinglePage number must be >= 1")


@dataclass(frozen=True)
class AllPages:
    """Fetch pages until a short page is returned."""


type PageSpec = ProfileOnly | SinglePage | AllPages


def record_id(record: object) -> int:
    """Numeric id of a raw row, 0 when it has none."""
    if not isinstance(record, dict):
        return 0
    return parse_int(record.get("id"))


def is_record(record: object) -> bool:
    return record_id(record) > 0


def dedupe(records: list[RawPoem]) -> list[RawPoem]:
    """Collapse rows sharing an ``id``; the last one seen wins."""
    unique: dict[int, RawPoem] = {}
    for record in records:
        if not is_record(record):
            continue
        unique[record_id(record)] = record
    return list(unique.values())


@dataclass
class PageCursor:
    """State of a sequential page walk.

    ``advance`` looks at the size of one page and reports whether another
    request should be made. The cursor knows nothing about how requests are
    issued, so it drives both the sequential and the fan-out collectors;
    whoever consumes the rows appends them to ``accumulated``.
    """

    page_size: int
    offset: int = 0
    accumulated: list[RawPoem] = field(default_factory=list)
    done: bool = False

    def advance(self, records: list[RawPoem]) -> bool:
        if self.done:
            return False
        if len(records) < self.page_size:
            # empty or short page: nothing after this one
            self.done = True
            return False
        self.offset += len(records)
        return True

    def abort(self) -> None:
        """Stop on a failed request, keeping what was collected."""
        self.done = True

    def result(self) -> list[RawPoem]:
        return dedupe(self.accumulated)


class Paginator:
    """Drives page requests for one author."""

    def __init__(self, transport: Transport, config: ClientConfig | None = None) -> None:
        self._transport = transport
        self.config = config or transport.config

    async def _fetch_page(
        self,
        author_id: int,
        offset: int,
        filters: FilterOptions,
        referer: str | None,
    ) -> list[RawPoem]:
        params: dict[str, Any] = {"id": author_id, "from": offset, **filters.to_params()}
        result = await self._transport.call_api(POEMS_ENDPOINT, params, referer)
        data = result.get("data")
        return data if isinstance(data, list) else []

    async def _safe_page(
        self,
        author_id: int,
        offset: int,
        filters: FilterOptions,
        referer: str | None,
    ) -> list[RawPoem]:
        try:
            return await self._fetch_page(author_id, offset, filters, referer)
        except StihirusError as e:
            logger.warning("Page at offset %d for author %d failed: %s", offset, author_id, e)
            return []

    async def collect(
        self,
        author_id: int,
        page_spec: PageSpec,
        filters: FilterOptions | None = None,
        delay_ms: int | None = None,
        referer: str | None = None,
        declared_total: int = 0,
    ) -> list[RawPoem]:
        """Return deduplicated raw rows according to ``page_spec``."""
        filters = filters or FilterOptions()
        delay_ms = self.config.request_delay_ms if delay_ms is None else delay_ms

        match page_spec:
            case ProfileOnly():
                return []
            case SinglePage(number=n):
                offset = (n - 1) * self.config.page_size
                return dedupe(await self._safe_page(author_id, offset, filters, referer))
            case AllPages():
                cursor = PageCursor(page_size=self.config.page_size)
                if self.config.fan_out and not filters.active and declared_total > 0:
                    await self._fan_out(author_id, cursor, declared_total, referer)
                await self._walk(author_id, cursor, filters, delay_ms, referer)
                return cursor.result()
            case _:
                raise ValueError(f"Unsupported page spec: {page_spec}")

    async def _walk(
        self,
        author_id: int,
        cursor: PageCursor,
        filters: FilterOptions,
        delay_ms: int,
        referer: str | None,
    ) -> None:
        async def pages() -> AsyncIterator[list[RawPoem]]:
            while not cursor.done:
                offset = cursor.offset
                try:
                    records = await self._fetch_page(author_id, offset, filters, referer)
                except StihirusError as e:
                    logger.warning("Stopping at offset %d for author %d: %s", offset, author_id, e)
                    cursor.abort()
                    return
                logger.debug("Offset %d returned %d records", offset, len(records))
                more = cursor.advance(records)
                yield records
                if more and delay_ms > 0:
                    await asyncio.sleep(delay_ms / 1000)

        stream = st.stream(pages()).flat_map(lambda records: records).filter(is_record)
        async for record in stream:
            cursor.accumulated.append(record)
        logger.debug("Collected %d rows for author %d", len(cursor.accumulated), author_id)

    async def _fan_out(
        self,
        author_id: int,
        cursor: PageCursor,
        declared_total: int,
        referer: str | None,
    ) -> None:
        """Request the declared number of pages concurrently.

        Leaves ``cursor`` at the next offset when the last page was full, so
        the sequential walk picks up anything the declared count missed.
        """
        page_size = self.config.page_size
        total_pages = max(
            1, min(math.ceil(declared_total / page_size), self.config.max_fan_out_pages)
        )
        filters = FilterOptions()
        tasks = []
        for i in range(total_pages):
            tasks.append(
                asyncio.ensure_future(self._safe_page(author_id, i * page_size, filters, referer))
            )
            if i % 5 == 0 and self.config.fan_out_pause_ms > 0:
                await asyncio.sleep(self.config.fan_out_pause_ms / 1000)
        pages = await asyncio.gather(*tasks)
        logger.debug("Fan-out fetched %d pages for author %d", len(pages), author_id)

        for records in pages:
            cursor.accumulated.extend(r for r in records if is_record(r))
        cursor.offset = (total_pages - 1) * page_size
        cursor.advance(pages[-1])

# stihirus/cli.py
import asyncio
import sys
from pathlib import Path
from typing import Annotated, Literal

import cyclopts

from stihirus.client import StihirusClient
from stihirus.export import JsonExporter
from stihirus.models import FilterOptions, Response

app = cyclopts.App(
    name="stihirus",
    help="Read author profiles, poems and homepage lists from stihirus.ru.",
)

Section = Literal["recommended", "weekly", "active", "promo", "all"]


def parse_identifier(identifier: str) -> int | str:
    """All-digit identifiers are author ids; anything else is passed through."""
    return int(identifier) if identifier.isdigit() else identifier


def _emit(response: Response, output: Path | None) -> None:
    exporter = JsonExporter()
    if output:
        exporter.export(response, output)
        print(f"Exported to {output}", file=sys.stderr)
    else:
        print(exporter.to_string(response))

    if not response.ok:
        error = response.error  # type: ignore[union-attr]
        print(f"Error {error.code}: {error.message}", file=sys.stderr)
        if error.original_message:
            print(f"  caused by: {error.original_message}", file=sys.stderr)
        sys.exit(1)


async def _homepage(section: Section) -> Response:
    async with StihirusClient() as client:
        match section:
            case "recommended":
                return await client.get_recommended_authors()
            case "weekly":
                return await client.get_weekly_rated_authors()
            case "active":
                return await client.get_active_authors()
            case "promo":
                return await client.get_promo_poems()
            case _:
                return await client.get_homepage()


async def _author(
    identifier: int | str, page: int | None, delay: int | None, filters: FilterOptions
) -> Response:
    async with StihirusClient() as client:
        return await client.get_author_data(identifier, page, delay, filters)


async def _filters(identifier: int | str) -> Response:
    async with StihirusClient() as client:
        return await client.get_author_filters(identifier)


async def _poem(poem_id: int) -> Response:
    async with StihirusClient() as client:
        return await client.get_poem_by_id(poem_id)


@app.command(name="author")
def author(
    identifier: Annotated[
        str, cyclopts.Parameter(help="Author id, username, subdomain URL or profile URL")
    ],
    page: Annotated[
        int | None,
        cyclopts.Parameter(name=["--page", "-p"], help="0 = profile only, N = page N, omit = all"),
    ] = None,
    delay: Annotated[
        int | None,
        cyclopts.Parameter(name=["--delay", "-d"], help="Delay between page requests (ms)"),
    ] = None,
    rubric: Annotated[
        int | None, cyclopts.Parameter(name="--rubric", help="Rubric id filter")
    ] = None,
    year: Annotated[int | None, cyclopts.Parameter(name="--year", help="Year filter")] = None,
    month: Annotated[int | None, cyclopts.Parameter(name="--month", help="Month filter")] = None,
    output: Annotated[
        Path | None,
        cyclopts.Parameter(name=["--output", "-o"], help="Output file path"),
    ] = None,
) -> None:
    """Fetch an author's profile and poems."""
    filters = FilterOptions(rubric_id=rubric, year=year, month=month)
    response = asyncio.run(_author(parse_identifier(identifier), page, delay, filters))
    _emit(response, output)


@app.command(name="filters")
def filters(
    identifier: Annotated[
        str, cyclopts.Parameter(help="Author id, username, subdomain URL or profile URL")
    ],
    output: Annotated[
        Path | None,
        cyclopts.Parameter(name=["--output", "-o"], help="Output file path"),
    ] = None,
) -> None:
    """List the rubric and date filters available for an author."""
    _emit(asyncio.run(_filters(parse_identifier(identifier))), output)


@app.command(name="poem")
def poem(
    poem_id: Annotated[int, cyclopts.Parameter(help="Poem id")],
    output: Annotated[
        Path | None,
        cyclopts.Parameter(name=["--output", "-o"], help="Output file path"),
    ] = None,
) -> None:
    """Fetch a single poem."""
    _emit(asyncio.run(_poem(poem_id)), output)


@app.command(name="homepage")
def homepage(
    section: Annotated[
        Section,
        cyclopts.Parameter(name=["--section", "-s"], help="Landing page section to read"),
    ] = "all",
    output: Annotated[
        Path | None,
        cyclopts.Parameter(name=["--output", "-o"], help="Output file path"),
    ] = None,
) -> None:
    """Read author and poem highlights from the landing page."""
    _emit(asyncio.run(_homepage(section)), output)


def main() -> None:
    app()


if __name__ == "__main__":
    main()

# stihirus/__init__.py
"""stihirus - A read-only client for the stihirus.ru poetry site."""

from stihirus.client import (
    StihirusClient,
    get_active_authors,
    get_author_data,
    get_author_filters,
    get_homepage,
    get_poem_by_id,
    get_promo_poems,
    get_recommended_authors,
    get_weekly_rated_authors,
)
from stihirus.config import ClientConfig
from stihirus.errors import (
    InvalidInput,
    NetworkError,
    NotFound,
    ParsingError,
    StihirusError,
    UnknownError,
    UpstreamError,
)
from stihirus.models import (
    AuthorFilters,
    AuthorIdentity,
    AuthorProfile,
    AuthorStats,
    Collection,
    DateFilter,
    ErrorInfo,
    Failure,
    FilterOptions,
    Homepage,
    HomepageAuthor,
    HomepagePoem,
    Poem,
    Response,
    RubricFilter,
    Success,
)
from stihirus.pagination import AllPages, ProfileOnly, SinglePage
from stihirus.resolver import Resolver, classify

__all__ = [
    # Queries
    "StihirusClient",
    "get_author_data",
    "get_author_filters",
    "get_poem_by_id",
    "get_recommended_authors",
    "get_weekly_rated_authors",
    "get_active_authors",
    "get_promo_poems",
    "get_homepage",
    # Configuration
    "ClientConfig",
    # Models
    "AuthorIdentity",
    "AuthorProfile",
    "AuthorStats",
    "Collection",
    "Poem",
    "FilterOptions",
    "AuthorFilters",
    "RubricFilter",
    "DateFilter",
    "Homepage",
    "HomepageAuthor",
    "HomepagePoem",
    # Envelope
    "Response",
    "Success",
    "Failure",
    "ErrorInfo",
    # Errors
    "StihirusError",
    "InvalidInput",
    "NotFound",
    "NetworkError",
    "UpstreamError",
    "ParsingError",
    "UnknownError",
    # Resolution and pagination
    "Resolver",
    "classify",
    "ProfileOnly",
    "SinglePage",
    "AllPages",
]

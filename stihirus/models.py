# stihirus/models.py
from dataclasses import asdict, dataclass, field
from typing import Any, Literal

from stihirus.errors import StihirusError, UnknownError


@dataclass(frozen=True)
class AuthorIdentity:
    """Canonical identity an identifier resolves to."""

    author_id: int
    username: str
    canonical_profile_url: str


@dataclass(frozen=True)
class AuthorStats:
    """Counters shown on the profile page.

    ``poems_declared`` is the site's own count and may differ from the number
    of poems the API actually returns.
    """

    poems_declared: int = 0
    reviews_sent: int = 0
    reviews_received: int = 0


@dataclass(frozen=True)
class Collection:
    name: str
    url: str


@dataclass(frozen=True)
class ProfileFields:
    """Fields read from a rendered profile page."""

    author_id: int | None = None
    display_name: str = ""
    description: str = ""
    avatar_url: str | None = None
    header_url: str | None = None
    status: str = ""
    last_visit: str = ""
    is_premium: bool = False
    stats: AuthorStats = field(default_factory=AuthorStats)
    collections: tuple[Collection, ...] = ()


@dataclass(frozen=True)
class Rubric:
    name: str
    url: str | None = None


@dataclass(frozen=True)
class Contest:
    id: int
    name: str


@dataclass(frozen=True)
class HolidaySection:
    id: int
    title: str
    url: str | None = None


@dataclass(frozen=True)
class PoemAuthor:
    id: int
    username: str
    profile_url: str | None = None


@dataclass(frozen=True)
class Poem:
    """Normalized poem representation for both API and page sources."""

    id: int
    title: str
    text: str
    created: str
    rubric: Rubric
    collection: str | None = None
    rating: int = 0
    comments_count: int = 0
    image_url: str | None = None
    has_certificate: bool = False
    gifts: tuple[str, ...] = ()
    uniqueness_status: int = -1  # -1 unknown, 0 not unique, 1 unique
    contest: Contest | None = None
    holiday_section: HolidaySection | None = None
    author: PoemAuthor | None = None

    def __hash__(self) -> int:
        return hash(self.id)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Poem):
            return False
        return self.id == other.id


@dataclass(frozen=True)
class AuthorProfile:
    """Identity, profile page fields and (depending on the page policy) poems."""

    author_id: int
    username: str
    canonical_profile_url: str
    display_name: str = ""
    description: str = ""
    avatar_url: str | None = None
    header_url: str | None = None
    status: str = ""
    last_visit: str = ""
    is_premium: bool = False
    stats: AuthorStats = field(default_factory=AuthorStats)
    collections: tuple[Collection, ...] = ()
    poems: tuple[Poem, ...] = ()

    @classmethod
    def build(cls, identity: AuthorIdentity, fields: ProfileFields) -> "AuthorProfile":
        return cls(
            author_id=identity.author_id,
            username=identity.username,
            canonical_profile_url=identity.canonical_profile_url,
            display_name=fields.display_name or identity.username,
            description=fields.description,
            avatar_url=fields.avatar_url,
            header_url=fields.header_url,
            status=fields.status,
            last_visit=fields.last_visit,
            is_premium=fields.is_premium,
            stats=fields.stats,
            collections=fields.collections,
        )


@dataclass(frozen=True)
class FilterOptions:
    """Optional poem filters accepted by the poems endpoint."""

    rubric_id: int | None = None
    year: int | None = None
    month: int | None = None

    @property
    def active(self) -> bool:
        return any(v is not None for v in (self.rubric_id, self.year, self.month))

    def to_params(self) -> dict[str, int]:
        params: dict[str, int] = {}
        if self.rubric_id is not None:
            params["razdel_id"] = self.rubric_id
        if self.year is not None:
            params["year"] = self.year
        if self.month is not None:
            params["month"] = self.month
        return params


@dataclass(frozen=True)
class RubricFilter:
    id: int
    name: str
    count: int = 0


@dataclass(frozen=True)
class DateFilter:
    year: int
    month: int
    count: int = 0


@dataclass(frozen=True)
class AuthorFilters:
    rubrics: tuple[RubricFilter, ...] = ()
    dates: tuple[DateFilter, ...] = ()


@dataclass(frozen=True)
class HomepageAuthor:
    username: str
    canonical_username: str
    profile_url: str
    avatar_url: str | None = None
    poems_count: int | None = None
    rating: int | None = None


@dataclass(frozen=True)
class HomepagePoem:
    id: int
    title: str
    url: str
    author_username: str
    author_profile_url: str
    rating: int | None = None
    comments_count: int | None = None


@dataclass(frozen=True)
class Homepage:
    """All landing page sections read from a single fetch."""

    recommended_authors: tuple[HomepageAuthor, ...] = ()
    weekly_rated_authors: tuple[HomepageAuthor, ...] = ()
    active_authors: tuple[HomepageAuthor, ...] = ()
    promo_poems: tuple[HomepagePoem, ...] = ()


@dataclass(frozen=True)
class ErrorInfo:
    code: int
    message: str
    original_message: str | None = None


@dataclass(frozen=True)
class Success[T]:
    data: T
    status: Literal["success"] = "success"

    @property
    def ok(self) -> bool:
        return True

    def to_dict(self) -> dict[str, Any]:
        data: Any = self.data
        if isinstance(data, (list, tuple)):
            data = [asdict(item) for item in data]
        else:
            data = asdict(data)
        return {"status": self.status, "data": data}


@dataclass(frozen=True)
class Failure:
    error: ErrorInfo
    status: Literal["error"] = "error"

    @property
    def ok(self) -> bool:
        return False

    @classmethod
    def from_exception(cls, exc: BaseException) -> "Failure":
        """Build the error envelope, keeping the cause's message when it adds detail."""
        if not isinstance(exc, StihirusError):
            exc = UnknownError(str(exc) or type(exc).__name__)
        original = None
        cause = exc.__cause__
        if cause is not None and str(cause) and str(cause) != exc.message:
            original = str(cause)
        return cls(ErrorInfo(code=exc.code, message=exc.message, original_message=original))

    def to_dict(self) -> dict[str, Any]:
        error: dict[str, Any] = {"code": self.error.code, "message": self.error.message}
        if self.error.original_message:
            error["originalMessage"] = self.error.original_message
        return {"status": self.status, "error": error}


type Response[T] = Success[T] | Failure

"""Client configuration for the stihirus.ru reader."""

import os
from dataclasses import dataclass, field
from urllib.parse import urlparse


def _env_bool(key: str, default: bool) -> bool:
    value = os.getenv(key)
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes")


def _env_int(key: str, default: int) -> int:
    value = os.getenv(key)
    if value is None:
        return default
    return int(value)


def _env_float(key: str, default: float) -> float:
    value = os.getenv(key)
    if value is None:
        return default
    return float(value)


@dataclass(frozen=True)
class ClientConfig:
    """Configuration for StihirusClient and its Transport.

    All settings can be overridden via environment variables with
    the prefix STIHIRUS_.
    """

    base_url: str = field(
        default_factory=lambda: os.getenv("STIHIRUS_BASE_URL", "https://stihirus.ru").rstrip("/")
    )
    user_agent: str = field(
        default_factory=lambda: os.getenv(
            "STIHIRUS_USER_AGENT", "Mozilla/5.0 (Python) stihirus-reader/1.5.0"
        )
    )
    page_size: int = field(default_factory=lambda: _env_int("STIHIRUS_PAGE_SIZE", 20))
    request_delay_ms: int = field(
        default_factory=lambda: _env_int("STIHIRUS_REQUEST_DELAY_MS", 200)
    )
    timeout: float = field(default_factory=lambda: _env_float("STIHIRUS_TIMEOUT", 30.0))
    fan_out: bool = field(default_factory=lambda: _env_bool("STIHIRUS_FAN_OUT", False))
    fan_out_pause_ms: int = field(
        default_factory=lambda: _env_int("STIHIRUS_FAN_OUT_PAUSE_MS", 50)
    )
    max_fan_out_pages: int = field(
        default_factory=lambda: _env_int("STIHIRUS_MAX_FAN_OUT_PAGES", 100)
    )

    @property
    def scheme(self) -> str:
        return urlparse(self.base_url).scheme or "https"

    @property
    def site_domain(self) -> str:
        """Host of the site without a leading ``www.``."""
        host = (urlparse(self.base_url).hostname or "").lower()
        return host.removeprefix("www.")

    @property
    def api_base_url(self) -> str:
        return f"{self.base_url}/-zbb/api"

    def path_profile_url(self, username: str) -> str:
        """Profile URL in the ``/avtor/<username>`` form."""
        return f"{self.base_url}/avtor/{username}"

    def subdomain_profile_url(self, username: str) -> str:
        """Profile URL in the ``<username>.<site>`` form."""
        return f"{self.scheme}://{username}.{self.site_domain}/"

    def poem_url(self, poem_id: int) -> str:
        return f"{self.base_url}/proizv/{poem_id}"

    def absolute_url(self, url: str) -> str:
        """Make a site URL absolute.

        Protocol-relative URLs get ``https:``, root-relative ones are
        prefixed with the site origin.
        """
        if url.startswith("//"):
            return "https:" + url
        if url.startswith("/"):
            return f"{self.base_url}{url}"
        if url.startswith(("http://", "https://")):
            return url
        return f"{self.base_url}/{url}"

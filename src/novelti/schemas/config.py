"""
Typed settings for each part of the engine.

:class:`~novelti.infra.config.ConfigAdapter` builds these from the settings
file; code that embeds the engine can also construct them directly.
"""

from dataclasses import dataclass, field


@dataclass
class SessionConfig:
    """HTTP client settings, shared by every session backend.

    Attributes:
        timeout: Seconds before an upstream request is abandoned.
        max_connections: Pooled connections to the upstream host.
        user_agent: Replaces the default ``novelti/<version>`` agent.
        headers: Replaces the default JSON ``Accept`` header set.
        impersonate: TLS fingerprint to present; curl_cffi only.
        verify_ssl: Verify the upstream certificate.
        http2: Negotiate HTTP/2; httpx only.
        trust_env: Honour ``HTTP(S)_PROXY`` and friends from the environment.
        proxy: Proxy URL for upstream calls.
        proxy_user: Proxy username.
        proxy_pass: Proxy password.
    """

    timeout: float = 10.0
    max_connections: int = 10
    user_agent: str | None = None
    headers: dict[str, str] | None = None
    impersonate: str | None = "chrome"
    verify_ssl: bool = True
    http2: bool = True
    trust_env: bool = False
    proxy: str | None = None
    proxy_user: str | None = None
    proxy_pass: str | None = None


@dataclass
class FetcherConfig:
    """Configuration for talking to the upstream volumes API.

    Attributes:
        base_url: Volumes endpoint.
        api_key: Optional API key sent as the ``key`` query parameter.
        page_size: ``maxResults`` for collection queries.
        order_by: ``orderBy`` hint for collection queries.
        max_rps: Maximum allowed requests per second (0 disables limiting).
        backend: HTTP backend name (aiohttp, httpx, curl_cffi).
        session_cfg: HTTP session configuration.
    """

    base_url: str = "https://www.googleapis.com/books/v1/volumes"
    api_key: str | None = None
    page_size: int = 20
    order_by: str = "relevance"
    max_rps: float = 0.0
    backend: str = "aiohttp"
    session_cfg: SessionConfig = field(default_factory=SessionConfig)


@dataclass
class CacheConfig:
    """Configuration for the in-memory result cache.

    Attributes:
        ttl: Seconds an entry stays readable after insertion.
        max_entries: Capacity bound; least recently used keys go first.
    """

    ttl: float = 600.0
    max_entries: int = 1024


@dataclass
class StoreConfig:
    """Configuration for the persisted thumbnail store.

    Attributes:
        db_path: SQLite database file.
        timeout: Seconds a single lookup may take before it counts as a miss.
    """

    db_path: str = "./novelti.sqlite"
    timeout: float = 2.0


@dataclass
class ResolverConfig:
    """Top-level configuration for the resolution engine.

    Attributes:
        cover_template: Template for derived cover URLs, keyed by ``volume_id``.
        batch_size: Identifiers per thumbnail store query.
        fetcher_cfg: Upstream fetcher configuration.
        cache_cfg: Result cache configuration.
        store_cfg: Thumbnail store configuration.
    """

    cover_template: str = (
        "https://books.google.com/books/publisher/content/images/frontcover/"
        "{volume_id}?fife=w600-h800&source=gbs_api"
    )
    batch_size: int = 200
    fetcher_cfg: FetcherConfig = field(default_factory=FetcherConfig)
    cache_cfg: CacheConfig = field(default_factory=CacheConfig)
    store_cfg: StoreConfig = field(default_factory=StoreConfig)

"""
Fetcher for the upstream volumes API.

:class:`GoogleBooksFetcher` owns the HTTP session, applies the optional rate
limit and the per-request timeout, and turns every transport-level failure
into :class:`~novelti.upstream.errors.UpstreamUnavailable`.
"""

from __future__ import annotations

import asyncio
import logging
import types
from typing import Any, Self
from urllib.parse import quote_plus

from novelti.infra.sessions import BaseSession, create_session
from novelti.schemas import FetcherConfig, SearchMode

from .errors import UpstreamUnavailable
from .query import build_request_url
from .rate_limiter import TokenBucketRateLimiter

logger = logging.getLogger(__name__)


class GoogleBooksFetcher:
    """Issues GET requests against the volumes endpoint.

    The fetcher never retries; callers decide what to do with
    :class:`UpstreamUnavailable`.
    """

    def __init__(
        self,
        config: FetcherConfig | None = None,
        *,
        session: BaseSession | None = None,
        **kwargs: Any,
    ) -> None:
        """Initializes a new fetcher instance.

        Args:
            config: Optional fetcher configuration.
            session: Optional preconfigured HTTP session. If omitted, a new
                session is created via :func:`create_session`.
            **kwargs: Additional keyword arguments forwarded to
                :func:`create_session` when ``session`` is not provided.
        """
        config = config or FetcherConfig()

        self._base_url = config.base_url
        self._api_key = config.api_key
        self._page_size = config.page_size
        self._order_by = config.order_by
        self._timeout = config.session_cfg.timeout

        self.session = session or create_session(
            backend=config.backend,
            cfg=config.session_cfg,
            **kwargs,
        )

        self._rate_limiter: TokenBucketRateLimiter | None = (
            TokenBucketRateLimiter(config.max_rps) if config.max_rps > 0 else None
        )

    async def init(self) -> None:
        """Initializes the underlying session."""
        await self.session.init()

    async def close(self) -> None:
        """Closes the underlying session and releases pooled connections."""
        await self.session.close()

    def build_url(self, term: str, mode: SearchMode, offset: int = 0) -> str:
        """Builds the request URL for a search using this fetcher's settings.

        Args:
            term: Search term or volume ID.
            mode: Search mode.
            offset: Pagination offset.

        Returns:
            The request URL, including the API key when one is configured.
        """
        url = build_request_url(
            term,
            mode,
            offset,
            base_url=self._base_url,
            page_size=self._page_size,
            order_by=self._order_by,
        )
        if self._api_key:
            sep = "&" if "?" in url else "?"
            url = f"{url}{sep}key={quote_plus(self._api_key)}"
        return url

    async def fetch_volumes(self, url: str) -> bytes:
        """Fetches the raw body for an upstream URL.

        Args:
            url: Target URL, usually from :meth:`build_url`.

        Returns:
            The raw response body.

        Raises:
            RuntimeError: If the fetcher has not been initialized.
            UpstreamUnavailable: If the request fails, times out, or returns a
                non-2xx status.
        """
        if self._rate_limiter:
            await self._rate_limiter.wait()

        safe_url = self._redact(url)
        logger.debug("Calling upstream: %s", safe_url)
        try:
            async with asyncio.timeout(self._timeout):
                resp = await self.session.get(url)
        except TimeoutError as e:
            logger.warning("Upstream request timed out after %.1fs: %s", self._timeout, safe_url)
            raise UpstreamUnavailable(
                f"Request to {safe_url} timed out", url=safe_url
            ) from e
        except self.session.transport_errors as e:
            logger.warning("Upstream request failed: %s (%s)", safe_url, e)
            raise UpstreamUnavailable(
                f"Request to {safe_url} failed: {e}", url=safe_url
            ) from e

        if not resp.ok:
            logger.warning("Upstream returned status %s: %s", resp.status, safe_url)
            raise UpstreamUnavailable(
                f"Request to {safe_url} failed with status {resp.status}",
                url=safe_url,
                status=resp.status,
            )
        return resp.content

    def _redact(self, url: str) -> str:
        """Strips the API key from a URL before it is logged or surfaced."""
        if not self._api_key:
            return url
        return url.replace(quote_plus(self._api_key), "***")

    async def __aenter__(self) -> Self:
        await self.init()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        tb: types.TracebackType | None,
    ) -> None:
        await self.close()

"""
Backend-neutral async HTTP client used by the upstream fetcher.

Backends only know how to open, call and shut down their library's client.
Header defaults, open/closed state and request timing live here.
"""

from __future__ import annotations

import abc
import logging
import time
import types
from collections.abc import Mapping
from typing import Any, ClassVar, Generic, Self, TypeVar

from novelti.infra.http_defaults import DEFAULT_USER_HEADERS
from novelti.schemas import SessionConfig

from .response import BaseResponse

logger = logging.getLogger(__name__)

ClientT = TypeVar("ClientT")

QueryParams = Mapping[str, str | int]


class BaseSession(abc.ABC, Generic[ClientT]):
    """Open/close lifecycle and GET plumbing shared by every backend."""

    backend: ClassVar[str] = ""

    #: Exceptions a backend raises for connection, protocol and timeout failures.
    transport_errors: ClassVar[tuple[type[BaseException], ...]] = (
        OSError,
        TimeoutError,
    )

    def __init__(self, cfg: SessionConfig | None = None, **kwargs: Any) -> None:
        """Prepare an unopened session.

        Args:
            cfg: Session configuration; defaults are used when omitted.
            **kwargs: Accepted for forward compatibility, currently unused.
        """
        self._cfg = cfg or SessionConfig()
        self._headers = self._initial_headers(self._cfg)
        self._client: ClientT | None = None

    @property
    def timeout(self) -> float:
        """Per-request timeout in seconds."""
        return self._cfg.timeout

    @property
    def headers(self) -> dict[str, str]:
        """A copy of the headers sent with every request."""
        return dict(self._headers)

    @property
    def is_open(self) -> bool:
        return self._client is not None

    async def init(self) -> None:
        """Open the backend client. Opening an open session does nothing."""
        if self._client is not None:
            return
        self._client = await self._open()
        logger.debug("%s session opened", self.backend)

    async def close(self) -> None:
        """Shut the backend client down. Closing twice is harmless."""
        client, self._client = self._client, None
        if client is None:
            return
        await self._shutdown(client)
        logger.debug("%s session closed", self.backend)

    async def get(
        self,
        url: str,
        *,
        params: QueryParams | None = None,
        encoding: str = "utf-8",
    ) -> BaseResponse:
        """Send a GET and return the fully read response.

        The body is read before this returns, so the connection is back in
        the pool whether the call succeeded or raised.

        Args:
            url: Target URL.
            params: Extra query parameters.
            encoding: Text encoding to assume when the server declares none.

        Returns:
            The response, for any status code.

        Raises:
            RuntimeError: If the session is not open.
        """
        if self._client is None:
            raise RuntimeError(f"{self.backend} session is not open")

        started = time.perf_counter()
        resp = await self._send(self._client, url, params, encoding)
        logger.debug(
            "%s GET -> %d, %d bytes in %.0f ms",
            self.backend,
            resp.status,
            len(resp.content),
            (time.perf_counter() - started) * 1000,
        )
        return resp

    @abc.abstractmethod
    async def _open(self) -> ClientT: ...

    @abc.abstractmethod
    async def _shutdown(self, client: ClientT) -> None: ...

    @abc.abstractmethod
    async def _send(
        self,
        client: ClientT,
        url: str,
        params: QueryParams | None,
        encoding: str,
    ) -> BaseResponse: ...

    @staticmethod
    def _initial_headers(cfg: SessionConfig) -> dict[str, str]:
        headers = dict(DEFAULT_USER_HEADERS if cfg.headers is None else cfg.headers)
        if cfg.user_agent:
            headers["User-Agent"] = cfg.user_agent
        return headers

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

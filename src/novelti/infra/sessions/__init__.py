"""
HTTP session backends used to reach the upstream volumes API.

All backends expose the same :class:`BaseSession` interface; the fetcher
picks one by name from configuration.
"""

__all__ = ["create_session", "BaseSession", "BaseResponse"]

from typing import Any

from novelti.schemas import SessionConfig

from .base import BaseSession
from .response import BaseResponse


def create_session(
    backend: str,
    cfg: SessionConfig | None = None,
    **kwargs: Any,
) -> BaseSession:
    """Creates and returns a session backend instance.

    Supported backends:
        * "aiohttp"
        * "httpx"
        * "curl_cffi" (requires the ``curl-cffi`` extra)

    Args:
        backend: Name of the backend to use.
        cfg: Optional session configuration to pass to the backend.
        **kwargs: Additional keyword arguments forwarded directly to the
            backend constructor.

    Returns:
        BaseSession: An uninitialized session for the selected backend.

    Raises:
        ValueError: If the specified backend name is not supported.
        ImportError: If the backend's library is not installed.
    """
    match backend:
        case "aiohttp":
            from ._aiohttp import AiohttpSession

            return AiohttpSession(cfg, **kwargs)
        case "httpx":
            from ._httpx import HttpxSession

            return HttpxSession(cfg, **kwargs)
        case "curl_cffi":
            from ._curl_cffi import CurlCffiSession

            return CurlCffiSession(cfg, **kwargs)
        case _:
            raise ValueError(f"Unsupported backend: {backend!r}")

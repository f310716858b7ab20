import httpx

from novelti.schemas import SessionConfig

from .base import BaseSession, QueryParams
from .response import BaseResponse


def _proxy_url(cfg: SessionConfig) -> str | None:
    """Return the proxy URL with credentials folded in, as httpx expects."""
    if not cfg.proxy:
        return None
    if not (cfg.proxy_user and cfg.proxy_pass):
        return cfg.proxy
    url = httpx.URL(cfg.proxy).copy_with(
        username=cfg.proxy_user, password=cfg.proxy_pass
    )
    return str(url)


class HttpxSession(BaseSession[httpx.AsyncClient]):
    """Backend built on httpx; speaks HTTP/2 when ``http2`` is set."""

    backend = "httpx"
    transport_errors = (httpx.HTTPError, OSError, TimeoutError)

    async def _open(self) -> httpx.AsyncClient:
        cfg = self._cfg
        return httpx.AsyncClient(
            http2=cfg.http2,
            timeout=cfg.timeout,
            verify=cfg.verify_ssl,
            headers=self._headers,
            limits=httpx.Limits(
                max_connections=cfg.max_connections,
                max_keepalive_connections=cfg.max_connections,
            ),
            proxy=_proxy_url(cfg),
            trust_env=cfg.trust_env,
        )

    async def _shutdown(self, client: httpx.AsyncClient) -> None:
        if not client.is_closed:
            await client.aclose()

    async def _send(
        self,
        client: httpx.AsyncClient,
        url: str,
        params: QueryParams | None,
        encoding: str,
    ) -> BaseResponse:
        r = await client.get(url, params=params)
        return BaseResponse(
            content=r.content,
            headers=r.headers.multi_items(),
            status=r.status_code,
            encoding=r.charset_encoding or encoding,
            url=str(r.url),
        )

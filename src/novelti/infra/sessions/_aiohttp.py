import aiohttp

from .base import BaseSession, QueryParams
from .response import BaseResponse


class AiohttpSession(BaseSession[aiohttp.ClientSession]):
    """Default backend, built on aiohttp."""

    backend = "aiohttp"
    transport_errors = (aiohttp.ClientError, OSError, TimeoutError)

    async def _open(self) -> aiohttp.ClientSession:
        cfg = self._cfg
        return aiohttp.ClientSession(
            connector=aiohttp.TCPConnector(
                ssl=cfg.verify_ssl,
                limit_per_host=cfg.max_connections,
            ),
            timeout=aiohttp.ClientTimeout(total=cfg.timeout),
            headers=self._headers,
            trust_env=cfg.trust_env,
        )

    async def _shutdown(self, client: aiohttp.ClientSession) -> None:
        if not client.closed:
            await client.close()

    async def _send(
        self,
        client: aiohttp.ClientSession,
        url: str,
        params: QueryParams | None,
        encoding: str,
    ) -> BaseResponse:
        cfg = self._cfg
        proxy_auth = (
            aiohttp.BasicAuth(cfg.proxy_user, cfg.proxy_pass)
            if cfg.proxy and cfg.proxy_user and cfg.proxy_pass
            else None
        )
        async with client.get(
            url, params=params, proxy=cfg.proxy, proxy_auth=proxy_auth
        ) as r:
            return BaseResponse(
                content=await r.read(),
                headers=list(r.headers.items()),
                status=r.status,
                encoding=r.charset or encoding,
                url=str(r.url),
            )

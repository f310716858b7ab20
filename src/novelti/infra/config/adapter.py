from __future__ import annotations

from typing import Any

from novelti.infra.paths import THUMBNAIL_DB_PATH
from novelti.schemas import (
    CacheConfig,
    FetcherConfig,
    ResolverConfig,
    SessionConfig,
    StoreConfig,
)


class ConfigAdapter:
    """High-level accessor for general and component-specific configuration.

    All configuration resolution follows the order:

    **general -> component section -> built-in defaults**

    where the component section is one of ``upstream``, ``cache`` or
    ``store``.

    Args:
        config (dict[str, Any]): Fully loaded configuration mapping containing
            a ``general`` block and optionally component blocks.

    Attributes:
        _config (dict[str, Any]): Internal stored configuration mapping.
    """

    def __init__(self, config: dict[str, Any]) -> None:
        self._config: dict[str, Any] = dict(config)

    def get_config(self) -> dict[str, Any]:
        """Return the full raw configuration mapping.

        Returns:
            dict[str, Any]: The stored configuration.
        """
        return self._config

    def get_session_config(self) -> SessionConfig:
        """Build a SessionConfig by merging general and upstream overrides.

        Returns:
            SessionConfig: Resolved session configuration.
        """
        cfg = {**self._gen_cfg(), **self._section("upstream")}

        return SessionConfig(
            timeout=float(cfg.get("timeout", 10.0)),
            max_connections=int(cfg.get("max_connections", 10)),
            user_agent=cfg.get("user_agent"),
            headers=cfg.get("headers"),
            impersonate=cfg.get("impersonate", "chrome"),
            verify_ssl=bool(cfg.get("verify_ssl", True)),
            http2=bool(cfg.get("http2", True)),
            trust_env=bool(cfg.get("trust_env", False)),
            proxy=cfg.get("proxy"),
            proxy_user=cfg.get("proxy_user"),
            proxy_pass=cfg.get("proxy_pass"),
        )

    def get_fetcher_config(self) -> FetcherConfig:
        """Build a FetcherConfig by merging general and upstream overrides.

        Returns:
            FetcherConfig: Resolved fetcher configuration.
        """
        cfg = {**self._gen_cfg(), **self._section("upstream")}
        defaults = FetcherConfig()

        return FetcherConfig(
            base_url=str(cfg.get("base_url", defaults.base_url)).rstrip("/"),
            api_key=cfg.get("api_key") or None,
            page_size=int(cfg.get("page_size", defaults.page_size)),
            order_by=str(cfg.get("order_by", defaults.order_by)),
            max_rps=float(cfg.get("max_rps", defaults.max_rps)),
            backend=self.get_backend(),
            session_cfg=self.get_session_config(),
        )

    def get_cache_config(self) -> CacheConfig:
        """Build a CacheConfig from the ``cache`` section.

        Returns:
            CacheConfig: Resolved cache configuration.
        """
        cfg = self._section("cache")

        return CacheConfig(
            ttl=float(cfg.get("ttl", 600.0)),
            max_entries=int(cfg.get("max_entries", 1024)),
        )

    def get_store_config(self) -> StoreConfig:
        """Build a StoreConfig from the ``store`` section.

        Returns:
            StoreConfig: Resolved store configuration.
        """
        cfg = self._section("store")

        return StoreConfig(
            db_path=str(cfg.get("db_path") or THUMBNAIL_DB_PATH),
            timeout=float(cfg.get("timeout", 2.0)),
        )

    def get_resolver_config(self) -> ResolverConfig:
        """Build the top-level ResolverConfig.

        Returns:
            ResolverConfig: Resolved engine configuration.
        """
        general_cfg = self._gen_cfg()
        defaults = ResolverConfig()

        return ResolverConfig(
            cover_template=general_cfg.get("cover_template", defaults.cover_template),
            batch_size=max(1, int(general_cfg.get("batch_size", 200))),
            fetcher_cfg=self.get_fetcher_config(),
            cache_cfg=self.get_cache_config(),
            store_cfg=self.get_store_config(),
        )

    def get_backend(self) -> str:
        """Return the backend string from configuration.

        Returns:
            str: Backend name or ``"aiohttp"`` if unspecified.
        """
        cfg = {**self._gen_cfg(), **self._section("upstream")}
        backend = cfg.get("backend")
        return backend if isinstance(backend, str) else "aiohttp"

    def get_log_level(self) -> str:
        """Return the configured log level name.

        Returns:
            str: Upper-cased level name, ``"INFO"`` if unspecified.
        """
        level = self._gen_cfg().get("log_level", "INFO")
        return str(level).upper()

    def _gen_cfg(self) -> dict[str, Any]:
        """Return the ``general`` config block.

        Returns:
            dict[str, Any]: General configuration mapping.
        """
        return self._section("general")

    def _section(self, name: str) -> dict[str, Any]:
        """Return a named top-level block, or ``{}`` if absent or not a table.

        Args:
            name: Section name.

        Returns:
            dict[str, Any]: The section mapping.
        """
        block = self._config.get(name)
        return block if isinstance(block, dict) else {}

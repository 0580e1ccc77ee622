from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from .cache import SessionCache
from .config import ClientConfig, RetryConfig
from .transport import RedmineTransport


@dataclass(frozen=True)
class Session:
    """A transport and the caches filled through it, published as one unit."""

    transport: RedmineTransport
    config: ClientConfig
    cache: SessionCache = field(default_factory=SessionCache)

    @classmethod
    def open(
        cls,
        *,
        base_url: str,
        api_key: str,
        config: ClientConfig,
        retry: Optional[RetryConfig] = None,
        logger: Optional[logging.Logger] = None,
    ) -> "Session":
        transport = RedmineTransport(
            base_url=base_url,
            api_key=api_key,
            config=config,
            retry=retry,
            logger=logger,
        )
        return cls(transport=transport, config=config)

    @property
    def base_url(self) -> str:
        return self.transport.base_url

    async def aclose(self) -> None:
        """Retire the session: drop its cached reference data, close the pool."""
        self.cache.clear()
        await self.transport.aclose()


__all__ = ["Session"]

"""Redis-backed window store.

Each identifier is one sorted set. Both window procedures are registered
once and invoked through EVALSHA; the client falls back to EVAL when the
server's script cache has been flushed.
"""

from __future__ import annotations

import logging
from typing import Any, Sequence

from redis.asyncio import Redis

from window_limiter.adapters.rate_limit.base import AbstractWindowStore, WindowProcedure
from window_limiter.adapters.rate_limit.scripts import render_window_script

logger = logging.getLogger(__name__)


class RedisWindowStore(AbstractWindowStore):
    """Execution engine running the window procedures as Redis Lua scripts.

    Shared by every process pointed at the same Redis, which is what makes
    the limit global rather than per-worker. Connection and script errors
    raised by ``redis`` propagate unchanged.
    """

    def __init__(self, redis: Redis) -> None:
        self._redis = redis
        self._scripts = {
            procedure: redis.register_script(render_window_script(admit=procedure.admit))
            for procedure in WindowProcedure
        }

    @classmethod
    def from_url(cls, url: str) -> "RedisWindowStore":
        """Build a store with its own client for ``url``.

        Only the parsed host, port and db are logged; the URL may carry a
        password.
        """
        client = Redis.from_url(url, decode_responses=True)
        connection_kwargs = client.connection_pool.connection_kwargs
        logger.info(
            "window_store.redis_client_created",
            extra={
                "redis_host": connection_kwargs.get("host"),
                "redis_port": connection_kwargs.get("port"),
                "redis_db": connection_kwargs.get("db"),
            },
        )
        return cls(client)

    async def execute_atomic(
        self,
        procedure: WindowProcedure,
        key: str,
        args: Sequence[str],
    ) -> Any:
        raw = await self._scripts[procedure](keys=[key], args=list(args))
        # Clients created without decode_responses reply with bytes
        if isinstance(raw, bytes):
            return raw.decode("utf-8")
        return raw

    async def delete(self, key: str) -> None:
        await self._redis.delete(key)

    async def aclose(self) -> None:
        """Close the underlying client connection pool."""
        await self._redis.aclose()

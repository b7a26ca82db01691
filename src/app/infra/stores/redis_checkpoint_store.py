"""Redis Checkpoint Store — cursor monotônico de processamento.

Usa script Lua para comparar-e-gravar de forma atômica: o cursor nunca
retrocede, mesmo com escritores concorrentes em instâncias diferentes.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from app.protocols.checkpoint_store import CheckpointStoreProtocol
from utils.errors import RedisConnectionError

if TYPE_CHECKING:
    from redis.asyncio import Redis as AsyncRedis

logger = logging.getLogger(__name__)

DEFAULT_PREFIX = "relay:"

ADVANCE_SCRIPT = """
local current = redis.call('GET', KEYS[1])
if current and tonumber(ARGV[1]) <= tonumber(current) then
    return 0
end
redis.call('SET', KEYS[1], ARGV[1])
return 1
"""


class RedisCheckpointStore(CheckpointStoreProtocol):
    """Cursor de processamento persistido no Redis.

    Args:
        async_redis_client: Cliente Redis assíncrono
        stream: Nome do stream lógico (um cursor por stream)
        prefix: Namespace das chaves
    """

    def __init__(
        self,
        async_redis_client: AsyncRedis[bytes],
        stream: str = "global",
        prefix: str = DEFAULT_PREFIX,
    ) -> None:
        self._redis = async_redis_client
        self._key = f"{prefix}checkpoint:{stream}"

    async def get(self, default: int = 0) -> int:
        try:
            value = await self._redis.get(self._key)
        except Exception as exc:
            raise RedisConnectionError("Falha ao ler checkpoint no Redis") from exc
        if value is None:
            return default
        return int(value)

    async def set(self, item_id: int) -> bool:
        try:
            advanced = await self._redis.eval(ADVANCE_SCRIPT, 1, self._key, str(item_id))
        except Exception as exc:
            raise RedisConnectionError("Falha ao gravar checkpoint no Redis") from exc
        if advanced:
            logger.info("checkpoint_advanced", extra={"checkpoint_id": item_id})
        return bool(advanced)

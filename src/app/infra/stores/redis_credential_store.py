"""Redis Credential Store — pool de credenciais compartilhado entre instâncias.

Layout das chaves (prefixo configurável, padrão "relay:"):
    relay:credentials                  LIST com fingerprints na ordem de registro
    relay:credential:<fingerprint>     HASH com os campos da credencial

O segredo nunca aparece no nome da chave; a chave usa o fingerprint
SHA-256 do segredo.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from app.domain.credential import Credential, pick_best_credential, secret_fingerprint
from app.protocols.credential_store import CredentialStoreProtocol
from utils.errors import DuplicateCredentialError, RedisConnectionError

if TYPE_CHECKING:
    from redis.asyncio import Redis as AsyncRedis

logger = logging.getLogger(__name__)

DEFAULT_PREFIX = "relay:"

# Registro atômico: HASH e índice são gravados juntos ou nada é gravado
REGISTER_SCRIPT = """
if redis.call('EXISTS', KEYS[1]) == 1 then
    return 0
end
redis.call('HSET', KEYS[1], unpack(ARGV, 2))
redis.call('RPUSH', KEYS[2], ARGV[1])
return 1
"""


def _text(value: Any) -> str:
    return value.decode("utf-8") if isinstance(value, bytes) else str(value)


def _to_epoch(value: datetime) -> str:
    return repr(value.timestamp())


def _from_epoch(value: Any) -> datetime:
    return datetime.fromtimestamp(float(_text(value)), tz=UTC)


def credential_to_hash(credential: Credential) -> dict[str, str]:
    """Serializa credencial para os campos do HASH."""
    return {
        "secret": credential.secret,
        "usage_count": str(credential.usage_count),
        "last_used_at": _to_epoch(credential.last_used_at),
        "rate_limit_remaining": str(credential.rate_limit_remaining),
        "rate_limit_reset_at": _to_epoch(credential.rate_limit_reset_at),
        "is_active": "1" if credential.is_active else "0",
        "created_at": _to_epoch(credential.created_at),
    }


def credential_from_hash(raw: dict[Any, Any]) -> Credential:
    """Reconstrói credencial a partir do HASH (bytes ou str)."""
    data = {_text(key): value for key, value in raw.items()}
    return Credential(
        secret=_text(data["secret"]),
        usage_count=int(_text(data.get("usage_count", b"0"))),
        last_used_at=_from_epoch(data.get("last_used_at", b"0")),
        rate_limit_remaining=int(_text(data.get("rate_limit_remaining", b"0"))),
        rate_limit_reset_at=_from_epoch(data.get("rate_limit_reset_at", b"0")),
        is_active=_text(data.get("is_active", b"1")) == "1",
        created_at=_from_epoch(data.get("created_at", b"0")),
    )


class RedisCredentialStore(CredentialStoreProtocol):
    """Store de credenciais usando Redis.

    Args:
        async_redis_client: Cliente Redis assíncrono
        prefix: Namespace das chaves
    """

    def __init__(self, async_redis_client: AsyncRedis[bytes], prefix: str = DEFAULT_PREFIX) -> None:
        self._redis = async_redis_client
        self._prefix = prefix

    def _index_key(self) -> str:
        return f"{self._prefix}credentials"

    def _key(self, fingerprint: str) -> str:
        return f"{self._prefix}credential:{fingerprint}"

    async def add(self, credential: Credential) -> None:
        fields = credential_to_hash(credential)
        flattened = [item for pair in fields.items() for item in pair]
        try:
            created = await self._redis.eval(
                REGISTER_SCRIPT,
                2,
                self._key(credential.fingerprint),
                self._index_key(),
                credential.fingerprint,
                *flattened,
            )
        except Exception as exc:
            raise RedisConnectionError("Falha ao registrar credencial no Redis") from exc
        if not created:
            raise DuplicateCredentialError(f"Credencial {credential.masked} já registrada")

    async def _load_all(self) -> list[Credential]:
        try:
            fingerprints = await self._redis.lrange(self._index_key(), 0, -1)
            if not fingerprints:
                return []
            pipeline = self._redis.pipeline()
            for fingerprint in fingerprints:
                pipeline.hgetall(self._key(_text(fingerprint)))
            rows = await pipeline.execute()
        except Exception as exc:
            raise RedisConnectionError("Falha ao consultar credenciais no Redis") from exc

        credentials: list[Credential] = []
        for row in rows:
            if not row:
                continue
            try:
                credentials.append(credential_from_hash(row))
            except (KeyError, ValueError) as exc:
                logger.warning("credential_record_invalid", extra={"error": str(exc)})
        return credentials

    async def select_available(self, now: datetime) -> Credential | None:
        return pick_best_credential(await self._load_all(), now)

    async def record_usage(
        self,
        secret: str,
        remaining: int,
        reset_at: datetime,
        used_at: datetime,
    ) -> None:
        key = self._key(secret_fingerprint(secret))
        try:
            if not await self._redis.exists(key):
                return
            pipeline = self._redis.pipeline(transaction=True)
            pipeline.hincrby(key, "usage_count", 1)
            pipeline.hset(
                key,
                mapping={
                    "last_used_at": _to_epoch(used_at),
                    "rate_limit_remaining": str(remaining),
                    "rate_limit_reset_at": _to_epoch(reset_at),
                },
            )
            await pipeline.execute()
        except Exception as exc:
            raise RedisConnectionError("Falha ao registrar uso de credencial no Redis") from exc

    async def deactivate(self, secret: str) -> None:
        key = self._key(secret_fingerprint(secret))
        try:
            if await self._redis.exists(key):
                await self._redis.hset(key, "is_active", "0")
        except Exception as exc:
            raise RedisConnectionError("Falha ao desativar credencial no Redis") from exc

    async def get(self, secret: str) -> Credential | None:
        try:
            row = await self._redis.hgetall(self._key(secret_fingerprint(secret)))
        except Exception as exc:
            raise RedisConnectionError("Falha ao ler credencial no Redis") from exc
        return credential_from_hash(row) if row else None

    async def count_active(self) -> int:
        return sum(1 for credential in await self._load_all() if credential.is_active)

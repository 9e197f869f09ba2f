"""
Armazenamento chave/valor dos caches do dashboard (equivalente ao localStorage do navegador).

Valores são serializados em JSON. Erros de leitura/gravação nunca derrubam a
requisição: leitura inválida devolve None e gravação com falha é apenas logada.
"""
import json
import logging
import threading
from typing import Any, Dict, Optional

import redis

from app.core.config import settings

logger = logging.getLogger(__name__)


class KeyValueStorage:
    def get(self, key: str) -> Optional[Any]:
        raise NotImplementedError

    def set(self, key: str, value: Any) -> None:
        raise NotImplementedError

    def remove(self, key: str) -> None:
        raise NotImplementedError

    def clear(self) -> None:
        raise NotImplementedError

    def status(self) -> str:
        raise NotImplementedError


class MemoryStorage(KeyValueStorage):
    """Storage do próprio processo; guarda o JSON serializado como o navegador faria."""

    def __init__(self):
        self._data: Dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            raw = self._data.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            return None

    def set(self, key: str, value: Any) -> None:
        try:
            payload = json.dumps(value, ensure_ascii=False, default=str)
        except (TypeError, ValueError) as e:
            logger.warning(f"Valor não serializável para a chave {key}: {e}")
            return
        with self._lock:
            self._data[key] = payload

    def remove(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._data.clear()

    def keys(self):
        with self._lock:
            return list(self._data.keys())

    def status(self) -> str:
        return "memory"


class RedisStorage(KeyValueStorage):
    def __init__(self, client: redis.Redis, ttl: Optional[int] = None, namespace: str = "marketdash:"):
        self.client = client
        self.ttl = ttl or settings.CACHE_TTL_SECONDS
        self.namespace = namespace

    def _key(self, key: str) -> str:
        return f"{self.namespace}{key}"

    def get(self, key: str) -> Optional[Any]:
        try:
            data = self.client.get(self._key(key))
        except redis.exceptions.RedisError as e:
            logger.warning(f"Falha ao ler {key} do Redis: {e}")
            return None
        if data is None:
            return None
        try:
            return json.loads(data)
        except json.JSONDecodeError:
            return None

    def set(self, key: str, value: Any) -> None:
        payload = json.dumps(value, ensure_ascii=False, default=str)
        try:
            self.client.setex(self._key(key), self.ttl, payload)
        except redis.exceptions.RedisError as e:
            logger.warning(f"Falha ao gravar {key} no Redis: {e}")

    def remove(self, key: str) -> None:
        try:
            self.client.delete(self._key(key))
        except redis.exceptions.RedisError as e:
            logger.warning(f"Falha ao remover {key} do Redis: {e}")

    def clear(self) -> None:
        cursor = 0
        pattern = f"{self.namespace}*"
        try:
            while True:
                cursor, keys = self.client.scan(cursor=cursor, match=pattern, count=500)
                if keys:
                    self.client.delete(*keys)
                if cursor == 0:
                    break
        except redis.exceptions.RedisError as e:
            logger.warning(f"Falha ao limpar o Redis: {e}")

    def status(self) -> str:
        """connected, auth_required ou disconnected."""
        try:
            self.client.ping()
            return "connected"
        except redis.exceptions.AuthenticationError:
            logger.warning("Redis health check: Autenticação necessária (verifique REDIS_URL)")
            return "auth_required"
        except redis.exceptions.RedisError as e:
            logger.warning(f"Redis health check failed: {str(e)}")
            return "disconnected"


def create_storage() -> KeyValueStorage:
    """Redis quando REDIS_URL está configurado; caso contrário, memória do processo."""
    if not settings.REDIS_URL:
        return MemoryStorage()
    client = redis.Redis.from_url(settings.REDIS_URL, decode_responses=True)
    return RedisStorage(client)

"""
Cache en disco del schema de la base de datos Notion.

Formato del archivo:
    {"schema": {<properties de Notion>}, "timestamp": <epoch ms>}

Reglas:
- Si la edad del cache es menor al TTL (1 hora por defecto) se usa sin ir a la red.
- Cache corrupto o ausente == cache expirado: dispara un fetch en vivo, nunca es fatal.
- Un fallo del fetch en vivo lanza SchemaFetchError. Durante la ejecucion
  (allow_stale=True) se reutiliza el ultimo schema servido por esta instancia.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Callable, Optional

from loguru import logger

from lifelog_sync.application.interfaces.sync_ports import SchemaProvider
from lifelog_sync.domain.entities.destination_schema import DestinationSchema
from lifelog_sync.infrastructure.state.watermark_store import write_json_atomic
from lifelog_sync.shared.exceptions.sync import SchemaFetchError
from lifelog_sync.shared.utils.datetime_utils import DateTimeUtils


DEFAULT_SCHEMA_TTL_MS = 3_600_000


class SchemaCache:
    """Schema de destino con ventana de frescura persistida en disco."""

    def __init__(
        self,
        path: str | Path,
        provider: SchemaProvider,
        *,
        ttl_ms: int = DEFAULT_SCHEMA_TTL_MS,
        clock_ms: Callable[[], int] = DateTimeUtils.now_epoch_ms,
    ) -> None:
        self._path = Path(path)
        self._provider = provider
        self._ttl_ms = ttl_ms
        self._clock_ms = clock_ms
        self._last_schema: Optional[DestinationSchema] = None

    @property
    def last_known(self) -> Optional[DestinationSchema]:
        """Ultimo schema servido por esta instancia (None si aun no hubo ninguno)."""
        return self._last_schema

    async def get(self, *, allow_stale: bool = False, force_refresh: bool = False) -> DestinationSchema:
        """
        Retorna el schema vigente.

        Args:
            allow_stale: Si el fetch en vivo falla, reutiliza el ultimo schema conocido.
            force_refresh: Ignora el cache en disco.

        Raises:
            SchemaFetchError: Si el fetch en vivo falla y no hay schema reutilizable.
        """
        if not force_refresh:
            cached = await asyncio.to_thread(self._read_fresh)
            if cached is not None:
                logger.debug("Usando schema de Notion cacheado")
                self._last_schema = cached
                return cached

        try:
            schema = await self._provider.fetch_schema()
        except SchemaFetchError as e:
            if allow_stale and self._last_schema is not None:
                logger.warning(f"No se pudo refrescar el schema ({e.message}); se reutiliza el ultimo conocido")
                return self._last_schema
            raise

        await self._persist(schema)
        logger.info(f"Schema de Notion obtenido y cacheado ({len(schema)} propiedades)")
        self._last_schema = schema
        return schema

    async def _persist(self, schema: DestinationSchema) -> None:
        payload = {"schema": schema.raw, "timestamp": self._clock_ms()}
        try:
            await asyncio.to_thread(write_json_atomic, self._path, payload)
        except OSError as e:
            logger.warning(f"No se pudo escribir el cache de schema en {self._path}: {e}")

    def _read_fresh(self) -> Optional[DestinationSchema]:
        try:
            data: Any = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, json.JSONDecodeError) as e:
            logger.debug(f"Cache de schema ilegible en {self._path}: {e}")
            return None

        if not isinstance(data, dict):
            return None
        timestamp = data.get("timestamp")
        raw_schema = data.get("schema")
        if not isinstance(timestamp, (int, float)) or isinstance(timestamp, bool) or not isinstance(raw_schema, dict):
            logger.debug(f"Cache de schema con formato inesperado en {self._path}")
            return None

        if self._clock_ms() - timestamp >= self._ttl_ms:
            return None
        return DestinationSchema.from_notion(raw_schema)

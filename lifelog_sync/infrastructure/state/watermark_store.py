"""
Persistencia del watermark ("last seen time") entre reinicios.

Formato del archivo:
    {"lastSeenTime": "2025-01-01T00:00:05Z"}

Reglas:
- Si el archivo no existe, se inicializa con "ahora" y se persiste antes de
  retornar (nunca se retorna un valor sin persistir).
- "No existe" no es un error; cualquier otro error de I/O o JSON invalido
  se propaga como StateIOError.
- La escritura es atomica (archivo temporal + os.replace).
- `advance` nunca mueve el watermark hacia atras.
"""

from __future__ import annotations

import asyncio
import json
import os
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Optional

from loguru import logger

from lifelog_sync.shared.exceptions.sync import StateIOError
from lifelog_sync.shared.utils.datetime_utils import DateTimeUtils


STATE_KEY = "lastSeenTime"


def write_json_atomic(path: Path, payload: dict[str, Any]) -> None:
    """Escribe JSON de forma atomica en `path` (mismo directorio para el temporal)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump(payload, fh, indent=2)
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise


class WatermarkStore:
    """Almacen del watermark en un archivo JSON local."""

    def __init__(
        self,
        path: str | Path,
        *,
        clock: Callable[[], datetime] = DateTimeUtils.now_utc,
    ) -> None:
        self._path = Path(path)
        self._clock = clock
        self._lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._path

    async def load(self) -> str:
        """
        Retorna el watermark persistido.

        Si no hay estado previo, lo inicializa en "ahora", lo persiste y lo retorna.

        Raises:
            StateIOError: Error de lectura distinto de "no existe" o JSON invalido.
        """
        state = await asyncio.to_thread(self._read_state)
        value = state.get(STATE_KEY) if state is not None else None
        if value:
            return str(value)

        now = DateTimeUtils.to_iso_string(self._clock())
        if state is None:
            logger.info(f"No existe estado previo en {self._path}; inicializando watermark en {now}")
        else:
            logger.warning(f"Estado en {self._path} sin '{STATE_KEY}'; inicializando watermark en {now}")
        await self.save(now)
        return now

    async def save(self, timestamp: str) -> None:
        """
        Sobrescribe el watermark persistido (last-writer-wins).

        Raises:
            StateIOError: Si la escritura falla.
        """
        try:
            await asyncio.to_thread(write_json_atomic, self._path, {STATE_KEY: timestamp})
        except OSError as e:
            raise StateIOError(str(self._path), "escritura", str(e)) from e

    async def advance(self, candidate: str) -> bool:
        """
        Avanza el watermark a `candidate` solo si es posterior al persistido.

        Relee el valor persistido antes de comparar, de modo que el watermark
        nunca retrocede aunque dos ciclos intenten avanzarlo.

        Returns:
            True si se persistio el nuevo valor.
        """
        candidate_dt = DateTimeUtils.from_iso_string(candidate)
        if candidate_dt is None:
            logger.warning(f"Watermark candidato no es ISO 8601, se ignora: {candidate!r}")
            return False

        async with self._lock:
            current = await self.load()
            current_dt = DateTimeUtils.from_iso_string(current)
            if current_dt is not None and candidate_dt <= current_dt:
                logger.debug(f"Watermark {candidate} no supera el persistido {current}; sin cambios")
                return False
            if current_dt is None:
                logger.warning(f"Watermark persistido no es ISO 8601 ({current!r}); se reemplaza")
            await self.save(candidate)
            return True

    def _read_state(self) -> Optional[dict[str, Any]]:
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StateIOError(str(self._path), "lectura", str(e)) from e

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise StateIOError(str(self._path), "lectura", f"JSON invalido: {e}") from e

        if not isinstance(data, dict):
            raise StateIOError(str(self._path), "lectura", "se esperaba un objeto JSON")
        return data

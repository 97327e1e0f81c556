"""
Normalizacion tolerante de la respuesta de /v1/lifelogs.

La API de Limitless ha devuelto historicamente varias formas:
- {"data": {"lifelogs": [...]}}   (formato actual)
- [...]                           (array directo)
- {"lifelogs": [...]}
- {"data": [...]}
- {"results": [...]}
- {"items": [...]}

Se prueba una lista ordenada de matchers; si ninguno aplica se retorna una
lista vacia y se emite un diagnostico (una sola vez por instancia de
ResponseDiagnostics).
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Callable, Optional

from loguru import logger

from lifelog_sync.domain.entities.lifelog import SourceRecord


ShapeMatcher = Callable[[Any], Optional[list]]


def _nested_data_lifelogs(payload: Any) -> Optional[list]:
    if isinstance(payload, dict) and isinstance(payload.get("data"), dict):
        lifelogs = payload["data"].get("lifelogs")
        if isinstance(lifelogs, list):
            return lifelogs
    return None


def _bare_array(payload: Any) -> Optional[list]:
    return payload if isinstance(payload, list) else None


def _key_array(key: str) -> ShapeMatcher:
    def matcher(payload: Any) -> Optional[list]:
        if isinstance(payload, dict) and isinstance(payload.get(key), list):
            return payload[key]
        return None

    matcher.__name__ = f"_{key}_array"
    return matcher


SHAPE_MATCHERS: tuple[ShapeMatcher, ...] = (
    _nested_data_lifelogs,
    _bare_array,
    _key_array("lifelogs"),
    _key_array("data"),
    _key_array("results"),
    _key_array("items"),
)


@dataclass
class ResponseDiagnostics:
    """
    Estado de diagnosticos "una sola vez".

    Pertenece al cliente que lo crea; su vida es la del cliente.
    """

    structure_logged: bool = False
    unknown_shape_warned: bool = False


def _preview(payload: Any, limit: int) -> str:
    try:
        return json.dumps(payload, ensure_ascii=False)[:limit]
    except (TypeError, ValueError):
        return repr(payload)[:limit]


def log_response_structure(payload: Any, diagnostics: ResponseDiagnostics) -> None:
    """Registra la estructura de la primera respuesta recibida."""
    if diagnostics.structure_logged:
        return
    diagnostics.structure_logged = True
    keys = list(payload.keys()) if isinstance(payload, dict) else "N/A"
    logger.debug(
        f"Estructura de respuesta Limitless: is_array={isinstance(payload, list)}, "
        f"keys={keys}, type={type(payload).__name__}, sample={_preview(payload, 200)}"
    )


def normalize_lifelogs_payload(
    payload: Any,
    diagnostics: Optional[ResponseDiagnostics] = None,
) -> list[SourceRecord]:
    """
    Convierte cualquier forma conocida de respuesta en una lista ordenada de SourceRecord.

    Forma desconocida -> lista vacia + diagnostico (una vez).
    Entradas que no son objetos se descartan con warning.
    """
    diagnostics = diagnostics if diagnostics is not None else ResponseDiagnostics()

    entries: Optional[list] = None
    for matcher in SHAPE_MATCHERS:
        entries = matcher(payload)
        if entries is not None:
            break

    if entries is None:
        if not diagnostics.unknown_shape_warned:
            diagnostics.unknown_shape_warned = True
            if isinstance(payload, dict):
                logger.warning(f"Estructura inesperada de respuesta Limitless. Keys: {list(payload.keys())}")
                if isinstance(payload.get("data"), dict):
                    logger.warning(f"data.data keys: {list(payload['data'].keys())}")
            else:
                logger.warning(f"Tipo de respuesta Limitless inesperado: {type(payload).__name__}")
            logger.warning(f"Respuesta completa (primeros 1000 chars): {_preview(payload, 1000)}")
        return []

    records: list[SourceRecord] = []
    for entry in entries:
        if not isinstance(entry, dict):
            logger.warning(f"Entrada de lifelog descartada (no es objeto): {_preview(entry, 200)}")
            continue
        records.append(SourceRecord.from_api(entry))
    return records

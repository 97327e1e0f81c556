"""
FieldMapper - Convierte un lifelog en propiedades de la base de datos Notion.

Diseno LLM-first con fallback determinista:
- Estrategia primaria: PropertyTransformer (LLM). Su salida se restringe a
  propiedades del schema y a opciones existentes (no se inventan opciones).
- Fallback (ante cualquier error de la primaria, o si no hay transformer):
  titulo + primer rich_text con el contenido del cuerpo. Nada mas.
"""

from __future__ import annotations

from typing import Any, Optional

from loguru import logger

from lifelog_sync.application.interfaces.sync_ports import MappedProperties, PropertyTransformer
from lifelog_sync.domain.entities.destination_schema import (
    LONG_TEXT_TYPE,
    RICH_TEXT_MAX_LENGTH,
    TITLE_TYPE,
    DestinationSchema,
    PropertyDescriptor,
    build_rich_text,
)
from lifelog_sync.domain.entities.lifelog import SourceRecord


FALLBACK_TITLE = "Untitled"


def _text_value(prop_type: str, content: str) -> dict[str, Any]:
    return {prop_type: build_rich_text(content)}


def build_fallback_properties(record: SourceRecord, schema: DestinationSchema) -> MappedProperties:
    """
    Mapeo determinista minimo.

    - Propiedad con rol de titulo <- record.title o 'Untitled'
    - Primer rich_text del schema <- contenido del cuerpo (si existe)
    """
    properties: MappedProperties = {
        schema.title_property_name(): _text_value("title", record.title or FALLBACK_TITLE),
    }

    body = record.body_content
    if body:
        content_prop = schema.first_of_type(LONG_TEXT_TYPE)
        if content_prop is not None:
            properties[content_prop.name] = _text_value(LONG_TEXT_TYPE, body)
    return properties


def _sanitize_enumerable(descriptor: PropertyDescriptor, value: dict[str, Any]) -> Optional[dict[str, Any]]:
    inner = value.get(descriptor.type)
    if inner is None:
        return value

    allowed = set(descriptor.options)
    if descriptor.type == "multi_select":
        if not isinstance(inner, list):
            return None
        kept = [
            opt for opt in inner
            if isinstance(opt, dict) and str(opt.get("name")) in allowed
        ]
        if len(kept) != len(inner):
            logger.debug(f"Opciones descartadas en '{descriptor.name}': fuera de {sorted(allowed)}")
        return {descriptor.type: kept}

    if not isinstance(inner, dict) or str(inner.get("name")) not in allowed:
        logger.debug(f"Valor descartado en '{descriptor.name}': {inner!r} no es una opcion existente")
        return None
    return value


def _split_long_text(descriptor: PropertyDescriptor, value: dict[str, Any]) -> dict[str, Any]:
    items = value.get(descriptor.type)
    if not isinstance(items, list):
        return value

    split: list[Any] = []
    for item in items:
        text = item.get("text") if isinstance(item, dict) else None
        content = text.get("content") if isinstance(text, dict) else None
        if isinstance(content, str) and len(content) > RICH_TEXT_MAX_LENGTH:
            split.extend(build_rich_text(content))
        else:
            split.append(item)
    return {**value, descriptor.type: split}


def restrict_to_schema(properties: dict[str, Any], schema: DestinationSchema) -> MappedProperties:
    """
    Filtra la salida del transformer a claves del schema y opciones existentes.

    Los textos de title/rich_text que exceden el limite de Notion se parten.
    """
    restricted: MappedProperties = {}
    for name, value in properties.items():
        descriptor = schema.get(name)
        if descriptor is None:
            logger.debug(f"Propiedad descartada (no existe en el schema): {name}")
            continue
        if not isinstance(value, dict):
            logger.debug(f"Propiedad descartada (valor no es objeto): {name}")
            continue
        if descriptor.is_enumerable:
            value = _sanitize_enumerable(descriptor, value)
            if value is None:
                continue
        elif descriptor.type in (TITLE_TYPE, LONG_TEXT_TYPE):
            value = _split_long_text(descriptor, value)
        restricted[name] = value
    return restricted


class FieldMapper:
    """Mapeador de campos lifelog -> Notion con fallback determinista."""

    def __init__(self, transformer: Optional[PropertyTransformer] = None) -> None:
        self._transformer = transformer

    async def map(self, record: SourceRecord, schema: DestinationSchema) -> MappedProperties:
        """
        Mapea un lifelog a propiedades del schema.

        Nunca lanza por fallos del transformer: cae al fallback.
        """
        if self._transformer is None:
            return build_fallback_properties(record, schema)

        try:
            properties = await self._transformer.transform(schema, record)
        except Exception as e:
            logger.error(f"Mapeo con IA fallo para lifelog {record.log_id}, usando fallback: {e}")
            return build_fallback_properties(record, schema)

        restricted = restrict_to_schema(properties, schema)
        logger.info(f"Mapeo con IA generado para lifelog {record.log_id} ({len(restricted)} propiedades)")
        return restricted

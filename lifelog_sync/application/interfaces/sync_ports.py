"""
Contratos de los colaboradores externos del motor de sincronizacion.

Este contrato existe para:
- Mantener Clean Architecture: los casos de uso no dependen de httpx/OpenAI directamente.
- Facilitar tests unitarios con fakes/stubs.
"""

from __future__ import annotations

from typing import Optional, Protocol, Sequence

from lifelog_sync.domain.entities.destination_schema import DestinationSchema
from lifelog_sync.domain.entities.lifelog import SourceRecord


MappedProperties = dict[str, dict]


class LifelogSource(Protocol):
    """Origen de lifelogs marcados con estrella (Limitless)."""

    async def fetch_starred(self, since: str, limit: Optional[int] = None) -> Sequence[SourceRecord]:
        """
        Retorna los lifelogs con estrella desde `since`, en orden ascendente.

        Raises:
            UpstreamFetchError: Error de red, status no exitoso o JSON invalido.
        """
        ...


class SchemaProvider(Protocol):
    """Fuente de verdad del schema de destino (Notion)."""

    async def fetch_schema(self) -> DestinationSchema:
        """
        Raises:
            SchemaFetchError: Si no se pudo obtener el schema.
        """
        ...


class DestinationWriter(Protocol):
    """Escritor de entradas en el destino (Notion)."""

    async def create_page(
        self,
        properties: MappedProperties,
        body_content: Optional[str] = None,
    ) -> str:
        """
        Crea una entrada y retorna su id.

        Reglas:
        - Cualquier respuesta no exitosa (incluidos 4xx de validacion) debe
          lanzar WriteError. No se reintenta dentro del mismo ciclo.
        """
        ...


class PropertyTransformer(Protocol):
    """Transformador inteligente texto -> propiedades estructuradas (LLM)."""

    async def transform(self, schema: DestinationSchema, record: SourceRecord) -> MappedProperties:
        """
        Raises:
            MapperError: Respuesta vacia, no JSON o no objeto.
        """
        ...

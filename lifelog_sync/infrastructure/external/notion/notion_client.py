"""
Cliente minimo de la API de Notion (sin SDKs externos).

Requisitos cubiertos:
- httpx async
- GET /databases/{id}  -> schema de propiedades
- POST /pages          -> creacion de una pagina por lifelog
- Sin reintentos: un 4xx/5xx en la escritura es un fallo del registro.
"""

from __future__ import annotations

from typing import Any, Optional

import httpx
from loguru import logger

from lifelog_sync.domain.entities.destination_schema import DestinationSchema, build_rich_text
from lifelog_sync.shared.exceptions.sync import SchemaFetchError, WriteError


DEFAULT_NOTION_API_URL = "https://api.notion.com/v1"
DEFAULT_NOTION_VERSION = "2022-06-28"


def build_paragraph_children(body_content: Optional[str]) -> list[dict[str, Any]]:
    """
    Bloque paragraph unico con el contenido crudo del lifelog ([] si no hay).

    El texto se reparte en varios elementos rich_text del mismo bloque.
    """
    if not body_content:
        return []
    return [
        {
            "object": "block",
            "type": "paragraph",
            "paragraph": {
                "rich_text": build_rich_text(body_content),
            },
        }
    ]


class NotionClient:
    """
    Cliente HTTP de Notion para una base de datos concreta.

    Implementa SchemaProvider y DestinationWriter.
    """

    def __init__(
        self,
        api_key: str,
        database_id: str,
        *,
        base_url: str = DEFAULT_NOTION_API_URL,
        notion_version: str = DEFAULT_NOTION_VERSION,
        timeout_s: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._api_key = api_key
        self._database_id = database_id
        self._base_url = base_url.rstrip("/")
        self._notion_version = notion_version
        self._client = client or httpx.AsyncClient(timeout=timeout_s)
        self._owns_client = client is None

    @property
    def database_id(self) -> str:
        return self._database_id

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
            "Notion-Version": self._notion_version,
        }

    async def fetch_schema(self) -> DestinationSchema:
        """
        Obtiene el schema (properties) de la base de datos.

        Raises:
            SchemaFetchError: Error de red, status no exitoso o JSON invalido.
        """
        url = f"{self._base_url}/databases/{self._database_id}"
        try:
            response = await self._client.get(url, headers=self._headers())
        except httpx.HTTPError as e:
            raise SchemaFetchError(
                f"Error de red obteniendo schema de Notion: {e}",
                details={"database_id": self._database_id},
            ) from e

        if not response.is_success:
            raise SchemaFetchError(
                f"Notion API error: {response.status_code} {response.reason_phrase} - {response.text[:500]}",
                details={"database_id": self._database_id, "status_code": response.status_code},
            )

        try:
            database = response.json()
        except ValueError as e:
            raise SchemaFetchError(
                f"Respuesta de Notion no es JSON valido: {e}",
                details={"database_id": self._database_id},
            ) from e

        properties = database.get("properties") if isinstance(database, dict) else None
        return DestinationSchema.from_notion(properties or {})

    async def create_page(
        self,
        properties: dict[str, dict],
        body_content: Optional[str] = None,
    ) -> str:
        """
        Crea una pagina en la base de datos.

        Args:
            properties: Valores de propiedades en formato Notion API
            body_content: Contenido crudo para el cuerpo de la pagina

        Returns:
            str: id de la pagina creada

        Raises:
            WriteError: Cualquier respuesta no exitosa o error de red.
        """
        page_data = {
            "parent": {"database_id": self._database_id},
            "properties": properties,
            "children": build_paragraph_children(body_content),
        }

        try:
            response = await self._client.post(
                f"{self._base_url}/pages",
                headers=self._headers(),
                json=page_data,
            )
        except httpx.HTTPError as e:
            raise WriteError(f"Error de red creando pagina en Notion: {e}") from e

        if not response.is_success:
            raise WriteError(
                f"Notion API error: {response.status_code} {response.reason_phrase} - {response.text[:500]}",
                status_code=response.status_code,
            )

        try:
            page = response.json()
        except ValueError:
            page = {}
        page_id = str(page.get("id") or "") if isinstance(page, dict) else ""
        logger.debug(f"Pagina Notion creada: {page_id or '(sin id)'}")
        return page_id

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

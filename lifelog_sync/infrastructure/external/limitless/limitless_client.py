"""
Cliente minimo de la API de Limitless (lifelogs).

Requisitos cubiertos:
- httpx async
- consulta incremental de lifelogs con estrella (start >= watermark, asc)
- normalizacion tolerante de la forma de la respuesta
"""

from __future__ import annotations

from typing import Any, Optional

import httpx
from loguru import logger

from lifelog_sync.domain.entities.lifelog import SourceRecord
from lifelog_sync.infrastructure.external.limitless.response_normalizer import (
    ResponseDiagnostics,
    log_response_structure,
    normalize_lifelogs_payload,
)
from lifelog_sync.shared.exceptions.sync import UpstreamFetchError


DEFAULT_LIMITLESS_API_URL = "https://api.limitless.ai/v1/lifelogs"


class LimitlessClient:
    """
    Cliente HTTP de Limitless.

    Importante:
    - No filtra por watermark: eso lo decide el motor de sincronizacion.
    - Cualquier fallo (red, status no exitoso, JSON invalido) se expone como
      UpstreamFetchError.
    """

    def __init__(
        self,
        api_key: str,
        *,
        api_url: str = DEFAULT_LIMITLESS_API_URL,
        page_limit: int = 10,
        timeout_s: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._api_key = api_key
        self._api_url = api_url
        self._page_limit = page_limit
        self._client = client or httpx.AsyncClient(timeout=timeout_s)
        self._owns_client = client is None
        self.diagnostics = ResponseDiagnostics()

    async def fetch_starred(self, since: str, limit: Optional[int] = None) -> list[SourceRecord]:
        """
        Obtiene lifelogs con estrella a partir de `since` (orden ascendente).

        Args:
            since: Timestamp ISO 8601 (watermark actual)
            limit: Tamano de pagina (default: el configurado en el cliente)

        Raises:
            UpstreamFetchError: Si la consulta falla.
        """
        params: dict[str, Any] = {
            "isStarred": "true",
            "start": since,
            "direction": "asc",
            "limit": str(limit or self._page_limit),
        }
        headers = {"X-API-Key": self._api_key}

        try:
            response = await self._client.get(self._api_url, params=params, headers=headers)
        except httpx.HTTPError as e:
            raise UpstreamFetchError(
                f"Error de red consultando Limitless: {e}",
                details={"url": self._api_url},
            ) from e

        if not response.is_success:
            raise UpstreamFetchError(
                f"Limitless API error: {response.status_code} {response.reason_phrase} - {response.text[:500]}",
                details={"status_code": response.status_code},
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise UpstreamFetchError(
                f"Respuesta de Limitless no es JSON valido: {e}",
                details={"status_code": response.status_code},
            ) from e

        log_response_structure(payload, self.diagnostics)
        records = normalize_lifelogs_payload(payload, self.diagnostics)
        logger.debug(f"Limitless devolvio {len(records)} lifelog(s) desde {since}")
        return records

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

"""
Caso de uso: un ciclo de sincronizacion Limitless -> Notion.

Diseno (resumen):
- Carga el watermark (last seen time)
- Consulta lifelogs con estrella desde el watermark (asc, pagina acotada)
- Mapea y escribe cada lifelog en orden ascendente de timestamp efectivo
- Avanza el watermark al maximo timestamp de los lifelogs ESCRITOS con exito

Estrategia de entrega (at-least-once):
- Un fallo de un lifelog se registra y se salta; no aborta el resto ni
  aporta su timestamp, de modo que se reintenta en el proximo ciclo.
- Si ningun lifelog se escribio, el watermark no se toca.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence

from loguru import logger

from lifelog_sync.application.interfaces.sync_ports import DestinationWriter, LifelogSource
from lifelog_sync.application.services.field_mapper import FieldMapper
from lifelog_sync.domain.entities.destination_schema import DestinationSchema
from lifelog_sync.domain.entities.lifelog import SourceRecord
from lifelog_sync.infrastructure.state.schema_cache import SchemaCache
from lifelog_sync.infrastructure.state.watermark_store import WatermarkStore
from lifelog_sync.shared.exceptions.base import AppException
from lifelog_sync.shared.exceptions.sync import SchemaFetchError, UpstreamFetchError
from lifelog_sync.shared.utils.datetime_utils import DateTimeUtils


STATUS_FETCH_FAILED = "fetch_failed"
STATUS_NO_RECORDS = "no_records"
STATUS_SCHEMA_UNAVAILABLE = "schema_unavailable"
STATUS_COMPLETED = "completed"


@dataclass(frozen=True)
class SyncCycleResult:
    status: str
    watermark_before: Optional[str]
    watermark_after: Optional[str]
    fetched: int = 0
    attempted: int = 0
    written: int = 0
    failed_record_ids: tuple[str, ...] = ()

    @property
    def failed(self) -> int:
        return len(self.failed_record_ids)

    @property
    def advanced(self) -> bool:
        return self.watermark_after != self.watermark_before


def order_by_effective_timestamp(records: Sequence[SourceRecord]) -> list[SourceRecord]:
    """
    Orden ascendente por timestamp efectivo (estable).

    Los lifelogs sin timestamp interpretable van al final, en su orden original.
    """
    dated = [r for r in records if r.effective_datetime is not None]
    undated = [r for r in records if r.effective_datetime is None]
    dated.sort(key=lambda r: r.effective_datetime)
    return dated + undated


def select_new_records(records: Sequence[SourceRecord], watermark: str) -> list[SourceRecord]:
    """
    Descarta lifelogs ya procesados (timestamp efectivo <= watermark).

    Los lifelogs sin timestamp efectivo nunca se descartan.
    """
    watermark_dt = DateTimeUtils.from_iso_string(watermark)
    selected: list[SourceRecord] = []
    for record in records:
        record_dt = record.effective_datetime
        if record_dt is None:
            if record.effective_timestamp:
                logger.warning(
                    f"Lifelog {record.log_id} con timestamp no interpretable "
                    f"({record.effective_timestamp!r}); no avanzara el watermark"
                )
            selected.append(record)
            continue
        if watermark_dt is not None and record_dt <= watermark_dt:
            logger.debug(f"Lifelog {record.log_id} ya procesado ({record.effective_timestamp} <= {watermark})")
            continue
        selected.append(record)
    return selected


class SyncEngine:
    """
    Orquestador de un ciclo de polling.
    """

    def __init__(
        self,
        *,
        source: LifelogSource,
        writer: DestinationWriter,
        mapper: FieldMapper,
        watermarks: WatermarkStore,
        schema_cache: SchemaCache,
        page_limit: int = 10,
    ) -> None:
        self._source = source
        self._writer = writer
        self._mapper = mapper
        self._watermarks = watermarks
        self._schema_cache = schema_cache
        self._page_limit = page_limit

    async def run_cycle(self) -> SyncCycleResult:
        """
        Ejecuta un ciclo completo.

        Errores de fetch y de schema terminan el ciclo sin tocar el watermark.
        Errores de estado (StateIOError) se propagan al scheduler.
        """
        watermark = await self._watermarks.load()
        logger.info(f"Polling de lifelogs con estrella desde {watermark}")

        try:
            fetched = await self._source.fetch_starred(watermark, limit=self._page_limit)
        except UpstreamFetchError as e:
            logger.error(f"Error consultando lifelogs: {e.message}")
            return SyncCycleResult(STATUS_FETCH_FAILED, watermark, watermark)

        pending = select_new_records(fetched, watermark)
        if not pending:
            logger.info("No hay nuevos lifelogs con estrella")
            return SyncCycleResult(STATUS_NO_RECORDS, watermark, watermark, fetched=len(fetched))

        try:
            schema = await self._schema_cache.get(allow_stale=True)
        except SchemaFetchError as e:
            logger.error(f"Schema de Notion no disponible, se omite el ciclo: {e.message}")
            return SyncCycleResult(STATUS_SCHEMA_UNAVAILABLE, watermark, watermark, fetched=len(fetched))

        ordered = order_by_effective_timestamp(pending)
        logger.info(f"Encontrados {len(ordered)} lifelog(s) nuevos con estrella")

        written = 0
        failed_ids: list[str] = []
        max_timestamp: Optional[str] = None
        max_dt: Optional[datetime] = None

        for record in ordered:
            if not await self._process_record(record, schema):
                failed_ids.append(record.log_id)
                continue

            written += 1
            record_dt = record.effective_datetime
            if record_dt is not None and (max_dt is None or record_dt > max_dt):
                max_dt = record_dt
                max_timestamp = record.effective_timestamp

        watermark_after = watermark
        if written > 0:
            if max_timestamp is None:
                logger.info("Ningun lifelog escrito tiene timestamp efectivo; watermark sin cambios")
            elif await self._watermarks.advance(max_timestamp):
                watermark_after = max_timestamp
                logger.info(f"Last seen time actualizado a: {max_timestamp}")
        else:
            logger.warning(
                f"Se encontraron {len(ordered)} lifelog(s) pero ninguno se proceso. "
                f"Se reintentaran en el proximo ciclo. Fallidos: {failed_ids}"
            )

        logger.info(
            f"Ciclo completado. escritos={written}, fallidos={len(failed_ids)}, "
            f"watermark={watermark_after}"
        )
        return SyncCycleResult(
            status=STATUS_COMPLETED,
            watermark_before=watermark,
            watermark_after=watermark_after,
            fetched=len(fetched),
            attempted=len(ordered),
            written=written,
            failed_record_ids=tuple(failed_ids),
        )

    async def _process_record(self, record: SourceRecord, schema: DestinationSchema) -> bool:
        """Mapea y escribe un lifelog. Nunca lanza: retorna False si fallo."""
        logger.info(
            f'Procesando lifelog: "{record.display_title}" '
            f"(time: {record.effective_timestamp or 'unknown'})"
        )
        stage = "mapeo"
        try:
            properties = await self._mapper.map(record, schema)
            stage = "escritura"
            await self._writer.create_page(properties, record.body_content)
        except Exception as e:
            message = e.message if isinstance(e, AppException) else str(e)
            logger.error(
                f"Fallo al crear pagina Notion para lifelog {record.log_id} "
                f"(etapa: {stage}): {message}"
            )
            return False

        logger.success(f"Pagina Notion creada para: {record.display_title}")
        return True

"""
Manejadores de inicio y cierre del servicio.
"""
import sys
from dataclasses import dataclass

from loguru import logger

from lifelog_sync.application.services.field_mapper import FieldMapper
from lifelog_sync.application.services.scheduler import PollingScheduler
from lifelog_sync.application.use_cases.sync_use_cases import SyncEngine
from lifelog_sync.core.config import Settings, validate_config
from lifelog_sync.domain.entities.destination_schema import DestinationSchema
from lifelog_sync.infrastructure.external.limitless.limitless_client import LimitlessClient
from lifelog_sync.infrastructure.external.llm.property_mapper import OpenAIPropertyMapper
from lifelog_sync.infrastructure.external.notion.notion_client import NotionClient
from lifelog_sync.infrastructure.state.schema_cache import SchemaCache
from lifelog_sync.infrastructure.state.watermark_store import WatermarkStore


@dataclass
class SyncService:
    """Componentes cableados del servicio (para startup/shutdown)."""

    engine: SyncEngine
    scheduler: PollingScheduler
    schema_cache: SchemaCache
    limitless: LimitlessClient
    notion: NotionClient
    llm_mapper: OpenAIPropertyMapper


def configure_logging(config: Settings) -> None:
    """
    Configura loguru: consola + archivo con rotacion (si LOG_FILE no esta vacio).
    """
    logger.remove()
    logger.add(sys.stderr, level=config.LOG_LEVEL)
    if config.LOG_FILE:
        logger.add(
            config.LOG_FILE,
            rotation="10 MB",
            retention="10 days",
            level=config.LOG_LEVEL
        )


def build_service(config: Settings) -> SyncService:
    """
    Construye el servicio leyendo la configuracion.

    No realiza I/O de red: solo cablea componentes.
    """
    limitless = LimitlessClient(
        config.LIMITLESS_API_KEY,
        api_url=config.LIMITLESS_API_URL,
        page_limit=config.LIMITLESS_PAGE_LIMIT,
        timeout_s=config.HTTP_TIMEOUT_SECONDS,
    )
    notion = NotionClient(
        config.NOTION_API_KEY,
        config.NOTION_DATABASE_ID,
        base_url=config.NOTION_API_URL,
        notion_version=config.NOTION_VERSION,
        timeout_s=config.HTTP_TIMEOUT_SECONDS,
    )
    llm_mapper = OpenAIPropertyMapper(
        api_key=config.OPENAI_API_KEY,
        model=config.OPENAI_MODEL,
        temperature=config.MAPPER_TEMPERATURE,
    )
    schema_cache = SchemaCache(
        config.SCHEMA_CACHE_FILE,
        notion,
        ttl_ms=config.SCHEMA_CACHE_TTL_MS,
    )
    engine = SyncEngine(
        source=limitless,
        writer=notion,
        mapper=FieldMapper(llm_mapper),
        watermarks=WatermarkStore(config.STATE_FILE),
        schema_cache=schema_cache,
        page_limit=config.LIMITLESS_PAGE_LIMIT,
    )
    scheduler = PollingScheduler(
        engine.run_cycle,
        config.poll_interval_seconds,
        shutdown_grace_seconds=config.SHUTDOWN_GRACE_SECONDS,
    )
    return SyncService(
        engine=engine,
        scheduler=scheduler,
        schema_cache=schema_cache,
        limitless=limitless,
        notion=notion,
        llm_mapper=llm_mapper,
    )


async def startup(config: Settings, *, refresh_schema: bool = False) -> SyncService:
    """
    Inicializa el servicio.

    Raises:
        ConfigurationError: Si falta configuracion obligatoria.
        SchemaFetchError: Si no se puede obtener el schema inicial.
    """
    logger.info(f"Iniciando {config.APP_NAME} v{config.APP_VERSION} con mapeo IA")
    validate_config(config)
    logger.info(f"Intervalo de polling: {config.poll_interval_seconds} segundos")
    logger.info(f"Notion Database ID: {config.NOTION_DATABASE_ID}")

    service = build_service(config)
    try:
        logger.info("Obteniendo schema de la base de datos Notion...")
        schema: DestinationSchema = await service.schema_cache.get(force_refresh=refresh_schema)
    except Exception:
        await shutdown(service)
        raise

    logger.info(f"Schema cargado con {len(schema)} propiedades")
    logger.success("Servicio iniciado correctamente")
    return service


async def shutdown(service: SyncService) -> None:
    """Libera clientes HTTP y de OpenAI."""
    logger.info("Cerrando servicio...")
    await service.limitless.aclose()
    await service.notion.aclose()
    await service.llm_mapper.aclose()
    logger.success("Servicio cerrado correctamente")

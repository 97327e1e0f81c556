"""
CLI: Limitless -> Notion (polling continuo).

Variables de entorno requeridas:
  - LIMITLESS_API_KEY
  - NOTION_API_KEY
  - NOTION_DATABASE_ID
  - OPENAI_API_KEY

Ejecucion:
  lifelog-sync
  lifelog-sync --once
  lifelog-sync --refresh-schema

Codigos de salida:
  0  cierre ordenado (SIGINT/SIGTERM) o --once completado
  1  configuracion faltante, fallo del schema inicial, error fatal del loop
     o error del ciclo en --once
"""

from __future__ import annotations

import argparse
import asyncio
import signal
from typing import Optional, Sequence

from dotenv import load_dotenv
from loguru import logger
from pydantic import ValidationError

from lifelog_sync.core.config import Settings, get_settings
from lifelog_sync.core.events import configure_logging, shutdown, startup
from lifelog_sync.shared.exceptions.sync import ConfigurationError, SchemaFetchError


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lifelog-sync",
        description="Sincroniza lifelogs con estrella de Limitless hacia una base de datos Notion.",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Ejecuta un solo ciclo de sincronizacion y termina.",
    )
    parser.add_argument(
        "--refresh-schema",
        action="store_true",
        help="Ignora el cache de schema al iniciar.",
    )
    return parser


def _install_signal_handlers(stop_event: asyncio.Event) -> None:
    loop = asyncio.get_running_loop()

    def _request_stop(sig_name: str) -> None:
        logger.info(f"Senal {sig_name} recibida; cerrando de forma ordenada...")
        stop_event.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _request_stop, sig.name)
        except (NotImplementedError, RuntimeError):
            # Windows: sin add_signal_handler; KeyboardInterrupt cubre SIGINT.
            pass


async def run_service(config: Settings, *, once: bool = False, refresh_schema: bool = False) -> int:
    """Arranca el servicio y corre el scheduler. Retorna el codigo de salida."""
    try:
        service = await startup(config, refresh_schema=refresh_schema)
    except ConfigurationError as e:
        logger.error(f"Error: {e.message}")
        return 1
    except SchemaFetchError as e:
        logger.error(f"No se pudo obtener el schema de la base de datos: {e.message}")
        logger.error("El servicio no puede continuar sin schema. Saliendo...")
        return 1

    try:
        if once:
            await service.scheduler.run_once()
            return 0

        stop_event = asyncio.Event()
        _install_signal_handlers(stop_event)
        await service.scheduler.run_forever(stop_event)
        logger.info("Cierre ordenado completado")
        return 0
    except Exception as e:
        logger.exception(f"Error fatal: {e}")
        return 1
    finally:
        await shutdown(service)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _build_parser().parse_args(argv)

    load_dotenv(override=False)
    try:
        config = get_settings()
    except ValidationError as e:
        logger.error(f"Configuracion invalida: {e}")
        return 1
    configure_logging(config)

    try:
        return asyncio.run(run_service(config, once=args.once, refresh_schema=args.refresh_schema))
    except KeyboardInterrupt:
        logger.info("Interrumpido; cerrando...")
        return 0


if __name__ == "__main__":
    raise SystemExit(main())

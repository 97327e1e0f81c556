"""
Scheduler del polling.

Caracteristicas:
- Ejecuta un ciclo inmediatamente al iniciar y luego en cada frontera de
  periodo (start + n * intervalo), sin rafagas de recuperacion si se atrasa.
- CycleGuard de un solo slot: si el ciclo anterior sigue en vuelo, el tick
  se salta (skip-if-busy). Nunca hay dos ciclos leyendo/escribiendo el
  watermark a la vez.
- Cualquier excepcion de un ciclo se registra y el loop continua.
- Al detenerse, espera al ciclo en vuelo un tiempo de gracia y luego lo cancela.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Optional

from loguru import logger


CycleFn = Callable[[], Awaitable[Any]]


class CycleGuard:
    """Guard de un solo slot para invocaciones de un ciclo con estado."""

    def __init__(self) -> None:
        self._task: Optional[asyncio.Task] = None

    @property
    def busy(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def current(self) -> Optional[asyncio.Task]:
        return self._task if self.busy else None

    def try_start(self, factory: CycleFn) -> Optional[asyncio.Task]:
        """
        Lanza el ciclo como task si el slot esta libre.

        Returns:
            La task creada, o None si habia un ciclo en vuelo.
        """
        if self.busy:
            return None
        self._task = asyncio.create_task(factory())
        return self._task


class PollingScheduler:
    """Ejecuta el ciclo de sincronizacion a intervalo fijo, indefinidamente."""

    def __init__(
        self,
        cycle: CycleFn,
        interval_seconds: float,
        *,
        shutdown_grace_seconds: float = 10.0,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds debe ser > 0")
        self._cycle = cycle
        self._interval = interval_seconds
        self._grace = shutdown_grace_seconds
        self._guard = CycleGuard()
        self.cycles_started = 0
        self.cycles_skipped = 0

    @property
    def guard(self) -> CycleGuard:
        return self._guard

    async def _run_guarded(self) -> Any:
        try:
            return await self._cycle()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.exception(f"Error no controlado en el ciclo de sincronizacion: {e}")
            return None

    def _tick(self) -> None:
        task = self._guard.try_start(self._run_guarded)
        if task is None:
            self.cycles_skipped += 1
            logger.warning("Ciclo anterior aun en curso; se omite este tick")
            return
        self.cycles_started += 1

    async def run_once(self) -> Any:
        """
        Ejecuta un unico ciclo (modo --once).

        A diferencia del loop, los errores del ciclo se propagan al llamador
        para que el proceso termine con codigo distinto de cero.
        """
        self.cycles_started += 1
        return await self._cycle()

    async def run_forever(self, stop_event: asyncio.Event) -> None:
        """
        Loop principal hasta que `stop_event` se active.
        """
        loop = asyncio.get_running_loop()
        start = loop.time()
        tick = 0

        while not stop_event.is_set():
            self._tick()

            tick += 1
            now = loop.time()
            next_at = start + tick * self._interval
            if next_at <= now:
                tick = int((now - start) // self._interval) + 1
                next_at = start + tick * self._interval

            try:
                await asyncio.wait_for(stop_event.wait(), timeout=next_at - now)
            except asyncio.TimeoutError:
                pass

        await self._drain()

    async def _drain(self) -> None:
        task = self._guard.current
        if task is None:
            return

        logger.info(f"Esperando ciclo en curso (max {self._grace}s)...")
        done, _ = await asyncio.wait({task}, timeout=self._grace)
        if task in done:
            return

        logger.warning("Ciclo en curso no termino a tiempo; cancelando")
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

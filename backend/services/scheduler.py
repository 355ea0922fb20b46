"""Varredura oportunista dos eventos expirados.

Não há cron: os pedidos de leitura chamam ``trigger()``. O agendador garante
que a varredura corre no máximo uma vez por janela de atualização e que
pedidos simultâneos partilham a mesma execução em curso.

O estado (instante do último arranque e tarefa em curso) é local ao processo
e perde-se num reinício, o que só provoca uma varredura a mais.
"""
import asyncio
import logging
import time
from typing import Callable, Optional

from config import SWEEP_REFRESH_SECONDS, SWEEP_WAIT_SECONDS
from services.sweeper import ExpiredEventSweeper, SweepResult


logger = logging.getLogger(__name__)


class SweepScheduler:
    def __init__(
        self,
        sweeper: ExpiredEventSweeper,
        refresh_interval: float = SWEEP_REFRESH_SECONDS,
        wait_timeout: float = SWEEP_WAIT_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.sweeper = sweeper
        self.refresh_interval = refresh_interval
        self.wait_timeout = wait_timeout
        self._clock = clock
        self._lock = asyncio.Lock()
        self._in_flight: Optional[asyncio.Task] = None
        self._last_started: Optional[float] = None

    @property
    def in_flight(self) -> bool:
        return self._in_flight is not None

    def is_due(self) -> bool:
        if self._last_started is None:
            return True
        return self._clock() - self._last_started >= self.refresh_interval

    async def run(self) -> SweepResult:
        """Executar a varredura já, partilhando a execução em curso se existir.

        Não aplica a janela de atualização e propaga os erros.
        """
        async with self._lock:
            task = self._in_flight
            if task is None:
                task = asyncio.create_task(self.sweeper.sweep(dry_run=False))
                task.add_done_callback(self._settled)
                self._in_flight = task
                self._last_started = self._clock()
        return await asyncio.shield(task)

    async def trigger(self) -> Optional[SweepResult]:
        """Chamado pelos pedidos de leitura; nunca falha o pedido"""
        if not self.in_flight and not self.is_due():
            return None

        try:
            return await asyncio.wait_for(self.run(), timeout=self.wait_timeout)
        except asyncio.TimeoutError:
            logger.warning("Expired events sweep still running after %ss, continuing without it", self.wait_timeout)
        except Exception as e:
            logger.warning("Expired events sweep failed: %s", e)
        return None

    def _settled(self, task: asyncio.Task):
        if self._in_flight is task:
            self._in_flight = None
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error("Expired events sweep raised", exc_info=error)

    async def wait_idle(self):
        """Esperar que a varredura em curso termine (encerramento e testes)"""
        task = self._in_flight
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)

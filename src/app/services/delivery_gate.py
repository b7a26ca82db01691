"""DeliveryGate — controlador adaptativo entre polling e webhooks.

Responsabilidades:
- Definir o modo inicial a partir da sonda de capacidade (uma vez)
- Timer próprio que invoca a função de polling nos modos de polling
- Polling temporário com prazo após falhas no caminho push, com uma
  passada de recuperação imediata e saída antecipada quando o backlog
  esvazia (passadas vazias consecutivas)
- Re-sondagem periódica da integração push
- Nunca sobrepor duas execuções de polling (flag in-flight)

Transições são atualizações puras de estado, sem await: podem ser
chamadas em qualquer intercalação por webhooks, timer e executor.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any

from app.observability import correlation_scope
from app.services.clock import Clock, Sleep, utc_now
from fsm import DeliveryMode, DeliveryModeMachine, initial_mode

if TYPE_CHECKING:
    from app.protocols.capability_probe import DeliveryCapabilityProbeProtocol
    from config.settings import DeliverySettings

logger = logging.getLogger(__name__)

PollFn = Callable[[Any], Awaitable[int]]


class DeliveryGate:
    """Decide entre polling ativo e entrega passiva por webhooks.

    Args:
        probe: Sonda "integração push instalada?"
        settings: DeliverySettings (intervalos e janelas)
        clock: Fonte de tempo (injetável em testes)
        sleep: Espera usada pelos loops de timer (injetável em testes)
    """

    def __init__(
        self,
        probe: DeliveryCapabilityProbeProtocol,
        settings: DeliverySettings,
        clock: Clock = utc_now,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._probe = probe
        self._settings = settings
        self._clock = clock
        self._sleep = sleep
        self._machine = DeliveryModeMachine()

        self._poll_fn: PollFn | None = None
        self._context: Any = None
        self._initialized = False
        self._started_at: datetime | None = None

        self._temporary_expires_at: datetime | None = None
        self._last_webhook_at: datetime | None = None
        self._last_successful_poll_at: datetime | None = None
        self._in_flight = False
        self._empty_polls = 0

        self._timer_task: asyncio.Task[None] | None = None
        self._recheck_task: asyncio.Task[None] | None = None
        self._poll_tasks: set[asyncio.Task[bool]] = set()

    # --- Estado -----------------------------------------------------------

    @property
    def mode(self) -> DeliveryMode:
        return self._machine.current_mode

    @property
    def temporary_polling_expires_at(self) -> datetime | None:
        return self._temporary_expires_at

    @property
    def last_webhook_at(self) -> datetime | None:
        return self._last_webhook_at

    @property
    def last_successful_poll_at(self) -> datetime | None:
        return self._last_successful_poll_at

    @property
    def poll_in_flight(self) -> bool:
        return self._in_flight

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def machine(self) -> DeliveryModeMachine:
        return self._machine

    # --- Ciclo de vida ----------------------------------------------------

    async def init(self, context: Any, poll_fn: PollFn, start_timer: bool = True) -> DeliveryMode:
        """Liga a função de polling, roda a sonda e inicia os timers.

        Raises:
            RuntimeError: Se chamado mais de uma vez no processo.
        """
        if self._initialized:
            raise RuntimeError("DeliveryGate.init já foi chamado neste processo")
        self._initialized = True
        self._context = context
        self._poll_fn = poll_fn
        self._started_at = self._clock()

        try:
            installed = await self._probe.is_push_delivery_installed()
        except Exception as exc:
            logger.warning(
                "capability_probe_failed",
                extra={"phase": "init", "error_type": type(exc).__name__, "error": str(exc)},
            )
            self._machine.reset(DeliveryMode.WEBHOOK_PRIMARY)
            self.enable_temporary_polling(reason="capability_probe_failed")
        else:
            self._machine.reset(initial_mode(installed))

        logger.info(
            "gate_initialized",
            extra={
                "mode": self.mode.value,
                "poll_interval_seconds": self._settings.poll_interval_seconds,
            },
        )
        if start_timer:
            self._start_background_tasks()
        return self.mode

    def _start_background_tasks(self) -> None:
        self._timer_task = asyncio.create_task(self._timer_loop(), name="delivery-gate-timer")
        if self.mode == DeliveryMode.TEMPORARY_POLLING:
            self._spawn_tick()
        if self._settings.capability_recheck_seconds > 0:
            self._recheck_task = asyncio.create_task(
                self._recheck_loop(),
                name="delivery-gate-recheck",
            )

    async def shutdown(self) -> None:
        """Para os timers e cancela execuções de polling pendentes."""
        tasks = [task for task in (self._timer_task, self._recheck_task) if task is not None]
        tasks.extend(self._poll_tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._timer_task = None
        self._recheck_task = None
        self._poll_tasks.clear()
        logger.info("gate_shutdown", extra={"mode": self.mode.value})

    # --- Transições -------------------------------------------------------

    def _transition(self, target: DeliveryMode, trigger: str) -> bool:
        previous = self.mode
        result = self._machine.transition(target, trigger, timestamp=self._clock())
        if not result.success:
            logger.debug(
                "gate_transition_rejected",
                extra={"trigger": trigger, "reason": result.error_reason},
            )
            return False
        if previous != target:
            logger.info(
                "gate_mode_changed",
                extra={"from_mode": previous.value, "to_mode": target.value, "trigger": trigger},
            )
        return True

    def webhook_received(self) -> None:
        """Webhook verificado chegou: o caminho push está saudável."""
        self._last_webhook_at = self._clock()
        if self.mode == DeliveryMode.TEMPORARY_POLLING:
            self._exit_temporary_polling("webhook_received")

    def enable_temporary_polling(self, reason: str = "requested") -> None:
        """Entra em (ou estende) polling temporário.

        No-op em POLLING_PRIMARY: o polling já está ativo.
        """
        mode = self.mode
        if mode == DeliveryMode.POLLING_PRIMARY:
            logger.debug("gate_temporary_polling_noop", extra={"reason": reason})
            return

        expires_at = self._clock() + timedelta(seconds=self._settings.temporary_polling_seconds)
        trigger = (
            "temporary_polling_extended"
            if mode == DeliveryMode.TEMPORARY_POLLING
            else "temporary_polling_enabled"
        )
        if self._transition(DeliveryMode.TEMPORARY_POLLING, trigger):
            self._temporary_expires_at = expires_at
            self._empty_polls = 0
            logger.info(
                "gate_temporary_polling",
                extra={"reason": reason, "expires_at": expires_at.isoformat()},
            )
            # Passada de recuperação imediata, só com o timer ativo
            if mode == DeliveryMode.WEBHOOK_PRIMARY and self._timer_task is not None:
                self._spawn_tick()

    def handle_transient_error(self, error: BaseException) -> None:
        """Sinal de falha transitória (executor ou pipeline)."""
        logger.warning(
            "gate_transient_error",
            extra={"error_type": type(error).__name__, "error": str(error)},
        )
        self.enable_temporary_polling(reason="transient_error")

    def handle_processing_error(self, error: BaseException) -> None:
        """Sinal de falha ao processar entrega (ex.: webhook)."""
        logger.warning(
            "gate_processing_error",
            extra={"error_type": type(error).__name__, "error": str(error)},
        )
        self.enable_temporary_polling(reason="processing_error")

    def _check_webhook_staleness(self) -> None:
        stale_after = self._settings.webhook_stale_after_seconds
        if stale_after <= 0 or self.mode != DeliveryMode.WEBHOOK_PRIMARY:
            return
        reference = self._last_webhook_at or self._started_at
        if reference is None:
            return
        silence = (self._clock() - reference).total_seconds()
        if silence >= stale_after:
            logger.warning("gate_webhooks_stale", extra={"silence_seconds": silence})
            self.enable_temporary_polling(reason="webhook_stale")

    # --- Polling ----------------------------------------------------------

    async def tick(self) -> bool:
        """Um disparo do timer.

        Returns:
            True se a função de polling foi invocada.
        """
        if self._poll_fn is None:
            return False
        self._check_webhook_staleness()
        if not self._machine.is_polling:
            return False
        if self._in_flight:
            logger.debug("gate_tick_skipped_in_flight")
            return False
        try:
            await self._run_poll(self._poll_fn, "timer")
        except Exception as exc:
            # Falha de polling não rebaixa o modo; só registra
            logger.warning(
                "gate_poll_failed",
                extra={"trigger": "timer", "error_type": type(exc).__name__, "error": str(exc)},
            )
        return True

    async def request_immediate_poll(self) -> int:
        """Executa o polling agora (respeitando a flag in-flight).

        Returns:
            Quantidade de itens processados (0 se ignorado).
        """
        if self._poll_fn is None or self._in_flight:
            logger.debug("gate_immediate_poll_skipped", extra={"in_flight": self._in_flight})
            return 0
        try:
            return await self._run_poll(self._poll_fn, "immediate")
        except Exception as exc:
            self.handle_transient_error(exc)
            raise

    async def _run_poll(self, poll_fn: PollFn, trigger: str) -> int:
        self._in_flight = True
        try:
            with correlation_scope("poll"):
                count = await poll_fn(self._context)
        finally:
            self._in_flight = False

        now = self._clock()
        self._last_successful_poll_at = now
        if self.mode == DeliveryMode.TEMPORARY_POLLING:
            await self._settle_temporary_polling(now, count)

        logger.info(
            "gate_poll_completed",
            extra={"trigger": trigger, "processed": count, "mode": self.mode.value},
        )
        return count

    async def _settle_temporary_polling(self, now: datetime, count: int) -> None:
        """Encerra o polling temporário por prazo ou por backlog vazio."""
        if self._temporary_expires_at is not None and now > self._temporary_expires_at:
            self._exit_temporary_polling("temporary_polling_expired")
            return

        self._empty_polls = 0 if count > 0 else self._empty_polls + 1
        max_empty = self._settings.temporary_max_empty_polls
        if max_empty > 0 and self._empty_polls >= max_empty:
            logger.info("gate_backlog_cleared", extra={"empty_polls": self._empty_polls})
            self._exit_temporary_polling("temporary_polling_backlog_cleared")
            await self.reevaluate_capability()

    def _exit_temporary_polling(self, trigger: str) -> None:
        self._transition(DeliveryMode.WEBHOOK_PRIMARY, trigger)
        self._temporary_expires_at = None
        self._empty_polls = 0

    def _spawn_tick(self) -> None:
        task = asyncio.create_task(self.tick())
        self._poll_tasks.add(task)
        task.add_done_callback(self._poll_tasks.discard)

    async def _timer_loop(self) -> None:
        while True:
            await self._sleep(self._settings.poll_interval_seconds)
            # Tick em task própria: polling lento não atrasa o timer
            self._spawn_tick()

    # --- Re-sondagem ------------------------------------------------------

    async def reevaluate_capability(self) -> DeliveryMode:
        """Re-sonda a integração push e ajusta o modo primário."""
        try:
            installed = await self._probe.is_push_delivery_installed()
        except Exception as exc:
            logger.warning(
                "capability_probe_failed",
                extra={"phase": "recheck", "error_type": type(exc).__name__, "error": str(exc)},
            )
            self.enable_temporary_polling(reason="capability_probe_failed")
            return self.mode

        mode = self.mode
        if installed and mode == DeliveryMode.POLLING_PRIMARY:
            self._transition(DeliveryMode.WEBHOOK_PRIMARY, "push_delivery_installed")
        elif not installed and mode != DeliveryMode.POLLING_PRIMARY:
            self._transition(DeliveryMode.POLLING_PRIMARY, "push_delivery_removed")
            self._temporary_expires_at = None
        return self.mode

    async def _recheck_loop(self) -> None:
        while True:
            await self._sleep(self._settings.capability_recheck_seconds)
            await self.reevaluate_capability()

    def summary(self) -> dict[str, Any]:
        """Resumo do estado do gate para observabilidade (/ready)."""

        def _iso(value: datetime | None) -> str | None:
            return value.isoformat() if value else None

        return {
            "mode": self.mode.value,
            "initialized": self._initialized,
            "temporary_polling_expires_at": _iso(self._temporary_expires_at),
            "last_webhook_at": _iso(self._last_webhook_at),
            "last_successful_poll_at": _iso(self._last_successful_poll_at),
            "poll_in_flight": self._in_flight,
            "transition_count": self._machine.transition_count,
        }

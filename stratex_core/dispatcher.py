from __future__ import annotations

import asyncio
from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

from beartype import beartype

from stratex_core.executor.exceptions import ExecutionError, InvalidInputError, VenueRejectedError
from stratex_core.logs.notifiers import NoOpNotifier, PushNotifier
from stratex_core.logs.structlog import logger
from stratex_core.models.results import ExecutionReport, ExecutionResult
from stratex_core.models.strategy import Order, Strategy, Swap
from stratex_core.models.venue import Venue


@runtime_checkable
class LegOutcome(Protocol):
    @property
    def venue_id(self) -> str: ...

    def details(self) -> dict[str, str]: ...


@runtime_checkable
class LegExecutor(Protocol):
    """Executes single items of one venue's leg."""

    venue: Venue

    async def execute(self, item: Any) -> LegOutcome: ...


class StrategyDispatcher:
    """
    Drives both legs of a strategy and collects one result per item.

    The CEX and DEX legs run concurrently; items inside a leg run one after
    another in input order. A failing item is recorded and the leg moves on
    to the next one.
    """

    @beartype
    def __init__(
        self,
        cex: LegExecutor | None = None,
        dex: LegExecutor | None = None,
        notifier: PushNotifier | None = None,
    ) -> None:
        self.cex = cex
        self.dex = dex
        self.notifier: PushNotifier = notifier or NoOpNotifier()
        self.logger = logger.bind(component=self.__class__.__name__)

    async def _run_item(self, executor: LegExecutor, index: int, item: Order | Swap) -> ExecutionResult:
        venue = executor.venue
        description = item.describe()
        log_prefix = f"{description}@{venue.value}"
        try:
            outcome = await executor.execute(item)
        except ExecutionError as e:
            self.logger.warning(
                f"{log_prefix} - {e.kind.value} failure{' (temporary)' if e.temporary else ''}: {e}"
            )
            return ExecutionResult.failed(venue, index, description, e)
        except Exception as e:
            self.logger.error(f"{log_prefix} - unexpected error: {e}", exc_info=True)
            wrapped = VenueRejectedError(venue.value, 0, f"{type(e).__name__}: {e}")
            return ExecutionResult.failed(venue, index, description, wrapped)

        self.logger.info(f"{log_prefix} - succeeded with id {outcome.venue_id}")
        return ExecutionResult.succeeded(venue, index, description, outcome.venue_id, outcome.details())

    async def run_leg(
        self,
        venue: Venue,
        executor: LegExecutor | None,
        items: Sequence[Order | Swap],
    ) -> list[ExecutionResult]:
        if not items:
            return []
        if executor is None:
            self.logger.warning(f"{venue.value} - leg has {len(items)} items but the venue is not configured")
            error = InvalidInputError(venue.value, "venue not configured")
            return [ExecutionResult.failed(venue, i, item.describe(), error) for i, item in enumerate(items)]

        results: list[ExecutionResult] = []
        for index, item in enumerate(items):
            results.append(await self._run_item(executor, index, item))
        return results

    @beartype
    async def dispatch(self, strategy: Strategy) -> ExecutionReport:
        """Execute every order and swap of `strategy` and report each outcome."""
        if strategy.is_empty():
            self.logger.info("no strategy items to execute")
            return ExecutionReport()

        async with asyncio.TaskGroup() as tg:
            cex_task = tg.create_task(self.run_leg(Venue.CEX, self.cex, strategy.orders))
            dex_task = tg.create_task(self.run_leg(Venue.DEX, self.dex, strategy.swaps))

        report = ExecutionReport(results=(*cex_task.result(), *dex_task.result()))
        summary = report.summary()
        self.logger.info(summary)
        await self._notify(report)
        return report

    async def _notify(self, report: ExecutionReport) -> None:
        # items have already executed; a delivery failure must not lose the report
        try:
            await self.notifier.notify(report)
        except Exception as e:
            self.logger.exception(f"failed to deliver execution summary: {e}")
        if not report.failed:
            return
        try:
            await self.notifier.send_error(
                f"{len(report.failed)} strategy items failed",
                context={"failed": [f"{r.venue.value}[{r.index}] {r.error_message}" for r in report.failed]},
            )
        except Exception as e:
            self.logger.exception(f"failed to deliver failure notification: {e}")

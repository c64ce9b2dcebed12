"""
Unit tests for StrategyDispatcher.

Behaviors:
  B1 - one result per item, CEX results first, each leg in input order
  B2 - a failing item never stops the rest of its leg or the other leg
  B3 - unexpected exceptions become permanent venue rejections
  B4 - a leg without a configured venue fails every item of that leg
  B5 - summary and failure notifications
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any

import pytest

from stratex_core.dispatcher import LegExecutor, StrategyDispatcher
from stratex_core.executor.exceptions import (
    ErrorKind,
    InvalidInputError,
    NetworkOrTimeoutError,
)
from stratex_core.logs.notifiers import BasePushNotifier
from stratex_core.models.strategy import Order, Strategy, Swap
from stratex_core.models.venue import Venue


@dataclass(frozen=True)
class FakeOutcome:
    venue_id: str

    def details(self) -> dict[str, str]:
        return {"status": "filled"}


class ScriptedLeg:
    """Replays one scripted outcome per call: an id string succeeds, an exception is raised."""

    def __init__(self, venue: Venue, script: list[str | Exception], delay: float = 0.0) -> None:
        self.venue = venue
        self.script = list(script)
        self.delay = delay
        self.seen: list[Any] = []

    async def execute(self, item: Any) -> FakeOutcome:
        self.seen.append(item)
        if self.delay:
            await asyncio.sleep(self.delay)
        step = self.script.pop(0)
        if isinstance(step, Exception):
            raise step
        return FakeOutcome(step)


@dataclass
class RecordingNotifier(BasePushNotifier):
    messages: list[object] = field(default_factory=list)
    errors: list[tuple[object, dict[str, Any] | None]] = field(default_factory=list)

    async def send(self, message: object) -> None:
        self.messages.append(message)

    async def send_error(
        self,
        error_message: object,
        exception: Exception | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        self.errors.append((error_message, context))


def order(token: str = "eth", amount: str = "0.5") -> Order:
    return Order(token=token, side="buy", amount=amount)


def swap(amount: str = "1") -> Swap:
    return Swap(tokenIn="usdc", tokenOut="weth", amount=amount)


def test_fake_leg_is_a_leg_executor() -> None:
    assert isinstance(ScriptedLeg(Venue.CEX, []), LegExecutor)


@pytest.mark.asyncio
async def test_one_failing_order_does_not_stop_the_swaps() -> None:
    cex = ScriptedLeg(Venue.CEX, [InvalidInputError("quantity", "must be positive")])
    dex = ScriptedLeg(Venue.DEX, ["0xaaa", "0xbbb"])
    notifier = RecordingNotifier()
    dispatcher = StrategyDispatcher(cex=cex, dex=dex, notifier=notifier)
    strategy = Strategy(orders=(order(amount="0"),), swaps=(swap("1"), swap("2")))

    report = await dispatcher.dispatch(strategy)

    assert len(report.results) == 3
    assert [(r.venue, r.index) for r in report.results] == [(Venue.CEX, 0), (Venue.DEX, 0), (Venue.DEX, 1)]
    assert report.results[0].error_kind == ErrorKind.INVALID_INPUT
    assert [r.venue_id for r in report.results[1:]] == ["0xaaa", "0xbbb"]
    assert report.results[1].details == {"status": "filled"}
    assert notifier.messages == [
        "\n".join(
            [
                "executed 2 out of 3 strategy items",
                "=" * 52,
                "cex[0] buy 0 eth: failed (invalid_input) Invalid input for quantity: must be positive",
                "dex[0] 1 usdc->weth: ok 0xaaa",
                "dex[1] 2 usdc->weth: ok 0xbbb",
            ]
        )
    ]
    assert len(notifier.errors) == 1
    message, context = notifier.errors[0]
    assert message == "1 strategy items failed"
    assert context is not None
    assert context["failed"] == ["cex[0] Invalid input for quantity: must be positive"]


@pytest.mark.asyncio
async def test_leg_continues_after_a_failure() -> None:
    cex = ScriptedLeg(Venue.CEX, ["1", NetworkOrTimeoutError("connection reset"), "3"])
    dispatcher = StrategyDispatcher(cex=cex)
    strategy = Strategy(orders=(order("eth"), order("btc"), order("sol")))

    report = await dispatcher.dispatch(strategy)

    assert [item.token for item in cex.seen] == ["eth", "btc", "sol"]
    assert [r.success for r in report.results] == [True, False, True]
    assert report.results[1].temporary is True
    assert report.results[1].error_kind == ErrorKind.NETWORK_OR_TIMEOUT


@pytest.mark.asyncio
async def test_unexpected_exception_is_permanent_rejection() -> None:
    dex = ScriptedLeg(Venue.DEX, [KeyError("result")])
    dispatcher = StrategyDispatcher(dex=dex)

    report = await dispatcher.dispatch(Strategy(swaps=(swap(),)))

    result = report.results[0]
    assert result.error_kind == ErrorKind.VENUE_REJECTED
    assert result.temporary is False
    assert result.error_message is not None
    assert "KeyError" in result.error_message


@pytest.mark.asyncio
async def test_unconfigured_venue_fails_its_items() -> None:
    dex = ScriptedLeg(Venue.DEX, ["0xaaa"])
    dispatcher = StrategyDispatcher(dex=dex)
    strategy = Strategy(orders=(order("eth"), order("btc")), swaps=(swap(),))

    report = await dispatcher.dispatch(strategy)

    cex_results = report.for_venue(Venue.CEX)
    assert [r.index for r in cex_results] == [0, 1]
    assert all(r.error_kind == ErrorKind.INVALID_INPUT for r in cex_results)
    assert report.for_venue(Venue.DEX)[0].venue_id == "0xaaa"


@pytest.mark.asyncio
async def test_results_are_ordered_cex_first_even_when_dex_finishes_first() -> None:
    cex = ScriptedLeg(Venue.CEX, ["1"], delay=0.05)
    dex = ScriptedLeg(Venue.DEX, ["0xaaa"])
    dispatcher = StrategyDispatcher(cex=cex, dex=dex)

    report = await dispatcher.dispatch(Strategy(orders=(order(),), swaps=(swap(),)))

    assert [r.venue for r in report.results] == [Venue.CEX, Venue.DEX]


@pytest.mark.asyncio
async def test_legs_run_concurrently() -> None:
    cex = ScriptedLeg(Venue.CEX, ["1"], delay=0.2)
    dex = ScriptedLeg(Venue.DEX, ["0xaaa"], delay=0.2)
    dispatcher = StrategyDispatcher(cex=cex, dex=dex)
    loop = asyncio.get_running_loop()

    started = loop.time()
    await dispatcher.dispatch(Strategy(orders=(order(),), swaps=(swap(),)))

    assert loop.time() - started < 0.35


@pytest.mark.asyncio
async def test_empty_strategy_sends_nothing() -> None:
    notifier = RecordingNotifier()
    dispatcher = StrategyDispatcher(notifier=notifier)

    report = await dispatcher.dispatch(Strategy())

    assert report.results == ()
    assert notifier.messages == []
    assert notifier.errors == []


@pytest.mark.asyncio
async def test_all_succeeded_sends_no_error() -> None:
    notifier = RecordingNotifier()
    dispatcher = StrategyDispatcher(cex=ScriptedLeg(Venue.CEX, ["1"]), notifier=notifier)

    await dispatcher.dispatch(Strategy(orders=(order(),)))

    assert len(notifier.messages) == 1
    assert str(notifier.messages[0]).splitlines()[0] == "executed 1 out of 1 strategy items"
    assert notifier.errors == []


class UndeliverableNotifier(BasePushNotifier):
    def __init__(self) -> None:
        self.attempts = 0

    async def send(self, message: object) -> None:
        self.attempts += 1
        raise ConnectionError("push channel down")

    async def send_error(
        self,
        error_message: object,
        exception: Exception | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        self.attempts += 1
        raise ConnectionError("push channel down")


@pytest.mark.asyncio
async def test_report_survives_notifier_failure() -> None:
    cex = ScriptedLeg(Venue.CEX, ["1", InvalidInputError("quantity", "must be positive")])
    notifier = UndeliverableNotifier()
    dispatcher = StrategyDispatcher(cex=cex, notifier=notifier)

    report = await dispatcher.dispatch(Strategy(orders=(order("eth"), order("btc", amount="0"))))

    assert len(cex.seen) == 2
    assert [r.success for r in report.results] == [True, False]
    assert notifier.attempts == 2

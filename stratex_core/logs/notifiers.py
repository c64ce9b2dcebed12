import abc
from typing import Any, Protocol, runtime_checkable

from beartype import beartype

from stratex_core.logs.structlog import logger
from stratex_core.models.results import ExecutionReport, ExecutionResult


@runtime_checkable
class PushNotifier(Protocol):
    """
    Receives the outcome of every dispatched strategy.

    Injected into the dispatcher; there is no process-wide notifier.
    """

    async def send(self, message: object) -> None: ...

    async def send_error(
        self,
        error_message: object,
        exception: Exception | None = None,
        context: dict[str, Any] | None = None,
    ) -> None: ...

    async def notify(self, message: object) -> None:
        """Render `message` (an ExecutionReport or anything printable) and send it."""
        ...


def _outcome(result: ExecutionResult) -> str:
    if result.success:
        return f"ok {result.venue_id}"
    retry = ", temporary" if result.temporary else ""
    kind = result.error_kind.value if result.error_kind is not None else "unknown"
    return f"failed ({kind}{retry}) {result.error_message}"


class BasePushNotifier(abc.ABC):
    """Shared rendering of execution reports; subclasses only deliver text."""

    @abc.abstractmethod
    async def send(self, message: object) -> None:
        pass

    @abc.abstractmethod
    async def send_error(
        self,
        error_message: object,
        exception: Exception | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        pass

    @staticmethod
    @beartype
    def render(message: object) -> str:
        """One summary line, then one `venue[index] item: outcome` row per result."""
        if not isinstance(message, ExecutionReport):
            return str(message)

        lines = [message.summary()]
        if message.results:
            lines.append("=" * 52)
        for result in message.results:
            lines.append(f"{result.venue.value}[{result.index}] {result.item}: {_outcome(result)}")
        return "\n".join(lines)

    @beartype
    async def notify(self, message: object) -> None:
        await self.send(self.render(message))


class NoOpNotifier(BasePushNotifier):
    """Default notifier: drops everything."""

    async def send(self, message: object) -> None:
        pass

    async def send_error(
        self,
        error_message: object,
        exception: Exception | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        pass


class LogNotifier(BasePushNotifier):
    """Writes notifications to the structured log instead of an external channel."""

    def __init__(self) -> None:
        self.logger = logger.bind(component=self.__class__.__name__)

    @beartype
    async def send(self, message: object) -> None:
        self.logger.info(str(message))

    @beartype
    async def send_error(
        self,
        error_message: object,
        exception: Exception | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        details: dict[str, Any] = dict(context or {})
        if exception is not None:
            details["error_type"] = type(exception).__name__
            details["error_details"] = str(exception)
        self.logger.error(str(error_message), **details)

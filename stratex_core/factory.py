from __future__ import annotations

from types import TracebackType

import aiohttp
from beartype import beartype

from stratex_core.cex.executor import CexOrderExecutor
from stratex_core.cex.signer import ApiCredentials, RequestSigner, ServerClock
from stratex_core.config.settings import CexConfig, DexConfig, EngineConfig
from stratex_core.dex.client import DexAggregatorClient
from stratex_core.dex.executor import DexSwapExecutor
from stratex_core.dex.metadata import ChainMetadataResolver
from stratex_core.dex.sender import TransactionSender, Web3TransactionSender
from stratex_core.dispatcher import StrategyDispatcher
from stratex_core.executor.exceptions import AuthenticationError, ExecutionError
from stratex_core.logs.notifiers import PushNotifier
from stratex_core.logs.structlog import configure, logger
from stratex_core.models.venue import Venue
from stratex_core.transport.rest import RestClient


class EngineFactory:
    """
    Builds the execution engine from settings and owns its resources.

    Usage:
        async with EngineFactory(config) as engine:
            report = await engine.dispatcher.dispatch(strategy)

    One aiohttp session is shared by both venues and closed on exit.
    """

    @beartype
    def __init__(
        self,
        config: EngineConfig,
        notifier: PushNotifier | None = None,
        sender: TransactionSender | None = None,
        setup_logging: bool = False,
    ) -> None:
        self.config = config
        self.notifier = notifier
        self.setup_logging = setup_logging
        self._sender_override = sender
        self._owned_sender: Web3TransactionSender | None = None
        self._session: aiohttp.ClientSession | None = None
        self.cex: CexOrderExecutor | None = None
        self.dex: DexSwapExecutor | None = None
        self.resolver: ChainMetadataResolver | None = None
        self.dispatcher: StrategyDispatcher | None = None
        self.logger = logger.bind(component=self.__class__.__name__)

    @classmethod
    @beartype
    def from_config(cls, config: EngineConfig, notifier: PushNotifier | None = None) -> EngineFactory:
        """Application entry point: the engine also applies `config.logging` on start."""
        return cls(config, notifier=notifier, setup_logging=True)

    def configure_logging(self) -> None:
        """Route all logging through the handlers described by `config.logging`."""
        settings = self.config.logging
        configure(service_name=settings.service_name, log_level=settings.log_level, log_dir=settings.log_dir)
        self.logger = logger.bind(component=self.__class__.__name__)

    async def _build_cex(self, session: aiohttp.ClientSession, config: CexConfig) -> CexOrderExecutor:
        rest = RestClient(session, Venue.CEX.value, timeout_s=config.request_timeout_s)
        signer: RequestSigner | None = None
        try:
            credentials = ApiCredentials.from_config(config)
        except AuthenticationError as e:
            self.logger.warning(f"cex - {e}; orders will fail with an authentication error")
        else:
            clock = ServerClock()
            if config.sync_server_time:
                try:
                    await clock.sync(rest, f"{config.base_url.rstrip('/')}{config.time_path}")
                except ExecutionError as e:
                    self.logger.warning(f"cex - server time sync failed, using local clock: {e}")
            signer = RequestSigner(credentials, clock, recv_window_ms=config.recv_window_ms)
        return CexOrderExecutor(config, rest, signer)

    def _build_dex(self, session: aiohttp.ClientSession, config: DexConfig) -> DexSwapExecutor:
        rest = RestClient(session, Venue.DEX.value, timeout_s=config.request_timeout_s)
        client = DexAggregatorClient(rest, config.base_url)
        self.resolver = ChainMetadataResolver(client)
        sender = self._sender_override
        if sender is None:
            self._owned_sender = Web3TransactionSender.from_rpc_url(
                config.rpc_url, config.private_key, timeout_s=config.request_timeout_s
            )
            sender = self._owned_sender
        return DexSwapExecutor(config, client, self.resolver, sender)

    async def start(self) -> EngineFactory:
        if self.setup_logging:
            self.configure_logging()
        self._session = aiohttp.ClientSession()
        try:
            if self.config.cex is not None:
                self.cex = await self._build_cex(self._session, self.config.cex)
            if self.config.dex is not None:
                self.dex = self._build_dex(self._session, self.config.dex)
        except BaseException:
            await self.close()
            raise
        self.dispatcher = StrategyDispatcher(cex=self.cex, dex=self.dex, notifier=self.notifier)
        configured = [v.value for v, e in ((Venue.CEX, self.cex), (Venue.DEX, self.dex)) if e is not None]
        self.logger.info(f"engine ready, configured venues: {configured or 'none'}")
        return self

    async def close(self) -> None:
        # an injected sender belongs to the caller
        if self._owned_sender is not None:
            await self._owned_sender.close()
            self._owned_sender = None
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> EngineFactory:
        return await self.start()

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

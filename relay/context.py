"""
Board Relay - Relay Context
Single owner of all process-wide relay state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from relay.boards import BoardRegistry
from relay.communication.broadcaster import ConnectionBroadcaster
from relay.communication.router import RequestRouter
from relay.config import RelayConfig
from relay.drivers import DriverLibrary, create_driver

logger = logging.getLogger(__name__)


@dataclass
class RelayContext:
    """Board registry, broadcaster and router, wired together once at startup."""

    config: RelayConfig
    driver: DriverLibrary
    broadcaster: ConnectionBroadcaster
    registry: BoardRegistry
    router: RequestRouter

    @classmethod
    def create(
        cls,
        config: RelayConfig | None = None,
        driver: DriverLibrary | None = None,
    ) -> RelayContext:
        """
        Build the relay state.

        Args:
            config: Relay configuration (defaults to RelayConfig())
            driver: Driver library (defaults to the one named by config)
        """
        config = config or RelayConfig()
        driver = driver or create_driver(config)

        broadcaster = ConnectionBroadcaster()
        registry = BoardRegistry(
            driver,
            publish=broadcaster.publish,
            timeout=config.board_timeout,
        )
        router = RequestRouter(registry, broadcaster)
        logger.debug(f"Relay context created with {driver.name}")

        return cls(
            config=config,
            driver=driver,
            broadcaster=broadcaster,
            registry=registry,
            router=router,
        )

    async def shutdown(self) -> None:
        """Stop in-flight requests, flush events and release boards."""
        await self.router.cancel_pending()
        await self.broadcaster.close()
        await self.registry.close()
        logger.info("Relay context shut down")

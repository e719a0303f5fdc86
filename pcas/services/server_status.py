"""Server Status Probe — liveness of the backend for the status widget.

Invariants:
    - status is CHECKING until the first check() settles
    - check() never raises; an unreachable backend is OFFLINE with last_error set
"""

import logging

from pcas.core.domain_types import ServerStatus
from pcas.infrastructure.api_client import HEALTH_PATH, ApiGateway

logger = logging.getLogger(__name__)


class ServerStatusProbe:

    def __init__(self, gateway: ApiGateway):
        self.gateway = gateway
        self.status = ServerStatus.CHECKING
        self.last_error: str | None = None

    async def check(self) -> ServerStatus:
        online = await self.gateway.health()
        if online:
            self.status = ServerStatus.ONLINE
            self.last_error = None
        else:
            self.status = ServerStatus.OFFLINE
            self.last_error = f"Backend did not answer {HEALTH_PATH}"
            logger.info("Backend offline", extra={"path": HEALTH_PATH})
        return self.status

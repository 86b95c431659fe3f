"""Remote availability probing and backend selection policy.

``AvailabilityProbe`` runs one health check against the remote gateway
and reports the outcome as an immutable ``BackendStatus``.
``BackendSelector`` decides, from a status and the current time, whether
the remote should be used and whether the status is stale enough to be
re-probed.  Neither holds process-wide state: the store owns the current
``BackendStatus`` and passes it to the selector on every call.

Usage:
    from collection_store.probe import AvailabilityProbe, BackendSelector

    probe = AvailabilityProbe(gateway)
    status = await probe.check()
    selector = BackendSelector(recheck_interval=30.0)
    if selector.should_reprobe(status):
        status = await probe.check()
"""

import logging
import time
from collections.abc import Callable

from pydantic import BaseModel, ConfigDict

from collection_store.adapters.remote import RemoteGatewayAdapter
from collection_store.errors import RemoteUnavailableError

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class BackendStatus(BaseModel):
    """Outcome of the latest availability check."""

    model_config = ConfigDict(frozen=True)

    available: bool
    checked_at: float  # clock reading when the status was produced
    reason: str | None = None

    @classmethod
    def unchecked(cls) -> "BackendStatus":
        """Status of a store that has not probed yet (selects local)."""
        return cls(available=False, checked_at=float("-inf"), reason="not checked")


class AvailabilityProbe:
    """One-shot health check against the remote gateway.

    Args:
        gateway: Remote gateway to probe, or ``None`` when no remote is
            configured (every check reports unavailable).
        clock: Time source for ``BackendStatus.checked_at``.
    """

    def __init__(
        self,
        gateway: RemoteGatewayAdapter | None,
        clock: Clock = time.monotonic,
    ) -> None:
        self._gateway = gateway
        self._clock = clock

    @property
    def configured(self) -> bool:
        return self._gateway is not None

    async def check(self) -> BackendStatus:
        """Return ``available=True`` iff the health route answers 2xx in time.

        Never raises: network errors, timeouts and non-2xx statuses all
        produce an unavailable status carrying the reason.
        """
        if self._gateway is None:
            return BackendStatus(
                available=False, checked_at=self._clock(), reason="remote not configured"
            )

        try:
            await self._gateway.health()
        except RemoteUnavailableError as e:
            logger.warning(f"Remote backend unavailable, using local cache: {e}")
            return BackendStatus(available=False, checked_at=self._clock(), reason=str(e))

        logger.info(f"Remote backend connected at {self._gateway.base_url}")
        return BackendStatus(available=True, checked_at=self._clock())


class BackendSelector:
    """Backend selection policy.

    Args:
        recheck_interval: Seconds after which an unavailable status is
            re-probed before the next operation.  ``None`` keeps the first
            result for the lifetime of the store.
        clock: Time source, compared against ``BackendStatus.checked_at``.
    """

    def __init__(
        self,
        recheck_interval: float | None = 30.0,
        clock: Clock = time.monotonic,
    ) -> None:
        self.recheck_interval = recheck_interval
        self._clock = clock

    def use_remote(self, status: BackendStatus) -> bool:
        return status.available

    def should_reprobe(self, status: BackendStatus) -> bool:
        """True when *status* is unavailable and older than the interval."""
        if status.available or self.recheck_interval is None:
            return False
        return self._clock() - status.checked_at >= self.recheck_interval

    def mark_failed(self, reason: str) -> BackendStatus:
        """Return the status to hold after a remote operation failed."""
        return BackendStatus(available=False, checked_at=self._clock(), reason=reason)

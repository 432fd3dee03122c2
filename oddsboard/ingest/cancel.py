"""Explicit cancellation context passed into every fetch."""

import asyncio
import itertools
from typing import Optional

from oddsboard.ingest.errors import FetchCancelledError

_ids = itertools.count(1)


class CancelToken:
    """Abort signal for one fetch.

    Tokens are compared by identity: whoever holds the current token for a
    slot is the only fetch allowed to publish results.
    """

    def __init__(self, label: str = "fetch"):
        self.id = next(_ids)
        self.label = label
        self.reason: Optional[str] = None
        self._event = asyncio.Event()

    def __repr__(self) -> str:
        state = f"cancelled: {self.reason}" if self.cancelled else "live"
        return f"<CancelToken #{self.id} {self.label} ({state})>"

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: str = "cancelled") -> None:
        if not self.cancelled:
            self.reason = reason
            self._event.set()

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise FetchCancelledError(f"{self.label} {self.reason}")

    async def wait(self) -> None:
        """Block until the token is cancelled."""
        await self._event.wait()

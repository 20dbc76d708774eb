"""In-memory view of the bookings sessions are looking at."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime, timedelta

from rentalflow.models.booking import Booking

logger = logging.getLogger(__name__)

DEFAULT_TTL = timedelta(minutes=15)


class BookingStore:
    """Latest known state per booking id, expiring after `ttl`.

    Updates are optimistic: the new state is visible while the upstream call
    is in flight and reverted if that call fails or is cancelled, unless a
    newer state was stored in the meantime.
    """

    def __init__(self, ttl: timedelta = DEFAULT_TTL):
        self._bookings: dict[str, dict] = {}
        self._ttl = ttl

    def _cleanup_expired(self) -> None:
        """Remove expired entries."""
        now = datetime.now(UTC)
        expired = [k for k, v in self._bookings.items() if v["expires_at"] <= now]
        for k in expired:
            del self._bookings[k]

    def get(self, booking_id: str) -> Booking | None:
        self._cleanup_expired()
        entry = self._bookings.get(booking_id)
        return entry["booking"] if entry else None

    def put(self, booking: Booking) -> Booking:
        self._cleanup_expired()
        self._bookings[booking.id] = {
            "booking": booking,
            "expires_at": datetime.now(UTC) + self._ttl,
        }
        return booking

    @asynccontextmanager
    async def optimistic(self, previous: Booking, updated: Booking) -> AsyncIterator[Booking]:
        """Show `updated` until the block exits; restore `previous` if it raises."""
        self.put(updated)
        try:
            yield updated
        except BaseException:
            # CancelledError included: an aborted call must not leave a transition applied
            if self.get(updated.id) is updated:
                self.put(previous)
                logger.warning(
                    "Rolled back booking %s to %s/%s",
                    previous.id,
                    previous.status.value,
                    previous.payment_status.value,
                )
            else:
                logger.warning("Booking %s changed during a failed update; keeping the newer state", previous.id)
            raise

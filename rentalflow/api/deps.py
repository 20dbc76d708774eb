"""API dependencies for identity and services."""

from typing import Annotated

from fastapi import Depends, Header, Request

from rentalflow.clients.marketplace import MarketplaceClient
from rentalflow.core.exceptions import AuthenticationError
from rentalflow.services.booking_service import BookingService


def get_marketplace_client(request: Request) -> MarketplaceClient:
    """Shared upstream client created at startup."""
    return request.app.state.marketplace_client


def get_booking_service(
    request: Request,
    client: Annotated[MarketplaceClient, Depends(get_marketplace_client)],
) -> BookingService:
    return BookingService(client, store=request.app.state.booking_store)


async def get_current_user_id(
    x_user_id: Annotated[str | None, Header()] = None,
) -> str:
    """Acting user id, set by the session layer in front of this service.

    The header is trusted as-is. The service must only be reachable through
    that layer, which authenticates the caller and overwrites any
    client-supplied X-User-Id.
    """
    if not x_user_id:
        raise AuthenticationError("X-User-Id header is required")
    return x_user_id

"""Clients for external collaborators."""

from rentalflow.clients.marketplace import MarketplaceClient

__all__ = ["MarketplaceClient"]

"""Main API router that includes all endpoint routers."""

from fastapi import APIRouter

from rentalflow.api.v1 import bookings, payments, reviews

api_router = APIRouter()

# Bookings
api_router.include_router(bookings.router, prefix="/bookings", tags=["Bookings"])

# Payments
api_router.include_router(payments.router, prefix="/payments", tags=["Payments"])

# Reviews
api_router.include_router(reviews.router, prefix="/reviews", tags=["Reviews"])

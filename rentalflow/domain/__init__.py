"""Booking domain logic: pricing, lifecycle, action gating, aggregates."""

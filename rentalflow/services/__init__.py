"""Service layer wiring the booking core to external collaborators."""

"""Application layer: ports, services and request/result objects."""

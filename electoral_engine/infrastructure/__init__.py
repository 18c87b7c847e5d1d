"""Infrastructure adapters: stubs, observability and monitoring."""

"""Infrastructure layer: adapters, observability and in-memory stubs."""

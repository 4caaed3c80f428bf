"""Application layer: ports and the services that drive the domain."""

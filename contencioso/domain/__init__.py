"""Domain layer: aggregates, errors, events and pure domain services.

Nothing in this package imports from application, infrastructure or config.
"""

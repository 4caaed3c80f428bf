"""Observability infrastructure: structured logging and correlation IDs.

Usage:
    from contencioso.infrastructure.observability import (
        configure_structlog,
        correlation_scope,
    )

    # At startup
    configure_structlog(environment="production")

    # Around each request
    with correlation_scope(incoming_id):
        ...
"""

from contencioso.infrastructure.observability.correlation import (
    correlation_id_processor,
    correlation_scope,
    generate_correlation_id,
    get_correlation_id,
    set_correlation_id,
)
from contencioso.infrastructure.observability.logging import (
    configure_structlog,
    get_logger_for_service,
)

__all__: list[str] = [
    "configure_structlog",
    "correlation_id_processor",
    "correlation_scope",
    "generate_correlation_id",
    "get_correlation_id",
    "get_logger_for_service",
    "set_correlation_id",
]

"""Infrastructure adapters implementing application ports."""

from contencioso.infrastructure.adapters.structlog_event_sink import StructlogEventSink
from contencioso.infrastructure.adapters.system_time_authority import (
    SystemTimeAuthority,
)

__all__ = ["StructlogEventSink", "SystemTimeAuthority"]

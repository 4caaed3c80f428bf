"""Event sink that writes adjudication events to the structured log.

Used where no message bus is wired: every event becomes one log entry with
its dict representation flattened into the entry's fields.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from contencioso.application.ports.event_sink import AdjudicationEventSinkProtocol
from contencioso.infrastructure.observability.logging import get_logger_for_service

if TYPE_CHECKING:
    from contencioso.domain.events.adjudication import AdjudicationEvent


class StructlogEventSink(AdjudicationEventSinkProtocol):
    """Logs each event as ``adjudication_event``."""

    def __init__(self) -> None:
        self._log = get_logger_for_service(type(self).__name__)

    def emit(self, event: AdjudicationEvent) -> None:
        self._log.info("adjudication_event", **event.to_dict())

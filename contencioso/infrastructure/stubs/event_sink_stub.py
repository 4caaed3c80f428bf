"""In-memory event sink stub that records emitted events."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

from contencioso.application.ports.event_sink import AdjudicationEventSinkProtocol

if TYPE_CHECKING:
    from uuid import UUID

    from contencioso.domain.events.adjudication import AdjudicationEvent


class EventSinkStub(AdjudicationEventSinkProtocol):
    """Collects events in emission order (testing only)."""

    def __init__(self) -> None:
        self._events: list[AdjudicationEvent] = []
        self._lock = threading.Lock()

    def emit(self, event: AdjudicationEvent) -> None:
        with self._lock:
            self._events.append(event)

    @property
    def events(self) -> list[AdjudicationEvent]:
        with self._lock:
            return list(self._events)

    def of_type(self, event_type: str) -> list[AdjudicationEvent]:
        return [e for e in self.events if e.event_type == event_type]

    def for_case(self, case_id: UUID) -> list[AdjudicationEvent]:
        return [e for e in self.events if e.case_id == case_id]

    def clear(self) -> None:
        with self._lock:
            self._events.clear()

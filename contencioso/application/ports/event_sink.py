"""Adjudication event sink port.

Receives one event per successful transition. Scheduling jobs and
notifying parties happen downstream of the sink.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from contencioso.domain.events.adjudication import AdjudicationEvent


class AdjudicationEventSinkProtocol(Protocol):
    """Protocol for publishing adjudication events."""

    @abstractmethod
    def emit(self, event: AdjudicationEvent) -> None:
        """Publish an event."""
        ...

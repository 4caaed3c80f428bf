"""Event sink that holds events back until a commit succeeds.

The workflow components emit as soon as they build a new aggregate. When
they run inside ``deferred()``, events are buffered for the current thread
and forwarded only if the block exits normally; a rejected or conflicting
commit discards them.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING

from contencioso.application.ports.event_sink import AdjudicationEventSinkProtocol

if TYPE_CHECKING:
    from contencioso.domain.events.adjudication import AdjudicationEvent


class DeferredEventSink(AdjudicationEventSinkProtocol):
    """Buffers events per thread inside ``deferred()`` blocks."""

    def __init__(self, target: AdjudicationEventSinkProtocol) -> None:
        self._target = target
        self._local = threading.local()

    def emit(self, event: AdjudicationEvent) -> None:
        buffer: list[AdjudicationEvent] | None = getattr(self._local, "buffer", None)
        if buffer is None:
            self._target.emit(event)
        else:
            buffer.append(event)

    @contextmanager
    def deferred(self) -> Iterator[None]:
        """Buffer events until the block completes without raising."""
        if getattr(self._local, "buffer", None) is not None:
            raise RuntimeError("deferred() blocks cannot be nested")
        self._local.buffer = []
        try:
            yield
            events = list(self._local.buffer)
        finally:
            self._local.buffer = None
        for event in events:
            self._target.emit(event)

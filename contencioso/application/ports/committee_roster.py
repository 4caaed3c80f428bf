"""Committee roster port.

Committee composition is managed elsewhere. The engine reads a fresh
snapshot at every vote and every decision, never a cached one.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from uuid import UUID

    from contencioso.domain.models.committee import Committee


class CommitteeRosterProtocol(Protocol):
    """Protocol for reading committee rosters."""

    @abstractmethod
    def get_committee(self, committee_id: UUID) -> Committee:
        """Return the current roster snapshot.

        Raises:
            CommitteeNotFoundError: If the committee is unknown.
        """
        ...

"""Application ports (interfaces the engine depends on)."""

from contencioso.application.ports.adjudication_repository import (
    AdjudicationChangeSet,
    AdjudicationRepositoryProtocol,
    PendingWrite,
)
from contencioso.application.ports.committee_roster import CommitteeRosterProtocol
from contencioso.application.ports.event_sink import AdjudicationEventSinkProtocol
from contencioso.application.ports.time_authority import TimeAuthorityProtocol

__all__ = [
    "AdjudicationChangeSet",
    "AdjudicationEventSinkProtocol",
    "AdjudicationRepositoryProtocol",
    "CommitteeRosterProtocol",
    "PendingWrite",
    "TimeAuthorityProtocol",
]

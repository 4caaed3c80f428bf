"""Domain services for the adjudication engine.

Domain services hold business rules that do not belong to a single
aggregate. They must NOT depend on infrastructure.

Available services:
- DeadlineCalculator: calendar and business-day deadlines
- CommitteeQuorum: quorum checks and vote resolution
"""

from contencioso.domain.services.committee_quorum import (
    CommitteeQuorum,
    DeclareTiePolicy,
    RapporteurCastingVotePolicy,
    TieBreakPolicy,
    VoteResolution,
    tie_break_policy_for,
)
from contencioso.domain.services.deadline_calculator import (
    BusinessCalendar,
    DeadlineCalculator,
    HolidayCalendar,
    WeekendCalendar,
)

__all__ = [
    "BusinessCalendar",
    "CommitteeQuorum",
    "DeadlineCalculator",
    "DeclareTiePolicy",
    "HolidayCalendar",
    "RapporteurCastingVotePolicy",
    "TieBreakPolicy",
    "VoteResolution",
    "WeekendCalendar",
    "tie_break_policy_for",
]

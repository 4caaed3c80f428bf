"""Committee quorum and vote resolution.

Quorum is met when ``votes_cast >= ceil(fraction * active_members)``. The
fraction is converted through its decimal string into an exact Fraction so
that 0.6 of 5 members requires 3 votes, not 4.

Vote resolution is a plurality between the favor and against sides;
abstentions count toward quorum but not toward either side. A strict tie is
handed to a TieBreakPolicy.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from fractions import Fraction
from uuid import UUID

from contencioso.domain.models.committee import Committee
from contencioso.domain.models.judgment_process import Vote, VoteOutcome


@dataclass(frozen=True, eq=True)
class VoteResolution:
    """Tally and outcome of a set of votes.

    Attributes:
        favor_count: Votes on the favor side.
        against_count: Votes on the against side.
        abstain_count: Abstentions.
        outcome: FAVOR, AGAINST or TIE.
        unanimous: At least one substantive vote, no abstention, and one
            side empty.
    """

    favor_count: int
    against_count: int
    abstain_count: int
    outcome: VoteOutcome
    unanimous: bool

    @property
    def total(self) -> int:
        return self.favor_count + self.against_count + self.abstain_count


class TieBreakPolicy(ABC):
    """Strategy applied when the favor and against sides are equal."""

    name: str = ""

    @abstractmethod
    def break_tie(
        self, votes: Sequence[Vote], relator_id: UUID | None
    ) -> VoteOutcome:
        """Return the outcome of a tied vote."""
        ...


class DeclareTiePolicy(TieBreakPolicy):
    """Ties stay ties."""

    name = "declare_tie"

    def break_tie(
        self, votes: Sequence[Vote], relator_id: UUID | None
    ) -> VoteOutcome:
        return VoteOutcome.TIE


class RapporteurCastingVotePolicy(TieBreakPolicy):
    """The relator's substantive vote decides a tie.

    If the relator did not vote, or abstained, the tie stands.
    """

    name = "rapporteur_casting_vote"

    def break_tie(
        self, votes: Sequence[Vote], relator_id: UUID | None
    ) -> VoteOutcome:
        if relator_id is None:
            return VoteOutcome.TIE
        for vote in votes:
            if vote.member_id == relator_id and vote.choice.side is not None:
                return vote.choice.side
        return VoteOutcome.TIE


TIE_BREAK_POLICIES: dict[str, type[TieBreakPolicy]] = {
    DeclareTiePolicy.name: DeclareTiePolicy,
    RapporteurCastingVotePolicy.name: RapporteurCastingVotePolicy,
}


def tie_break_policy_for(name: str) -> TieBreakPolicy:
    """Instantiate a tie-break policy by its configured name.

    Raises:
        ValueError: If the name is unknown.
    """
    try:
        return TIE_BREAK_POLICIES[name]()
    except KeyError:
        known = ", ".join(sorted(TIE_BREAK_POLICIES))
        raise ValueError(
            f"Unknown tie-break policy {name!r}; expected one of [{known}]"
        ) from None


class CommitteeQuorum:
    """Quorum checks and vote resolution for one quorum fraction.

    Example:
        >>> quorum = CommitteeQuorum(0.6)
        >>> quorum.quorum_threshold(5)
        3
        >>> quorum.has_quorum(5, 2)
        False
    """

    def __init__(
        self,
        fraction: float | Fraction = Fraction(1, 2),
        tie_break_policy: TieBreakPolicy | None = None,
    ) -> None:
        """Initialize quorum rules.

        Args:
            fraction: Share of active members that must vote, in (0, 1].
            tie_break_policy: Policy for strict ties (DeclareTiePolicy if omitted).

        Raises:
            ValueError: If the fraction is outside (0, 1].
        """
        exact = fraction if isinstance(fraction, Fraction) else Fraction(str(fraction))
        if not 0 < exact <= 1:
            raise ValueError(f"quorum fraction must be in (0, 1], got {fraction}")
        self._fraction = exact
        self._tie_break_policy = tie_break_policy or DeclareTiePolicy()

    @property
    def fraction(self) -> Fraction:
        return self._fraction

    @property
    def tie_break_policy(self) -> TieBreakPolicy:
        return self._tie_break_policy

    def quorum_threshold(self, total_active_members: int) -> int:
        """Votes required for quorum with ``total_active_members`` on the roster."""
        if total_active_members < 0:
            raise ValueError("total_active_members must be >= 0")
        return math.ceil(self._fraction * total_active_members)

    def has_quorum(self, total_active_members: int, votes_cast: int) -> bool:
        """Check whether enough members voted. An empty roster never has quorum."""
        if total_active_members <= 0:
            return False
        return votes_cast >= self.quorum_threshold(total_active_members)

    def committee_can_decide(self, committee: Committee) -> bool:
        """A committee decides only with at least half its seats filled (rounded up)."""
        return committee.active_count >= committee.minimum_active_members

    def resolve(
        self, votes: Iterable[Vote], relator_id: UUID | None = None
    ) -> VoteResolution:
        """Resolve votes into a tally and an outcome."""
        cast = tuple(votes)
        favor = sum(1 for v in cast if v.choice.side == VoteOutcome.FAVOR)
        against = sum(1 for v in cast if v.choice.side == VoteOutcome.AGAINST)
        abstain = len(cast) - favor - against

        if favor > against:
            outcome = VoteOutcome.FAVOR
        elif against > favor:
            outcome = VoteOutcome.AGAINST
        else:
            outcome = self._tie_break_policy.break_tie(cast, relator_id)

        unanimous = (favor + against) > 0 and (favor == 0 or against == 0) and abstain == 0
        return VoteResolution(
            favor_count=favor,
            against_count=against,
            abstain_count=abstain,
            outcome=outcome,
            unanimous=unanimous,
        )

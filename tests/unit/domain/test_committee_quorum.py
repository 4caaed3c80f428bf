"""Unit tests for CommitteeQuorum and tie-break policies."""

from datetime import datetime, timezone
from fractions import Fraction
from uuid import UUID

import pytest
from uuid6 import uuid7

from contencioso.domain.models.committee import Committee, CommitteeScope
from contencioso.domain.models.judgment_process import Vote, VoteChoice, VoteOutcome
from contencioso.domain.services.committee_quorum import (
    CommitteeQuorum,
    DeclareTiePolicy,
    RapporteurCastingVotePolicy,
    tie_break_policy_for,
)

CAST_AT = datetime(2024, 3, 28, 10, 0, tzinfo=timezone.utc)


def _votes(*choices: VoteChoice) -> list[Vote]:
    return [Vote(member_id=uuid7(), choice=c, cast_at=CAST_AT) for c in choices]


def _vote(member_id: UUID, choice: VoteChoice) -> Vote:
    return Vote(member_id=member_id, choice=choice, cast_at=CAST_AT)


class TestQuorumThreshold:
    """Tests for the exact quorum threshold."""

    def test_sixty_percent_of_five_is_three(self) -> None:
        """0.6 * 5 is exactly 3, not 4 through float rounding."""
        quorum = CommitteeQuorum(0.6)

        assert quorum.quorum_threshold(5) == 3
        assert quorum.has_quorum(5, 3) is True
        assert quorum.has_quorum(5, 2) is False

    def test_half_of_three_rounds_up(self) -> None:
        quorum = CommitteeQuorum(0.5)

        assert quorum.quorum_threshold(3) == 2

    def test_fraction_is_exact(self) -> None:
        assert CommitteeQuorum(0.6).fraction == Fraction(3, 5)

    def test_empty_roster_never_has_quorum(self) -> None:
        quorum = CommitteeQuorum(0.5)

        assert quorum.has_quorum(0, 0) is False
        assert quorum.has_quorum(0, 3) is False

    @pytest.mark.parametrize("fraction", [0, -0.1, 1.01])
    def test_fraction_out_of_range_raises(self, fraction: float) -> None:
        with pytest.raises(ValueError):
            CommitteeQuorum(fraction)

    def test_full_attendance_fraction(self) -> None:
        quorum = CommitteeQuorum(1.0)

        assert quorum.has_quorum(5, 4) is False
        assert quorum.has_quorum(5, 5) is True


class TestCommitteeCanDecide:
    """Tests for the minimum active roster."""

    def test_national_committee_needs_three_members(self) -> None:
        quorum = CommitteeQuorum()
        members = tuple(uuid7() for _ in range(3))
        committee = Committee(uuid7(), CommitteeScope.NATIONAL, members)

        assert quorum.committee_can_decide(committee) is True
        reduced = Committee(uuid7(), CommitteeScope.NATIONAL, members[:2])
        assert quorum.committee_can_decide(reduced) is False

    def test_state_committee_needs_two_members(self) -> None:
        committee = Committee(uuid7(), CommitteeScope.STATE, (uuid7(), uuid7()))

        assert committee.minimum_active_members == 2
        assert CommitteeQuorum().committee_can_decide(committee) is True


class TestResolve:
    """Tests for vote resolution."""

    def test_majority_favor_not_unanimous(self) -> None:
        resolution = CommitteeQuorum().resolve(
            _votes(*[VoteChoice.FAVOR] * 3, *[VoteChoice.AGAINST] * 2)
        )

        assert resolution.outcome == VoteOutcome.FAVOR
        assert resolution.unanimous is False
        assert (resolution.favor_count, resolution.against_count) == (3, 2)

    def test_all_favor_is_unanimous(self) -> None:
        resolution = CommitteeQuorum().resolve(_votes(*[VoteChoice.FAVOR] * 5))

        assert resolution.outcome == VoteOutcome.FAVOR
        assert resolution.unanimous is True
        assert resolution.total == 5

    def test_abstention_breaks_unanimity(self) -> None:
        resolution = CommitteeQuorum().resolve(
            _votes(VoteChoice.AGAINST, VoteChoice.AGAINST, VoteChoice.ABSTAIN)
        )

        assert resolution.outcome == VoteOutcome.AGAINST
        assert resolution.abstain_count == 1
        assert resolution.unanimous is False

    def test_merit_choices_count_on_their_side(self) -> None:
        resolution = CommitteeQuorum().resolve(
            _votes(VoteChoice.PROCEDENTE, VoteChoice.FAVOR, VoteChoice.IMPROCEDENTE)
        )

        assert resolution.favor_count == 2
        assert resolution.against_count == 1

    def test_only_abstentions_is_a_non_unanimous_tie(self) -> None:
        resolution = CommitteeQuorum().resolve(
            _votes(VoteChoice.ABSTAIN, VoteChoice.ABSTAIN)
        )

        assert resolution.outcome == VoteOutcome.TIE
        assert resolution.unanimous is False

    def test_no_votes_is_a_tie(self) -> None:
        resolution = CommitteeQuorum().resolve([])

        assert resolution.outcome == VoteOutcome.TIE
        assert resolution.total == 0


class TestTieBreakPolicies:
    """Tests for tie-break strategies."""

    def test_declare_tie_is_default(self) -> None:
        quorum = CommitteeQuorum()
        resolution = quorum.resolve(_votes(VoteChoice.FAVOR, VoteChoice.AGAINST))

        assert isinstance(quorum.tie_break_policy, DeclareTiePolicy)
        assert resolution.outcome == VoteOutcome.TIE

    def test_relator_vote_breaks_tie(self) -> None:
        relator = uuid7()
        votes = [
            _vote(relator, VoteChoice.AGAINST),
            _vote(uuid7(), VoteChoice.FAVOR),
        ]
        quorum = CommitteeQuorum(0.5, RapporteurCastingVotePolicy())

        assert quorum.resolve(votes, relator).outcome == VoteOutcome.AGAINST

    def test_abstaining_relator_leaves_tie(self) -> None:
        relator = uuid7()
        votes = [
            _vote(relator, VoteChoice.ABSTAIN),
            _vote(uuid7(), VoteChoice.FAVOR),
            _vote(uuid7(), VoteChoice.AGAINST),
        ]
        quorum = CommitteeQuorum(0.5, RapporteurCastingVotePolicy())

        assert quorum.resolve(votes, relator).outcome == VoteOutcome.TIE

    def test_absent_relator_leaves_tie(self) -> None:
        quorum = CommitteeQuorum(0.5, RapporteurCastingVotePolicy())
        votes = _votes(VoteChoice.FAVOR, VoteChoice.AGAINST)

        assert quorum.resolve(votes, uuid7()).outcome == VoteOutcome.TIE
        assert quorum.resolve(votes, None).outcome == VoteOutcome.TIE

    def test_policy_lookup_by_name(self) -> None:
        assert isinstance(tie_break_policy_for("declare_tie"), DeclareTiePolicy)
        assert isinstance(
            tie_break_policy_for("rapporteur_casting_vote"),
            RapporteurCastingVotePolicy,
        )

    def test_unknown_policy_raises(self) -> None:
        with pytest.raises(ValueError) as exc_info:
            tie_break_policy_for("coin_flip")

        assert "coin_flip" in str(exc_info.value)

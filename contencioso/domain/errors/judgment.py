"""Collegiate judgment errors (quorum and voting)."""

from __future__ import annotations

from uuid import UUID

from contencioso.domain.exceptions import AdjudicationError


class JudgmentError(AdjudicationError):
    """Base class for judgment voting errors."""

    pass


class QuorumNotMetError(JudgmentError):
    """Raised when a decision is attempted without quorum.

    The judgment stays IN_PROGRESS; the caller may solicit more votes.

    Attributes:
        judgment_id: ID of the judgment process.
        votes_cast: Number of votes cast so far.
        votes_required: Votes needed under the configured fraction.
        active_members: Active roster size at decision time.
    """

    def __init__(
        self,
        judgment_id: UUID,
        votes_cast: int,
        votes_required: int,
        active_members: int,
        detail: str | None = None,
    ) -> None:
        """Initialize QuorumNotMetError.

        Args:
            judgment_id: ID of the judgment process.
            votes_cast: Votes cast so far.
            votes_required: Votes needed.
            active_members: Active roster size.
            detail: Optional extra explanation.
        """
        self.judgment_id = judgment_id
        self.votes_cast = votes_cast
        self.votes_required = votes_required
        self.active_members = active_members

        message = (
            f"quorum not met: {votes_cast}/{active_members} members voted "
            f"({votes_required} required) in judgment {judgment_id}"
        )
        if detail:
            message = f"{message}. {detail}"
        super().__init__(message)


class DuplicateVoteError(JudgmentError):
    """Raised when a member votes twice in the same judgment.

    The existing vote is preserved untouched.

    Attributes:
        judgment_id: ID of the judgment process.
        member_id: ID of the committee member.
    """

    def __init__(self, judgment_id: UUID, member_id: UUID) -> None:
        """Initialize DuplicateVoteError.

        Args:
            judgment_id: ID of the judgment process.
            member_id: ID of the member who already voted.
        """
        self.judgment_id = judgment_id
        self.member_id = member_id
        super().__init__(
            f"Member {member_id} has already voted in judgment {judgment_id}"
        )


class NotCommitteeMemberError(JudgmentError):
    """Raised when someone outside the active roster tries to vote.

    Attributes:
        judgment_id: ID of the judgment process.
        member_id: ID of the rejected voter.
        committee_id: Committee whose roster was checked.
    """

    def __init__(self, judgment_id: UUID, member_id: UUID, committee_id: UUID) -> None:
        """Initialize NotCommitteeMemberError.

        Args:
            judgment_id: ID of the judgment process.
            member_id: ID of the rejected voter.
            committee_id: Committee whose roster was checked.
        """
        self.judgment_id = judgment_id
        self.member_id = member_id
        self.committee_id = committee_id
        super().__init__(
            f"Member {member_id} is not an active member of committee "
            f"{committee_id} and cannot vote in judgment {judgment_id}"
        )


class UnresolvedTieError(JudgmentError):
    """Raised when a decision is attempted on a tie the policy left unbroken.

    The judgment stays IN_PROGRESS; the committee must vote again.

    Attributes:
        judgment_id: ID of the judgment process.
        favor_count: Votes on the favor side.
        against_count: Votes on the against side.
    """

    def __init__(self, judgment_id: UUID, favor_count: int, against_count: int) -> None:
        self.judgment_id = judgment_id
        self.favor_count = favor_count
        self.against_count = against_count
        super().__init__(
            f"judgment {judgment_id} is tied at {favor_count}-{against_count} "
            "and the tie-break policy did not resolve it"
        )

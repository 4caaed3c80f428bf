"""Domain errors for the adjudication engine.

All exceptions inherit from AdjudicationError.
"""

from contencioso.domain.errors.concurrent_modification import (
    ConcurrentModificationError,
)
from contencioso.domain.errors.judgment import (
    DuplicateVoteError,
    JudgmentError,
    NotCommitteeMemberError,
    QuorumNotMetError,
    UnresolvedTieError,
)
from contencioso.domain.errors.not_found import (
    AppealNotFoundError,
    CaseNotFoundError,
    CommitteeNotFoundError,
    EntityNotFoundError,
    JudgmentNotFoundError,
)
from contencioso.domain.errors.workflow import (
    CaseValidationError,
    DeadlineExpiredError,
    PreconditionViolationError,
)

__all__: list[str] = [
    "AppealNotFoundError",
    "CaseNotFoundError",
    "CaseValidationError",
    "CommitteeNotFoundError",
    "ConcurrentModificationError",
    "DeadlineExpiredError",
    "DuplicateVoteError",
    "EntityNotFoundError",
    "JudgmentError",
    "JudgmentNotFoundError",
    "NotCommitteeMemberError",
    "PreconditionViolationError",
    "QuorumNotMetError",
    "UnresolvedTieError",
]

"""Unit tests for adjudication domain errors."""

from datetime import datetime, timezone

import pytest
from uuid6 import uuid7

from contencioso.domain.errors import (
    AppealNotFoundError,
    CaseNotFoundError,
    CaseValidationError,
    ConcurrentModificationError,
    DeadlineExpiredError,
    DuplicateVoteError,
    JudgmentError,
    NotCommitteeMemberError,
    PreconditionViolationError,
    QuorumNotMetError,
)
from contencioso.domain.errors.workflow import require_text
from contencioso.domain.exceptions import AdjudicationError
from contencioso.domain.models.case_record import CaseStatus


class TestErrorHierarchy:
    """All domain errors derive from AdjudicationError."""

    @pytest.mark.parametrize(
        "error_class",
        [
            CaseValidationError,
            ConcurrentModificationError,
            DeadlineExpiredError,
            PreconditionViolationError,
            QuorumNotMetError,
            CaseNotFoundError,
        ],
    )
    def test_inherits_from_adjudication_error(self, error_class: type) -> None:
        assert issubclass(error_class, AdjudicationError)

    def test_voting_errors_share_base(self) -> None:
        assert issubclass(DuplicateVoteError, JudgmentError)
        assert issubclass(NotCommitteeMemberError, JudgmentError)


class TestPreconditionViolationError:
    """Tests for PreconditionViolationError."""

    def test_message_names_states(self) -> None:
        case_id = uuid7()
        error = PreconditionViolationError(
            entity_id=case_id,
            current_state=CaseStatus.ARCHIVED,
            expected_states=[CaseStatus.RECEIVED, CaseStatus.UNDER_REVIEW],
            operation="archive",
        )

        assert str(case_id) in str(error)
        assert "state is ARCHIVED" in str(error)
        assert "RECEIVED, UNDER_REVIEW" in str(error)
        assert error.expected_states == (CaseStatus.RECEIVED, CaseStatus.UNDER_REVIEW)

    def test_detail_is_appended(self) -> None:
        error = PreconditionViolationError(
            entity_id=uuid7(),
            current_state=CaseStatus.JUDGED,
            expected_states=[CaseStatus.JUDGED],
            operation="enter appeal for",
            detail="first-instance judgment is not appealable",
        )

        assert str(error).endswith("first-instance judgment is not appealable")


class TestDeadlineExpiredError:
    """Tests for DeadlineExpiredError."""

    def test_attributes_and_message(self) -> None:
        deadline = datetime(2024, 3, 22, 9, 0, tzinfo=timezone.utc)
        attempted = datetime(2024, 3, 25, 9, 0, tzinfo=timezone.utc)
        error = DeadlineExpiredError(uuid7(), "defense", deadline, attempted)

        assert error.deadline_name == "defense"
        assert error.deadline == deadline
        assert "2024-03-22T09:00:00+00:00" in str(error)


class TestQuorumNotMetError:
    """Tests for QuorumNotMetError."""

    def test_message_contains_counts(self) -> None:
        judgment_id = uuid7()
        error = QuorumNotMetError(
            judgment_id, votes_cast=2, votes_required=3, active_members=5
        )

        assert str(error) == (
            f"quorum not met: 2/5 members voted (3 required) in judgment {judgment_id}"
        )

    def test_detail_is_appended(self) -> None:
        error = QuorumNotMetError(
            uuid7(), 0, 3, 5, detail="at least one vote is required"
        )

        assert str(error).endswith("at least one vote is required")


class TestMiscErrors:
    """Tests for validation, concurrency and lookup errors."""

    def test_case_validation_error(self) -> None:
        error = CaseValidationError("defense_text", "must not be blank")

        assert error.field == "defense_text"
        assert str(error) == "Invalid defense_text: must not be blank"

    def test_concurrent_modification_for_new_record(self) -> None:
        error = ConcurrentModificationError(uuid7(), None, 3)

        assert error.expected_version is None
        assert "expected version None, found 3" in str(error)

    def test_not_found_names_entity(self) -> None:
        appeal_id = uuid7()

        assert str(AppealNotFoundError(appeal_id)) == f"Appeal {appeal_id} not found"

    def test_require_text_strips(self) -> None:
        assert require_text("reason", "  late filing  ") == "late filing"

    @pytest.mark.parametrize("value", [None, "", "   \n"])
    def test_require_text_rejects_blank(self, value: str | None) -> None:
        with pytest.raises(CaseValidationError):
            require_text("reason", value)

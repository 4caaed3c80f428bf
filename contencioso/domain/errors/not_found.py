"""Lookup errors raised by the repository-backed facade."""

from __future__ import annotations

from uuid import UUID

from contencioso.domain.exceptions import AdjudicationError


class EntityNotFoundError(AdjudicationError):
    """Base class for missing aggregates."""

    entity_name = "Entity"

    def __init__(self, entity_id: UUID) -> None:
        self.entity_id = entity_id
        super().__init__(f"{self.entity_name} {entity_id} not found")


class CaseNotFoundError(EntityNotFoundError):
    """Raised when a case record does not exist."""

    entity_name = "Case"


class JudgmentNotFoundError(EntityNotFoundError):
    """Raised when a judgment process does not exist."""

    entity_name = "Judgment"


class AppealNotFoundError(EntityNotFoundError):
    """Raised when an appeal process does not exist."""

    entity_name = "Appeal"


class CommitteeNotFoundError(EntityNotFoundError):
    """Raised when the roster knows no committee with the given ID."""

    entity_name = "Committee"

"""Adjudication statutory windows and collegiate voting configuration.

This module defines the deadlines and quorum rules of the electoral dispute
process, with environment variable overrides for councils whose internal
regulations differ from the defaults.

Environment Variables:
- DEFENSE_DEADLINE_BUSINESS_DAYS: Defense window (default: 15, min: 1, max: 90)
- EVIDENCE_PERIOD_CALENDAR_DAYS: Evidence period (default: 30, min: 1, max: 180)
- CLOSING_ARGUMENTS_CALENDAR_DAYS: Closing arguments window (default: 10, min: 1, max: 90)
- APPEAL_WINDOW_BUSINESS_DAYS: Appeal window (default: 15, min: 1, max: 90)
- COUNTER_ARGUMENT_BUSINESS_DAYS: Counter-argument window (default: 5, min: 1, max: 90)
- DENUNCIA_RELATOR_ANALYSIS_DAYS: Relator analysis window for complaints (default: 10, min: 1, max: 90)
- IMPUGNACAO_RELATOR_ANALYSIS_DAYS: Relator analysis window for challenges (default: 5, min: 1, max: 90)
- DENUNCIA_QUORUM_FRACTION: Quorum fraction for complaints (default: 0.6, min: 0.5, max: 1.0)
- IMPUGNACAO_QUORUM_FRACTION: Quorum fraction for challenges (default: 0.5, min: 0.5, max: 1.0)
- TIE_BREAK_POLICY: declare_tie | rapporteur_casting_vote (default: declare_tie)
- ADJUDICATION_HOLIDAYS: Comma-separated ISO dates excluded from business days
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import date
from fractions import Fraction

from contencioso.domain.models.case_record import CaseKind
from contencioso.domain.services.committee_quorum import TIE_BREAK_POLICIES


def _get_int_env(key: str, default: int) -> int:
    """Get integer environment variable with default.

    Args:
        key: Environment variable name.
        default: Default value if not set or invalid.

    Returns:
        Parsed integer value or default.
    """
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_float_env(key: str, default: float) -> float:
    """Get float environment variable with default (invalid -> default)."""
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _get_dates_env(key: str) -> tuple[date, ...]:
    """Parse a comma-separated list of ISO dates, skipping malformed items."""
    value = os.environ.get(key)
    if not value:
        return ()
    parsed: list[date] = []
    for item in value.split(","):
        try:
            parsed.append(date.fromisoformat(item.strip()))
        except ValueError:
            continue
    return tuple(sorted(set(parsed)))


def _clamp(value: int | float, low: int | float, high: int | float) -> int | float:
    return max(low, min(value, high))


# =============================================================================
# Statutory windows
# =============================================================================

DEFAULT_DEFENSE_DEADLINE_BUSINESS_DAYS = 15
DEFAULT_EVIDENCE_PERIOD_CALENDAR_DAYS = 30
DEFAULT_CLOSING_ARGUMENTS_CALENDAR_DAYS = 10
DEFAULT_APPEAL_WINDOW_BUSINESS_DAYS = 15
DEFAULT_COUNTER_ARGUMENT_BUSINESS_DAYS = 5

# Calendar days the relator has to analyse a case, per flow
DEFAULT_DENUNCIA_RELATOR_ANALYSIS_DAYS = 10
DEFAULT_IMPUGNACAO_RELATOR_ANALYSIS_DAYS = 5

MIN_WINDOW_DAYS = 1
MAX_WINDOW_DAYS = 90
MAX_EVIDENCE_PERIOD_DAYS = 180

# =============================================================================
# Quorum
# =============================================================================

DEFAULT_DENUNCIA_QUORUM_FRACTION = 0.6
DEFAULT_IMPUGNACAO_QUORUM_FRACTION = 0.5

# A quorum below a simple majority of the roster is not a collegiate decision
MIN_QUORUM_FRACTION = 0.5
MAX_QUORUM_FRACTION = 1.0

DEFAULT_TIE_BREAK_POLICY = "declare_tie"


@dataclass(frozen=True)
class AdjudicationConfig:
    """Configuration for statutory deadlines and committee voting.

    Attributes:
        defense_deadline_business_days: Business days for the defense.
        evidence_period_calendar_days: Calendar days of evidence period,
            counted from defense receipt.
        closing_arguments_calendar_days: Calendar days for closing
            arguments, counted from the hearing.
        appeal_window_business_days: Business days to appeal a decision.
        counter_argument_business_days: Business days for the counter-argument.
        denuncia_relator_analysis_days: Calendar days for the relator of a
            complaint, counted from designation.
        impugnacao_relator_analysis_days: Same for challenges.
        denuncia_quorum_fraction: Quorum fraction for complaints.
        impugnacao_quorum_fraction: Quorum fraction for challenges.
        tie_break_policy: Name of the tie-break policy.
        holidays: Dates excluded from business-day counting.
    """

    defense_deadline_business_days: int = DEFAULT_DEFENSE_DEADLINE_BUSINESS_DAYS
    evidence_period_calendar_days: int = DEFAULT_EVIDENCE_PERIOD_CALENDAR_DAYS
    closing_arguments_calendar_days: int = DEFAULT_CLOSING_ARGUMENTS_CALENDAR_DAYS
    appeal_window_business_days: int = DEFAULT_APPEAL_WINDOW_BUSINESS_DAYS
    counter_argument_business_days: int = DEFAULT_COUNTER_ARGUMENT_BUSINESS_DAYS
    denuncia_relator_analysis_days: int = DEFAULT_DENUNCIA_RELATOR_ANALYSIS_DAYS
    impugnacao_relator_analysis_days: int = DEFAULT_IMPUGNACAO_RELATOR_ANALYSIS_DAYS
    denuncia_quorum_fraction: float = DEFAULT_DENUNCIA_QUORUM_FRACTION
    impugnacao_quorum_fraction: float = DEFAULT_IMPUGNACAO_QUORUM_FRACTION
    tie_break_policy: str = DEFAULT_TIE_BREAK_POLICY
    holidays: tuple[date, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        """Validate configuration values."""
        windows = {
            "defense_deadline_business_days": (
                self.defense_deadline_business_days,
                MAX_WINDOW_DAYS,
            ),
            "evidence_period_calendar_days": (
                self.evidence_period_calendar_days,
                MAX_EVIDENCE_PERIOD_DAYS,
            ),
            "closing_arguments_calendar_days": (
                self.closing_arguments_calendar_days,
                MAX_WINDOW_DAYS,
            ),
            "appeal_window_business_days": (
                self.appeal_window_business_days,
                MAX_WINDOW_DAYS,
            ),
            "counter_argument_business_days": (
                self.counter_argument_business_days,
                MAX_WINDOW_DAYS,
            ),
            "denuncia_relator_analysis_days": (
                self.denuncia_relator_analysis_days,
                MAX_WINDOW_DAYS,
            ),
            "impugnacao_relator_analysis_days": (
                self.impugnacao_relator_analysis_days,
                MAX_WINDOW_DAYS,
            ),
        }
        for name, (value, maximum) in windows.items():
            if not MIN_WINDOW_DAYS <= value <= maximum:
                raise ValueError(
                    f"{name} must be between {MIN_WINDOW_DAYS} "
                    f"and {maximum}, got {value}"
                )
        for name, fraction in (
            ("denuncia_quorum_fraction", self.denuncia_quorum_fraction),
            ("impugnacao_quorum_fraction", self.impugnacao_quorum_fraction),
        ):
            if not MIN_QUORUM_FRACTION <= fraction <= MAX_QUORUM_FRACTION:
                raise ValueError(
                    f"{name} must be between {MIN_QUORUM_FRACTION} "
                    f"and {MAX_QUORUM_FRACTION}, got {fraction}"
                )
        if self.tie_break_policy not in TIE_BREAK_POLICIES:
            raise ValueError(
                f"tie_break_policy must be one of {sorted(TIE_BREAK_POLICIES)}, "
                f"got {self.tie_break_policy!r}"
            )

    def quorum_fraction_for(self, kind: CaseKind) -> Fraction:
        """Exact quorum fraction for the flow of ``kind``."""
        if kind == CaseKind.DENUNCIA:
            return Fraction(str(self.denuncia_quorum_fraction))
        return Fraction(str(self.impugnacao_quorum_fraction))

    def relator_analysis_days_for(self, kind: CaseKind) -> int:
        """Calendar days the relator of a ``kind`` case has for analysis."""
        if kind == CaseKind.DENUNCIA:
            return self.denuncia_relator_analysis_days
        return self.impugnacao_relator_analysis_days

    @classmethod
    def from_environment(cls) -> AdjudicationConfig:
        """Create config from environment variables with defaults.

        Unparseable values fall back to the default; out-of-range values
        are clamped into range.

        Returns:
            AdjudicationConfig with values from environment or defaults.
        """
        defense = _clamp(
            _get_int_env(
                "DEFENSE_DEADLINE_BUSINESS_DAYS", DEFAULT_DEFENSE_DEADLINE_BUSINESS_DAYS
            ),
            MIN_WINDOW_DAYS,
            MAX_WINDOW_DAYS,
        )
        evidence = _clamp(
            _get_int_env(
                "EVIDENCE_PERIOD_CALENDAR_DAYS", DEFAULT_EVIDENCE_PERIOD_CALENDAR_DAYS
            ),
            MIN_WINDOW_DAYS,
            MAX_EVIDENCE_PERIOD_DAYS,
        )
        closing = _clamp(
            _get_int_env(
                "CLOSING_ARGUMENTS_CALENDAR_DAYS",
                DEFAULT_CLOSING_ARGUMENTS_CALENDAR_DAYS,
            ),
            MIN_WINDOW_DAYS,
            MAX_WINDOW_DAYS,
        )
        appeal = _clamp(
            _get_int_env(
                "APPEAL_WINDOW_BUSINESS_DAYS", DEFAULT_APPEAL_WINDOW_BUSINESS_DAYS
            ),
            MIN_WINDOW_DAYS,
            MAX_WINDOW_DAYS,
        )
        counter = _clamp(
            _get_int_env(
                "COUNTER_ARGUMENT_BUSINESS_DAYS", DEFAULT_COUNTER_ARGUMENT_BUSINESS_DAYS
            ),
            MIN_WINDOW_DAYS,
            MAX_WINDOW_DAYS,
        )
        denuncia_analysis = _clamp(
            _get_int_env(
                "DENUNCIA_RELATOR_ANALYSIS_DAYS", DEFAULT_DENUNCIA_RELATOR_ANALYSIS_DAYS
            ),
            MIN_WINDOW_DAYS,
            MAX_WINDOW_DAYS,
        )
        impugnacao_analysis = _clamp(
            _get_int_env(
                "IMPUGNACAO_RELATOR_ANALYSIS_DAYS",
                DEFAULT_IMPUGNACAO_RELATOR_ANALYSIS_DAYS,
            ),
            MIN_WINDOW_DAYS,
            MAX_WINDOW_DAYS,
        )
        denuncia_fraction = _clamp(
            _get_float_env("DENUNCIA_QUORUM_FRACTION", DEFAULT_DENUNCIA_QUORUM_FRACTION),
            MIN_QUORUM_FRACTION,
            MAX_QUORUM_FRACTION,
        )
        impugnacao_fraction = _clamp(
            _get_float_env(
                "IMPUGNACAO_QUORUM_FRACTION", DEFAULT_IMPUGNACAO_QUORUM_FRACTION
            ),
            MIN_QUORUM_FRACTION,
            MAX_QUORUM_FRACTION,
        )
        policy = os.environ.get("TIE_BREAK_POLICY", DEFAULT_TIE_BREAK_POLICY).strip()
        if policy not in TIE_BREAK_POLICIES:
            policy = DEFAULT_TIE_BREAK_POLICY

        return cls(
            defense_deadline_business_days=int(defense),
            evidence_period_calendar_days=int(evidence),
            closing_arguments_calendar_days=int(closing),
            appeal_window_business_days=int(appeal),
            counter_argument_business_days=int(counter),
            denuncia_relator_analysis_days=int(denuncia_analysis),
            impugnacao_relator_analysis_days=int(impugnacao_analysis),
            denuncia_quorum_fraction=float(denuncia_fraction),
            impugnacao_quorum_fraction=float(impugnacao_fraction),
            tie_break_policy=policy,
            holidays=_get_dates_env("ADJUDICATION_HOLIDAYS"),
        )


# Pre-defined configurations for common use cases

# Default production config
DEFAULT_ADJUDICATION_CONFIG = AdjudicationConfig()

# Casting-vote config for councils whose rules give the relator the tie-break
RAPPORTEUR_CASTING_VOTE_CONFIG = AdjudicationConfig(
    tie_break_policy="rapporteur_casting_vote",
)

# Shortest legal windows for fast-moving tests
TEST_ADJUDICATION_CONFIG = AdjudicationConfig(
    defense_deadline_business_days=MIN_WINDOW_DAYS,
    evidence_period_calendar_days=MIN_WINDOW_DAYS,
    closing_arguments_calendar_days=MIN_WINDOW_DAYS,
    appeal_window_business_days=MIN_WINDOW_DAYS,
    counter_argument_business_days=MIN_WINDOW_DAYS,
    denuncia_relator_analysis_days=MIN_WINDOW_DAYS,
    impugnacao_relator_analysis_days=MIN_WINDOW_DAYS,
)

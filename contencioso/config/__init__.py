"""Configuration module for the adjudication engine.

Available Configurations:
- AdjudicationConfig: Statutory windows, quorum fractions, tie-break policy
"""

from contencioso.config.adjudication_config import (
    DEFAULT_ADJUDICATION_CONFIG,
    RAPPORTEUR_CASTING_VOTE_CONFIG,
    TEST_ADJUDICATION_CONFIG,
    AdjudicationConfig,
)

__all__ = [
    "AdjudicationConfig",
    "DEFAULT_ADJUDICATION_CONFIG",
    "RAPPORTEUR_CASTING_VOTE_CONFIG",
    "TEST_ADJUDICATION_CONFIG",
]

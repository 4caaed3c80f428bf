"""
Contencioso - Electoral Dispute Adjudication Engine

Carries ethics complaints (denúncias) and candidacy/result challenges
(impugnações) of a professional council's internal elections through
admissibility review, defense, evidence, hearing, first-instance judgment,
appeal and second-instance judgment.

Core guarantees:
- Every transition advances exactly one step and is recorded in history
- Statutory deadlines are computed once, when their phase opens
- Collegiate decisions require quorum against the current roster
- Rejected operations leave state untouched
"""

__version__ = "0.1.0"
__all__ = ["__version__"]

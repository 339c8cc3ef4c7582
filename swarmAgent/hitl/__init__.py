"""Human-in-the-loop approval: risk labels, waiters and decisions."""

from .decisions import DecisionOutcome, apply_decision
from .gate import ApprovalGate, WaiterOutcome
from .risk import ApprovalDecision, RiskClassifier

__all__ = [
    "ApprovalDecision",
    "ApprovalGate",
    "DecisionOutcome",
    "RiskClassifier",
    "WaiterOutcome",
    "apply_decision",
]

"""Analyzer modules for ScamGuard."""

from .actions import RecommendedAction, recommended_actions
from .remote import HttpRemoteAnalyzer, RemoteAnalysisError, RemoteTextAnalysis
from .rules import Rule, RuleConfigError, compile_rule, compile_rules, validate_rules
from .scorer import OfflineScorer, ScoringResult, Thresholds, score

__all__ = [
    "RecommendedAction",
    "recommended_actions",
    "HttpRemoteAnalyzer",
    "RemoteAnalysisError",
    "RemoteTextAnalysis",
    "Rule",
    "RuleConfigError",
    "compile_rule",
    "compile_rules",
    "validate_rules",
    "OfflineScorer",
    "ScoringResult",
    "Thresholds",
    "score",
]

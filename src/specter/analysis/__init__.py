"""Analyzers over the knowledge graph and git history."""

from .cost import CostAnalysis, estimate_cost, estimate_cost_from
from .coupling import CoupledPair, CouplingResult, analyze_coupling
from .dead_code import DeadCodeResult, find_unused_exports
from .drift import DriftResult, DriftViolation, detect_drift
from .hotspots import Hotspot, HotspotsResult, analyze_hotspots
from .knowledge import FileKnowledge, KnowledgeResult, analyze_knowledge
from .report import Report, build_report
from .risk import RiskFactor, RiskScore, calculate_risk, score_changes

__all__ = [
    "CostAnalysis",
    "estimate_cost",
    "estimate_cost_from",
    "CoupledPair",
    "CouplingResult",
    "analyze_coupling",
    "DeadCodeResult",
    "find_unused_exports",
    "DriftResult",
    "DriftViolation",
    "detect_drift",
    "Hotspot",
    "HotspotsResult",
    "analyze_hotspots",
    "FileKnowledge",
    "KnowledgeResult",
    "analyze_knowledge",
    "Report",
    "build_report",
    "RiskFactor",
    "RiskScore",
    "calculate_risk",
    "score_changes",
]

"""layerguard: enforce layering and module isolation, and repair drift safely."""

from layerguard.graph.analyzer import AnalysisResult, AnalysisStats, analyze
from layerguard.graph.extractor import ExtractionError
from layerguard.graph.report import Report, Verdict, aggregate
from layerguard.graph.rule_engine import RuleKind, Severity, Violation
from layerguard.infrastructure.backup import BackupFailure
from layerguard.infrastructure.config import ArchitectureConfig, ConfigError, load_config
from layerguard.infrastructure.discovery import DiscoveryError
from layerguard.remediation.engine import RemediationEngine, RemediationReport
from layerguard.remediation.fixes import FixMode, FixState

__version__ = "0.4.0"

__all__ = [
    "AnalysisResult",
    "AnalysisStats",
    "ArchitectureConfig",
    "BackupFailure",
    "ConfigError",
    "DiscoveryError",
    "ExtractionError",
    "FixMode",
    "FixState",
    "RemediationEngine",
    "RemediationReport",
    "Report",
    "RuleKind",
    "Severity",
    "Verdict",
    "Violation",
    "__version__",
    "aggregate",
    "analyze",
    "load_config",
]

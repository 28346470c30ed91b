"""Guarded remediation: fix proposals, safety checks, backup-guarded apply."""

from layerguard.remediation.engine import RemediationEngine, RemediationReport, insert_statement
from layerguard.remediation.fixes import (
    CreateFile,
    Fix,
    FixMode,
    FixRecord,
    FixState,
    InsertReference,
    ReplaceContent,
    TemplateProvider,
)
from layerguard.remediation.proposals import propose_fixes
from layerguard.remediation.safety import SafetyDecision, check_fix_safety
from layerguard.remediation.templates import default_template

__all__ = [
    "CreateFile",
    "Fix",
    "FixMode",
    "FixRecord",
    "FixState",
    "InsertReference",
    "RemediationEngine",
    "RemediationReport",
    "ReplaceContent",
    "SafetyDecision",
    "TemplateProvider",
    "check_fix_safety",
    "default_template",
    "insert_statement",
    "propose_fixes",
]

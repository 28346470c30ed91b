"""Guarded remediation: safety-check fixes, back up, apply, roll back on regression."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from layerguard.graph.analyzer import AnalysisResult, analyze
from layerguard.graph.builder import relative_posix
from layerguard.graph.classifier import PathClassifier
from layerguard.graph.extractor import ExtractionError, import_block_end, read_source
from layerguard.infrastructure.backup import (
    BackupBundle,
    BackupFailure,
    RestoreResult,
    capture_bundle,
    latest_bundle,
    load_bundle,
    restore_bundle,
)
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
from layerguard.remediation.safety import check_fix_safety
from layerguard.remediation.templates import default_template

if TYPE_CHECKING:
    from collections.abc import Iterable

    from layerguard.graph.rule_engine import Violation
    from layerguard.infrastructure.config import ArchitectureConfig

logger = logging.getLogger(__name__)

Analyzer = Callable[["ArchitectureConfig"], AnalysisResult]


@dataclass
class RemediationReport:
    """Everything that happened to one batch of fixes."""

    mode: FixMode
    records: list[FixRecord] = field(default_factory=list)
    bundle: BackupBundle | None = None
    aborted: bool = False
    error: str | None = None
    pre_high: int | None = None
    post_high: int | None = None
    rolled_back: bool = False
    restore: RestoreResult | None = None

    def _with_state(self, state: FixState) -> list[FixRecord]:
        return [r for r in self.records if r.state is state]

    @property
    def applied(self) -> list[FixRecord]:
        return self._with_state(FixState.APPLIED)

    @property
    def rejected(self) -> list[FixRecord]:
        return self._with_state(FixState.REJECTED)

    @property
    def failed(self) -> list[FixRecord]:
        return self._with_state(FixState.FAILED)

    @property
    def accepted(self) -> list[FixRecord]:
        return [r for r in self.records if r.state in (FixState.SAFETY_CHECKED, FixState.APPLIED)]


def insert_statement(text: str, statement: str) -> str:
    """Insert *statement* on its own line after the leading import block."""
    offset = import_block_end(text)
    line = statement if statement.endswith("\n") else statement + "\n"
    if offset > 0 and not text[:offset].endswith("\n"):
        line = "\n" + line
    return text[:offset] + line + text[offset:]


class RemediationEngine:
    """Propose, safety-check and apply fixes for one project.

    The backup directory is explicit per engine, so several engines can
    run in one process without sharing state.
    """

    def __init__(
        self,
        config: ArchitectureConfig,
        *,
        backup_dir: Path | None = None,
        template_provider: TemplateProvider = default_template,
        reanalyze: bool = True,
        analyzer: Analyzer = analyze,
    ) -> None:
        self.config = config
        self.backup_dir = backup_dir if backup_dir is not None else config.resolve_backup_dir()
        self.template_provider = template_provider
        self.reanalyze = reanalyze
        self._analyze = analyzer

    # -- proposals ----------------------------------------------------------

    def propose(self, violations: Iterable[Violation]) -> list[Fix]:
        """Propose fixes for *violations* (including missing-artifact findings)."""
        return propose_fixes(violations, self.config)

    # -- safety -------------------------------------------------------------

    def _relative(self, path: Path) -> str | None:
        try:
            return relative_posix(path, self.config.project_root)
        except ValueError:
            return None

    def _current_text(self, relative: str, pending: dict[str, str | None]) -> str | None:
        if relative in pending:
            return pending[relative]
        path = self.config.project_root / relative
        if not path.exists():
            return None
        return read_source(path)

    def _post_text(self, fix: Fix, before: str | None, mode: FixMode) -> tuple[str | None, str | None]:
        """Return ``(post_text, rejection_reason)`` for *fix*."""
        if isinstance(fix, ReplaceContent):
            return fix.text, None
        if isinstance(fix, InsertReference):
            if before is None:
                return None, "file does not exist"
            return insert_statement(before, fix.statement), None
        if before is not None and mode is not FixMode.FORCE:
            return None, "file already exists (use force to overwrite)"
        return self.template_provider(fix.role, fix.context_name), None

    def check(
        self,
        fixes: Iterable[Fix],
        mode: FixMode = FixMode.DRY_RUN,
        *,
        baseline: AnalysisResult | None = None,
    ) -> list[FixRecord]:
        """Safety-check every fix without writing anything.

        Fixes to the same file stack: each one is simulated on top of the
        earlier accepted ones.
        """
        fixes = list(fixes)
        if baseline is None:
            baseline = self._analyze(self.config)

        created = [
            rel
            for fix in fixes
            if isinstance(fix, CreateFile) and (rel := self._relative(fix.path)) is not None
        ]
        classifier = PathClassifier(
            self.config, (f.relative_path for f in baseline.graph.files)
        ).with_known_files(created)

        pending: dict[str, str | None] = {}
        records: list[FixRecord] = []
        for fix in fixes:
            record = FixRecord(fix=fix)
            records.append(record)

            relative = self._relative(fix.path)
            if relative is None:
                record.transition(FixState.REJECTED, "path is outside the project root")
                continue
            try:
                before = self._current_text(relative, pending)
            except ExtractionError as exc:
                record.transition(FixState.REJECTED, str(exc))
                continue

            after, reason = self._post_text(fix, before, mode)
            if after is None:
                record.transition(FixState.REJECTED, reason)
                continue

            decision = check_fix_safety(relative, before, after, classifier, self.config)
            if not decision.safe:
                record.introduced = list(decision.introduced)
                record.transition(FixState.REJECTED, decision.reason)
                continue

            record.post_text = after
            record.transition(FixState.SAFETY_CHECKED)
            pending[relative] = after

        return records

    # -- apply --------------------------------------------------------------

    def run(
        self,
        fixes: Iterable[Fix],
        mode: FixMode = FixMode.DRY_RUN,
        *,
        baseline: AnalysisResult | None = None,
    ) -> RemediationReport:
        """Check *fixes* and, unless dry-run, apply the accepted ones.

        A single backup bundle is captured before the first write; if it
        cannot be captured nothing is written.  Writes are sequential; a
        write error fails that fix only.  After writing, the project is
        re-analysed and the bundle restored when the HIGH violation count
        grew beyond ``regression_factor`` times the pre-fix count.
        """
        if baseline is None:
            baseline = self._analyze(self.config)

        report = RemediationReport(mode=mode, pre_high=baseline.report.high_count)
        report.records = self.check(fixes, mode, baseline=baseline)

        accepted = [r for r in report.records if r.state is FixState.SAFETY_CHECKED]
        if mode is FixMode.DRY_RUN or not accepted:
            return report

        try:
            report.bundle = capture_bundle((r.fix.path for r in accepted), self.backup_dir)
        except BackupFailure as exc:
            logger.error("Backup failed, batch aborted: %s", exc)
            report.aborted = True
            report.error = str(exc)
            return report

        for record in accepted:
            self._write(record)

        if self.reanalyze and report.applied:
            self._check_regression(report)
        return report

    def _write(self, record: FixRecord) -> None:
        path = record.fix.path
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(record.post_text or "", encoding="utf-8")
        except OSError as exc:
            logger.warning("Failed to write %s: %s", path, exc)
            record.transition(FixState.FAILED, str(exc))
            return
        logger.info("Applied %s", path)
        record.transition(FixState.APPLIED)

    def _check_regression(self, report: RemediationReport) -> None:
        post = self._analyze(self.config)
        report.post_high = post.report.high_count
        pre_high = report.pre_high or 0
        if report.post_high > self.config.regression_factor * pre_high and report.bundle:
            logger.warning(
                "HIGH violations rose from %d to %d, rolling back",
                pre_high,
                report.post_high,
            )
            report.restore = restore_bundle(report.bundle)
            report.rolled_back = True

    # -- rollback -----------------------------------------------------------

    def rollback(self, bundle_path: Path | None = None) -> RestoreResult:
        """Restore *bundle_path*, or the newest bundle in the backup directory."""
        if bundle_path is None:
            bundle_path = latest_bundle(self.backup_dir)
            if bundle_path is None:
                msg = f"No backup bundle found in {self.backup_dir}"
                raise BackupFailure(msg)
        return restore_bundle(load_bundle(bundle_path))

"""Evaluation engine: run an ordered plan against an explicit memo table.

This module is intentionally app-agnostic and must not import `packbuild.*`.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

from targetkit.capabilities import capabilities_of
from targetkit.engine.recorder import (
    DefaultTargetRecorder,
    TargetRecorder,
    utc_now_iso8601,
    validate_recorder,
)
from targetkit.engine.report import BuildReport
from targetkit.errors import TargetEvaluationError, TargetExecutionError
from targetkit.resolver import EvaluationPlan
from targetkit.target_registry import TargetRegistry

AfterTargetHook = Callable[[str, Any, BuildReport], None]


class Evaluator:
    def __init__(
        self,
        registry: TargetRegistry,
        *,
        recorder: TargetRecorder | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._registry = registry
        self._recorder = recorder or DefaultTargetRecorder()
        validate_recorder(self._recorder)
        self._logger = logger or logging.getLogger(__name__)

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    @property
    def recorder(self) -> TargetRecorder:
        return self._recorder

    def run(
        self,
        plan: EvaluationPlan,
        *,
        after_target: AfterTargetHook | None = None,
        raise_on_error: bool = True,
        report: BuildReport | None = None,
    ) -> BuildReport:
        """Evaluate every target of `plan` in order, each exactly once.

        `after_target` is called with (name, result, report) right after a
        target is memoized; a `TargetExecutionError` raised from it aborts the
        remaining plan the same way an evaluation failure does.
        """

        report = report or BuildReport.for_plan(plan)
        memo = report.results

        for name in plan.order:
            if name in memo:
                continue

            target = self._registry.get(name)
            outcome = report.targets[name]
            deps = {dep: memo[dep] for dep in target.dependencies}

            self._recorder.on_target_start(
                self._logger,
                name,
                phase="evaluate",
                dependencies=list(target.dependencies),
                source=target.source,
                doc=target.doc,
            )
            started = time.monotonic()
            try:
                result = target.fn(deps)
            except Exception as exc:
                outcome.evaluate_seconds = time.monotonic() - started
                error = TargetEvaluationError(name, exc)
                self._fail(report, name, error, phase="evaluate")
                if raise_on_error:
                    raise error from exc
                return report

            outcome.evaluate_seconds = time.monotonic() - started
            memo[name] = result
            outcome.status = "evaluated"
            self._recorder.on_target_end(
                self._logger,
                {
                    "name": name,
                    "phase": "evaluate",
                    "result_type": type(result).__name__,
                    "capabilities": list(capabilities_of(result)),
                    "duration_seconds": outcome.evaluate_seconds,
                    "created_at": utc_now_iso8601(),
                },
            )

            if after_target is None:
                continue
            try:
                after_target(name, result, report)
            except TargetExecutionError as exc:
                self._fail(report, name, exc, phase="materialize")
                if raise_on_error:
                    raise
                return report

        return report

    def _fail(
        self,
        report: BuildReport,
        name: str,
        error: TargetExecutionError,
        *,
        phase: str,
    ) -> None:
        try:
            self._recorder.on_target_error(self._logger, name, error)
        except Exception:
            self._logger.exception("Target recorder failed during error handling for %s", name)

        outcome = report.targets[name]
        outcome.status = "failed"
        outcome.failed_phase = "materialize" if phase == "materialize" else "evaluate"
        cause = getattr(error, "cause", None)
        outcome.error = str(error)
        outcome.error_type = type(cause).__name__ if cause is not None else type(error).__name__
        report.error = error
        setattr(error, "report", report)

        self._skip_remaining(report, failed=name)

    def _skip_remaining(self, report: BuildReport, *, failed: str) -> None:
        blocked: set[str] = {failed}
        for name in report.plan.order:
            outcome = report.targets[name]
            if outcome.status != "queued":
                continue
            target = self._registry.get(name)
            outcome.status = "skipped"
            if any(dep in blocked for dep in target.dependencies):
                blocked.add(name)
                outcome.blocked_by = failed
                self._logger.warning("Skipping %s: depends on failed target %s", name, failed)
            else:
                self._logger.warning("Skipping %s: build aborted after %s failed", name, failed)

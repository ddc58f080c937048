from __future__ import annotations

import logging
import os
import time
from pathlib import Path
from typing import Any, Sequence

from targetkit.capabilities import is_runnable
from targetkit.engine.evaluator import Evaluator
from targetkit.engine.materializer import Materializer
from targetkit.engine.recorder import TargetRecorder, utc_now_iso8601
from targetkit.engine.report import BuildReport
from targetkit.errors import NotRunnableError
from targetkit.resolver import resolve
from targetkit.target_registry import TargetRegistry


class BuildRunner:
    """Resolve, evaluate and materialize targets for one invocation.

    Configuration errors propagate out of `build`/`evaluate` before any
    target runs. Execution errors are captured on the returned report;
    artifacts already written are left in place.
    """

    def __init__(
        self,
        registry: TargetRegistry,
        *,
        recorder: TargetRecorder | None = None,
        materializer: Materializer | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._registry = registry
        self._logger = logger or logging.getLogger(__name__)
        self._evaluator = Evaluator(registry, recorder=recorder, logger=self._logger)
        self._materializer = materializer or Materializer(logger=self._logger)

    @property
    def registry(self) -> TargetRegistry:
        return self._registry

    def evaluate(self, requested: Sequence[str] = ()) -> BuildReport:
        plan = resolve(self._registry, requested)
        self._logger.info("Evaluation plan: %s", ", ".join(plan.order))
        return self._evaluator.run(plan, raise_on_error=False)

    def build(
        self,
        requested: Sequence[str] = (),
        output_root: str | os.PathLike[str] = "build",
    ) -> BuildReport:
        plan = resolve(self._registry, requested)
        root = Path(output_root)
        report = BuildReport.for_plan(plan, output_root=str(root))

        label = "defaults" if plan.from_defaults else "requested"
        self._logger.info(
            "Build plan (%s=%s): %s", label, ", ".join(plan.roots), ", ".join(plan.order)
        )

        def materialize_root(name: str, result: Any, current: BuildReport) -> None:
            if not plan.is_root(name):
                return
            target = self._registry.get(name)
            self._evaluator.recorder.on_target_start(
                self._logger,
                name,
                phase="materialize",
                source=target.source,
                doc=target.doc,
            )
            outcome = current.targets[name]
            started = time.monotonic()
            try:
                written = self._materializer.materialize(name, result, root, requested=True)
            finally:
                outcome.materialize_seconds = time.monotonic() - started
            outcome.outputs = [str(path) for path in written]
            outcome.status = "materialized"
            self._evaluator.recorder.on_target_end(
                self._logger,
                {
                    "name": name,
                    "phase": "materialize",
                    "outputs": outcome.outputs,
                    "duration_seconds": outcome.materialize_seconds,
                    "created_at": utc_now_iso8601(),
                },
            )

        self._evaluator.run(plan, after_target=materialize_root, raise_on_error=False, report=report)

        counts = report.summary()
        status = "succeeded" if report.ok else "failed"
        self._logger.info(
            "Build %s (%s)",
            status,
            ", ".join(f"{key}={value}" for key, value in sorted(counts.items())),
        )
        return report

    def run(self, name: str, args: Sequence[str] = ()) -> int:
        """Evaluate `name` and execute its result as a program."""

        report = self.evaluate([name])
        report.raise_for_error()
        result = report.result(name)
        if not is_runnable(result):
            raise NotRunnableError(name, result)
        self._logger.info("Running %s %s", name, " ".join(args))
        return int(result.run(list(args)))

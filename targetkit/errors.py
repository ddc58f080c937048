"""Error taxonomy for target resolution, evaluation and materialization.

Configuration-time errors (`TargetConfigError`) are raised before any target
function runs. Execution-time errors (`TargetExecutionError`) are raised while
a plan is being evaluated or materialized and always name the target involved.
"""

from __future__ import annotations

from typing import Sequence


class TargetKitError(Exception):
    """Base class for every error raised by `targetkit`."""

    target: str | None = None


class TargetConfigError(TargetKitError, ValueError):
    """The target configuration is invalid; nothing was evaluated."""


class TargetExecutionError(TargetKitError, RuntimeError):
    """A target failed while its plan was being executed."""


class UnknownTargetError(TargetConfigError):
    def __init__(
        self,
        target: str,
        *,
        referenced_by: str | None = None,
        suggestions: Sequence[str] = (),
    ) -> None:
        self.target = target
        self.referenced_by = referenced_by
        self.suggestions = tuple(suggestions)

        message = f"Unknown target: {target}"
        if referenced_by:
            message += f" (dependency of {referenced_by})"
        if self.suggestions:
            message += f" (did you mean: {', '.join(self.suggestions)})"
        super().__init__(message)


class DuplicateTargetError(TargetConfigError):
    def __init__(self, target: str) -> None:
        self.target = target
        super().__init__(f"Duplicate target: {target}")


class CyclicDependencyError(TargetConfigError):
    """A target was revisited while it was still being expanded.

    `cycle` lists the participating targets with the first one repeated at
    the end, e.g. ``("a", "b", "a")``.
    """

    def __init__(self, cycle: Sequence[str]) -> None:
        self.cycle = tuple(cycle)
        self.target = self.cycle[0] if self.cycle else None
        super().__init__("Cyclic dependency: " + " -> ".join(self.cycle))


class NoDefaultTargetsError(TargetConfigError):
    def __init__(self) -> None:
        super().__init__("No targets requested and no default targets are registered")


class TargetEvaluationError(TargetExecutionError):
    def __init__(self, target: str, cause: BaseException) -> None:
        self.target = target
        self.cause = cause
        super().__init__(f"Target {target} failed to evaluate: {cause}")


class NotBuildableError(TargetExecutionError):
    def __init__(self, target: str, result: object) -> None:
        self.target = target
        self.result_type = type(result).__name__
        super().__init__(
            f"Target {target} does not produce a buildable result (type={self.result_type})"
        )


class NotRunnableError(TargetExecutionError):
    def __init__(self, target: str, result: object) -> None:
        self.target = target
        self.result_type = type(result).__name__
        super().__init__(
            f"Target {target} does not produce a runnable result (type={self.result_type})"
        )


class MaterializationError(TargetExecutionError):
    def __init__(self, target: str, relative_path: str, cause: BaseException) -> None:
        self.target = target
        self.relative_path = relative_path
        self.cause = cause
        location = relative_path or "."
        super().__init__(f"Target {target} failed to materialize {location}: {cause}")


class BuildActionError(RuntimeError):
    """Raised by a result's build action when it cannot produce its artifacts."""

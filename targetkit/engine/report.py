from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, TypeAlias

from targetkit.errors import TargetExecutionError
from targetkit.resolver import EvaluationPlan

TargetStatus: TypeAlias = Literal["queued", "evaluated", "materialized", "failed", "skipped"]
TargetPhase: TypeAlias = Literal["evaluate", "materialize"]

COMPLETED_STATUSES: frozenset[str] = frozenset({"evaluated", "materialized"})


@dataclass
class TargetOutcome:
    name: str
    requested: bool = False
    status: TargetStatus = "queued"
    failed_phase: TargetPhase | None = None
    error: str | None = None
    error_type: str | None = None
    blocked_by: str | None = None
    outputs: list[str] = field(default_factory=list)
    evaluate_seconds: float = 0.0
    materialize_seconds: float = 0.0

    @property
    def completed(self) -> bool:
        return self.status in COMPLETED_STATUSES

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "name": self.name,
            "requested": self.requested,
            "status": self.status,
            "evaluate_seconds": round(self.evaluate_seconds, 6),
            "materialize_seconds": round(self.materialize_seconds, 6),
            "outputs": list(self.outputs),
        }
        if self.failed_phase:
            payload["failed_phase"] = self.failed_phase
        if self.error:
            payload["error"] = self.error
            payload["error_type"] = self.error_type
        if self.blocked_by:
            payload["blocked_by"] = self.blocked_by
        return payload


@dataclass
class BuildReport:
    """Per-target breakdown of one invocation plus the memoized results."""

    plan: EvaluationPlan
    targets: dict[str, TargetOutcome]
    results: dict[str, Any] = field(default_factory=dict)
    output_root: str | None = None
    error: TargetExecutionError | None = None

    @classmethod
    def for_plan(cls, plan: EvaluationPlan, *, output_root: str | None = None) -> "BuildReport":
        targets = {
            name: TargetOutcome(name=name, requested=plan.is_root(name)) for name in plan.order
        }
        return cls(plan=plan, targets=targets, output_root=output_root)

    @property
    def ok(self) -> bool:
        return self.error is None and all(outcome.completed for outcome in self.targets.values())

    def outcome(self, name: str) -> TargetOutcome:
        return self.targets[name]

    def result(self, name: str) -> Any:
        return self.results[name]

    def names_with_status(self, status: TargetStatus) -> tuple[str, ...]:
        return tuple(name for name in self.plan.order if self.targets[name].status == status)

    def raise_for_error(self) -> None:
        if self.error is not None:
            raise self.error

    def summary(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for outcome in self.targets.values():
            counts[outcome.status] = counts.get(outcome.status, 0) + 1
        return counts

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "ok": self.ok,
            "roots": list(self.plan.roots),
            "from_defaults": self.plan.from_defaults,
            "order": list(self.plan.order),
            "summary": self.summary(),
            "targets": [self.targets[name].to_dict() for name in self.plan.order],
        }
        if self.output_root:
            payload["output_root"] = self.output_root
        if self.error is not None:
            payload["error"] = {
                "type": type(self.error).__name__,
                "target": self.error.target,
                "message": str(self.error),
            }
        return payload

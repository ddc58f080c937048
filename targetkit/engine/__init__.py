"""Engine primitives for evaluating plans and materializing results."""

from targetkit.engine.build import BuildRunner
from targetkit.engine.evaluator import AfterTargetHook, Evaluator
from targetkit.engine.materializer import Materializer, normalize_relative_path
from targetkit.engine.recorder import (
    DefaultTargetRecorder,
    NullTargetRecorder,
    TargetRecorder,
    utc_now_iso8601,
)
from targetkit.engine.report import BuildReport, TargetOutcome, TargetPhase, TargetStatus

__all__ = [
    "AfterTargetHook",
    "BuildReport",
    "BuildRunner",
    "DefaultTargetRecorder",
    "Evaluator",
    "Materializer",
    "NullTargetRecorder",
    "TargetOutcome",
    "TargetPhase",
    "TargetRecorder",
    "TargetStatus",
    "normalize_relative_path",
    "utc_now_iso8601",
]

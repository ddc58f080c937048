"""Reusable target graph kernel (registry, resolver, evaluation engine, materializer).

This package is intentionally independent of `packbuild.*`. Domain payloads
(manifests, executables, resource layouts) and configuration conventions
live in the consuming application.
"""

from targetkit.capabilities import (
    Buildable,
    Composite,
    FileContent,
    Runnable,
    capabilities_of,
    is_buildable,
    is_composite,
    is_runnable,
)
from targetkit.engine import (
    BuildReport,
    BuildRunner,
    DefaultTargetRecorder,
    Evaluator,
    Materializer,
    NullTargetRecorder,
    TargetOutcome,
    TargetRecorder,
)
from targetkit.errors import (
    BuildActionError,
    CyclicDependencyError,
    DuplicateTargetError,
    MaterializationError,
    NoDefaultTargetsError,
    NotBuildableError,
    NotRunnableError,
    TargetConfigError,
    TargetEvaluationError,
    TargetExecutionError,
    TargetKitError,
    UnknownTargetError,
)
from targetkit.resolver import EvaluationPlan, resolve
from targetkit.target_registry import TargetRegistry
from targetkit.target_types import Target, TargetFunction

__all__ = [
    "Buildable",
    "BuildActionError",
    "BuildReport",
    "BuildRunner",
    "Composite",
    "CyclicDependencyError",
    "DefaultTargetRecorder",
    "DuplicateTargetError",
    "EvaluationPlan",
    "Evaluator",
    "FileContent",
    "MaterializationError",
    "Materializer",
    "NoDefaultTargetsError",
    "NotBuildableError",
    "NotRunnableError",
    "NullTargetRecorder",
    "Runnable",
    "Target",
    "TargetConfigError",
    "TargetEvaluationError",
    "TargetExecutionError",
    "TargetFunction",
    "TargetKitError",
    "TargetOutcome",
    "TargetRecorder",
    "TargetRegistry",
    "UnknownTargetError",
    "capabilities_of",
    "is_buildable",
    "is_composite",
    "is_runnable",
    "resolve",
]

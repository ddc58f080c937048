"""Load target definitions from a Python file into an explicit registry.

A targets file is plain Python exposing a hook::

    def register_targets(registry):
        @registry.target("dist")
        def dist(deps):
            ...

The hook may also accept the parsed `BuildConfig` as a second argument.
"""

from __future__ import annotations

import hashlib
import importlib.util
import inspect
import logging
import os
import sys
from types import ModuleType
from typing import Any

from targetkit import TargetConfigError, TargetRegistry

from packbuild.framework.config import BuildConfig

REGISTER_HOOK = "register_targets"

logger = logging.getLogger(__name__)


class TargetLoadError(TargetConfigError):
    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        super().__init__(f"Cannot load targets from {path}: {reason}")


def _module_name_for(path: str) -> str:
    digest = hashlib.sha1(path.encode("utf-8")).hexdigest()[:12]
    return f"_packbuild_targets_{digest}"


def import_targets_module(path: str | os.PathLike[str]) -> ModuleType:
    resolved = os.path.abspath(os.fspath(path))
    if not os.path.isfile(resolved):
        raise TargetLoadError(resolved, "file does not exist")

    module_name = _module_name_for(resolved)
    spec = importlib.util.spec_from_file_location(module_name, resolved)
    if spec is None or spec.loader is None:
        raise TargetLoadError(resolved, "not an importable Python file")

    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except Exception as exc:
        sys.modules.pop(module_name, None)
        raise TargetLoadError(resolved, f"{type(exc).__name__}: {exc}") from exc
    return module


def load_targets(
    path: str | os.PathLike[str],
    registry: TargetRegistry | None = None,
    *,
    cfg: BuildConfig | None = None,
) -> TargetRegistry:
    """Execute the targets file at `path` and register its targets."""

    registry = registry if registry is not None else TargetRegistry()
    module = import_targets_module(path)
    resolved = os.path.abspath(os.fspath(path))

    hook: Any = getattr(module, REGISTER_HOOK, None)
    if hook is None or not callable(hook):
        raise TargetLoadError(resolved, f"missing callable {REGISTER_HOOK}(registry)")

    try:
        params = inspect.signature(hook).parameters
    except (TypeError, ValueError):
        params = {}
    positional = [
        p
        for p in params.values()
        if p.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
    ]

    before = len(registry)
    try:
        if len(positional) >= 2:
            hook(registry, cfg)
        else:
            hook(registry)
    except TargetConfigError:
        raise
    except Exception as exc:
        raise TargetLoadError(
            resolved, f"{REGISTER_HOOK} failed: {type(exc).__name__}: {exc}"
        ) from exc

    logger.debug("Loaded %d targets from %s", len(registry) - before, resolved)
    return registry

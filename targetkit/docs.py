"""`targetkit` invariants and boundaries.

This module exists to make repository-wide refactors and boundary tests explicit.

Generic invariants:

1) `targetkit` must not import `packbuild.*`.
2) `targetkit` provides the target graph kernel: a registration-ordered
   registry, a deterministic resolver, a memoizing evaluator and a
   materializer that only understands the `Buildable` / `Runnable` /
   `Composite` capabilities.
3) `targetkit` does not define project conventions like:
   - where target definitions are loaded from
   - how configuration files are discovered or merged
   - what concrete artifacts (manifests, executables) look like

Project code should inject conventions by constructing a `TargetRegistry`
and passing it explicitly; there is no process-wide registry.
"""

from __future__ import annotations

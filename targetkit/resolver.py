"""Dependency resolution: requested target names -> ordered evaluation plan.

Resolution is a depth-first post-order walk over the dependency closure.
Roots are visited in the order given and each target's dependencies in the
order they were declared, so identical registries always yield identical
plans. Nothing here invokes a target function.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator, Sequence

from targetkit.errors import CyclicDependencyError, NoDefaultTargetsError, UnknownTargetError
from targetkit.target_registry import TargetRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EvaluationPlan:
    order: tuple[str, ...]
    roots: tuple[str, ...]
    from_defaults: bool = False

    def __iter__(self) -> Iterator[str]:
        return iter(self.order)

    def __len__(self) -> int:
        return len(self.order)

    def __contains__(self, name: object) -> bool:
        return name in self.order

    def is_root(self, name: str) -> bool:
        return name in self.roots


def _normalize_requested(requested: Sequence[str]) -> list[str]:
    if isinstance(requested, str):
        raise TypeError("requested must be a sequence of target names, not a string")

    names: list[str] = []
    for idx, raw in enumerate(requested):
        if not isinstance(raw, str) or not raw.strip():
            raise TypeError(f"requested[{idx}] must be a non-empty string (value={raw!r})")
        name = raw.strip()
        if name not in names:
            names.append(name)
    return names


def resolve(registry: TargetRegistry, requested: Sequence[str] = ()) -> EvaluationPlan:
    roots = _normalize_requested(requested)
    from_defaults = False
    if not roots:
        roots = [target.name for target in registry.list_defaults()]
        if not roots:
            raise NoDefaultTargetsError()
        from_defaults = True

    for name in roots:
        registry.get(name)

    order: list[str] = []
    done: set[str] = set()

    for root in roots:
        if root in done:
            continue
        stack: list[str] = [root]
        on_stack: set[str] = {root}
        pending: list[Iterator[str]] = [iter(registry.get(root).dependencies)]

        while pending:
            dep = next(pending[-1], None)
            if dep is None:
                name = stack.pop()
                pending.pop()
                on_stack.discard(name)
                done.add(name)
                order.append(name)
                continue
            if dep in done:
                continue
            if dep in on_stack:
                start = stack.index(dep)
                raise CyclicDependencyError([*stack[start:], dep])
            if dep not in registry:
                raise UnknownTargetError(
                    dep, referenced_by=stack[-1], suggestions=registry.suggest(dep)
                )
            stack.append(dep)
            on_stack.add(dep)
            pending.append(iter(registry.get(dep).dependencies))

    plan = EvaluationPlan(order=tuple(order), roots=tuple(roots), from_defaults=from_defaults)
    logger.debug(
        "Resolved plan: roots=%s order=%s (defaults=%s)",
        ", ".join(plan.roots),
        ", ".join(plan.order),
        from_defaults,
    )
    return plan

from __future__ import annotations

import difflib
from typing import Any, Callable, Iterable, Iterator, Sequence

from targetkit.errors import DuplicateTargetError, UnknownTargetError
from targetkit.target_types import Target, TargetFunction


class TargetRegistry:
    """Registration-ordered collection of targets for one invocation."""

    def __init__(self) -> None:
        self._by_name: dict[str, Target] = {}

    @classmethod
    def from_targets(cls, targets: Iterable[Target]) -> "TargetRegistry":
        registry = cls()
        for target in targets:
            registry.add(target)
        return registry

    def add(self, target: Target) -> Target:
        if not isinstance(target, Target):
            raise TypeError(f"Expected a Target (type={type(target).__name__})")
        if target.name in self._by_name:
            raise DuplicateTargetError(target.name)
        self._by_name[target.name] = target
        return target

    def register(
        self,
        name: str,
        fn: TargetFunction,
        dependencies: Sequence[str] = (),
        is_default: bool = False,
        *,
        doc: str | None = None,
        source: str | None = None,
        tags: tuple[str, ...] = (),
    ) -> Target:
        return self.add(
            Target(
                name=name,
                fn=fn,
                dependencies=tuple(dependencies),
                is_default=is_default,
                doc=doc,
                source=source,
                tags=tuple(tags),
            )
        )

    def target(
        self,
        name: str,
        *,
        depends: Sequence[str] = (),
        default: bool = False,
        doc: str | None = None,
        tags: tuple[str, ...] = (),
    ) -> Callable[[TargetFunction], TargetFunction]:
        """Decorator form of `register`; returns the function unchanged."""

        def decorator(fn: TargetFunction) -> TargetFunction:
            self.register(
                name,
                fn,
                depends,
                default,
                doc=doc or _first_doc_line(fn),
                tags=tags,
            )
            return fn

        return decorator

    def get(self, name: str) -> Target:
        key = name.strip() if isinstance(name, str) else ""
        target = self._by_name.get(key)
        if target is None:
            raise UnknownTargetError(str(name), suggestions=self.suggest(str(name)))
        return target

    def list_defaults(self) -> tuple[Target, ...]:
        return tuple(target for target in self._by_name.values() if target.is_default)

    def names(self) -> tuple[str, ...]:
        return tuple(self._by_name.keys())

    def describe(self) -> tuple[dict[str, Any], ...]:
        rows: list[dict[str, Any]] = []
        for target in self._by_name.values():
            rows.append(
                {
                    "name": target.name,
                    "default": target.is_default,
                    "dependencies": list(target.dependencies),
                    "doc": target.doc,
                    "source": target.source,
                    "tags": list(target.tags),
                }
            )
        return tuple(rows)

    def suggest(self, name: str, *, limit: int = 3) -> tuple[str, ...]:
        key = (name or "").strip()
        if not key or not self._by_name:
            return ()
        return tuple(difflib.get_close_matches(key, list(self._by_name.keys()), n=limit))

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.strip() in self._by_name

    def __iter__(self) -> Iterator[Target]:
        return iter(self._by_name.values())

    def __len__(self) -> int:
        return len(self._by_name)


def _first_doc_line(fn: Any) -> str | None:
    doc = getattr(fn, "__doc__", None)
    if not isinstance(doc, str):
        return None
    for line in doc.strip().splitlines():
        if line.strip():
            return line.strip()
    return None

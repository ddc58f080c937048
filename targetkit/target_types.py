from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Protocol


class TargetFunction(Protocol):
    def __call__(self, deps: Mapping[str, Any]) -> Any:
        ...


@dataclass(frozen=True)
class Target:
    name: str
    fn: TargetFunction
    dependencies: tuple[str, ...] = ()
    is_default: bool = False
    doc: str | None = None
    source: str | None = None
    tags: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name.strip():
            raise TypeError("Target.name must be a non-empty string")
        object.__setattr__(self, "name", self.name.strip())

        if not callable(self.fn):
            raise TypeError(
                f"Target.fn must be callable (target={self.name}, type={type(self.fn).__name__})"
            )

        if isinstance(self.dependencies, str):
            raise TypeError(
                f"Target.dependencies must be a sequence of names, not a string (target={self.name})"
            )
        deps: list[str] = []
        for raw in self.dependencies:
            if not isinstance(raw, str) or not raw.strip():
                raise TypeError(
                    f"Target {self.name} has an invalid dependency name: {raw!r}"
                )
            dep = raw.strip()
            if dep in deps:
                raise ValueError(f"Target {self.name} declares dependency {dep} more than once")
            deps.append(dep)
        object.__setattr__(self, "dependencies", tuple(deps))

        if not isinstance(self.is_default, bool):
            raise TypeError(f"Target.is_default must be a bool (target={self.name})")

        if self.doc is not None and (not isinstance(self.doc, str) or not self.doc.strip()):
            raise TypeError("Target.doc must be a non-empty string or None")
        if self.source is None:
            object.__setattr__(self, "source", _callable_source(self.fn))

        if self.tags:
            object.__setattr__(
                self, "tags", tuple(str(tag).strip() for tag in self.tags if str(tag).strip())
            )


def _callable_source(fn: Any) -> str:
    module = getattr(fn, "__module__", None) or "<unknown_module>"
    qualname = getattr(fn, "__qualname__", None) or getattr(fn, "__name__", None) or "<callable>"
    return f"{module}.{qualname}"

"""Capabilities an evaluation result may expose.

The engine never inspects concrete result types; it only asks whether a
result is buildable, runnable or composite.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping, Protocol, Sequence, runtime_checkable


@runtime_checkable
class Buildable(Protocol):
    def build(self, dest_dir: Path) -> Any:
        """Write this object's artifacts beneath `dest_dir`."""


@runtime_checkable
class Runnable(Protocol):
    def run(self, args: Sequence[str]) -> int:
        """Execute as a program and return its exit code."""


@runtime_checkable
class Composite(Protocol):
    def entries(self) -> Mapping[str, Any]:
        """Map relative paths to nested entries (buildable, composite or file content)."""


@runtime_checkable
class FileContent(Protocol):
    def resolve(self) -> bytes:
        ...


def is_buildable(result: Any) -> bool:
    return isinstance(result, Buildable) and callable(getattr(result, "build", None))


def is_runnable(result: Any) -> bool:
    return isinstance(result, Runnable) and callable(getattr(result, "run", None))


def is_composite(result: Any) -> bool:
    return isinstance(result, Composite) and callable(getattr(result, "entries", None))


def capabilities_of(result: Any) -> tuple[str, ...]:
    caps: list[str] = []
    if is_buildable(result):
        caps.append("build")
    if is_runnable(result):
        caps.append("run")
    if is_composite(result):
        caps.append("composite")
    return tuple(caps)

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class DataLocation:
    """Content backed either by a filesystem path or by bytes in memory."""

    path: Path | None = None
    data: bytes | None = None

    def __post_init__(self) -> None:
        if (self.path is None) == (self.data is None):
            raise ValueError("DataLocation requires exactly one of path or data")
        if self.path is not None and not isinstance(self.path, Path):
            object.__setattr__(self, "path", Path(self.path))
        if self.data is not None and not isinstance(self.data, bytes):
            if isinstance(self.data, bytearray):
                object.__setattr__(self, "data", bytes(self.data))
            else:
                raise TypeError(f"DataLocation.data must be bytes (type={type(self.data).__name__})")

    @classmethod
    def from_path(cls, path: str | os.PathLike[str]) -> "DataLocation":
        return cls(path=Path(path))

    @classmethod
    def from_bytes(cls, data: bytes) -> "DataLocation":
        return cls(data=bytes(data))

    @classmethod
    def from_text(cls, text: str, *, encoding: str = "utf-8") -> "DataLocation":
        return cls(data=text.encode(encoding))

    @property
    def in_memory(self) -> bool:
        return self.data is not None

    def resolve(self) -> bytes:
        if self.data is not None:
            return self.data
        assert self.path is not None
        try:
            return self.path.read_bytes()
        except OSError as exc:
            raise OSError(f"reading {self.path}: {exc}") from exc

    def to_memory(self) -> "DataLocation":
        return DataLocation(data=self.resolve())

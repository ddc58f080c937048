from __future__ import annotations

import os
import stat
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Any, Iterator, Mapping, Union

from targetkit import BuildActionError
from targetkit.engine.materializer import normalize_relative_path

from packbuild.resources.data_location import DataLocation


@dataclass(frozen=True)
class FileEntry:
    data: DataLocation
    executable: bool = False

    def resolve(self) -> bytes:
        return self.data.resolve()

    def to_memory(self) -> "FileEntry":
        return FileEntry(data=self.data.to_memory(), executable=self.executable)


ManifestEntry = Union[FileEntry, "FileManifest"]


class FileManifest:
    """Ordered mapping of relative posix paths to files or nested manifests.

    Composite: `entries()` exposes the direct children. Buildable:
    `build(dest_dir)` writes the flattened tree.
    """

    def __init__(self) -> None:
        self._entries: dict[str, ManifestEntry] = {}

    def _key(self, relative_path: str) -> str:
        try:
            return normalize_relative_path(relative_path)
        except ValueError as exc:
            raise ValueError(f"Invalid manifest path: {exc}") from exc

    def add_entry(self, relative_path: str, entry: ManifestEntry) -> None:
        if not isinstance(entry, (FileEntry, FileManifest)):
            raise TypeError(f"Unsupported manifest entry (type={type(entry).__name__})")
        key = self._key(relative_path)
        if key in self._entries:
            raise ValueError(f"Duplicate manifest path: {key}")
        for existing in self._entries:
            if existing.startswith(key + "/") or key.startswith(existing + "/"):
                if isinstance(self._entries[existing], FileEntry) or isinstance(entry, FileEntry):
                    raise ValueError(f"Manifest path {key} conflicts with {existing}")
        self._entries[key] = entry

    def add_file(
        self,
        relative_path: str,
        source: str | os.PathLike[str],
        *,
        executable: bool | None = None,
    ) -> None:
        source_path = Path(source)
        if executable is None:
            try:
                executable = bool(source_path.stat().st_mode & stat.S_IXUSR)
            except OSError:
                executable = False
        self.add_entry(relative_path, FileEntry(DataLocation.from_path(source_path), executable))

    def add_bytes(self, relative_path: str, data: bytes, *, executable: bool = False) -> None:
        self.add_entry(relative_path, FileEntry(DataLocation.from_bytes(data), executable))

    def add_text(self, relative_path: str, text: str, *, executable: bool = False) -> None:
        self.add_entry(relative_path, FileEntry(DataLocation.from_text(text), executable))

    def add_manifest(self, prefix: str, manifest: "FileManifest") -> None:
        if manifest is self:
            raise ValueError("Cannot mount a manifest inside itself")
        self.add_entry(prefix, manifest)

    def entries(self) -> Mapping[str, ManifestEntry]:
        return dict(self._entries)

    def iter_files(self, prefix: str = "") -> Iterator[tuple[str, FileEntry]]:
        for key, entry in self._entries.items():
            path = f"{prefix}/{key}" if prefix else key
            if isinstance(entry, FileManifest):
                yield from entry.iter_files(path)
            else:
                yield path, entry

    def paths(self) -> tuple[str, ...]:
        return tuple(path for path, _entry in self.iter_files())

    def to_memory(self) -> "FileManifest":
        copy = FileManifest()
        for key, entry in self._entries.items():
            copy._entries[key] = entry.to_memory()
        return copy

    def build(self, dest_dir: Path) -> list[Path]:
        written: list[Path] = []
        dest = Path(dest_dir)
        for relative_path, entry in self.iter_files():
            path = dest.joinpath(*PurePosixPath(relative_path).parts)
            try:
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_bytes(entry.resolve())
                if entry.executable:
                    mode = path.stat().st_mode
                    path.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
            except OSError as exc:
                raise BuildActionError(f"Failed to write {relative_path}: {exc}") from exc
            written.append(path)
        return written

    def __len__(self) -> int:
        return sum(1 for _ in self.iter_files())

    def __contains__(self, relative_path: Any) -> bool:
        return isinstance(relative_path, str) and relative_path in self.paths()

    def __repr__(self) -> str:
        return f"FileManifest(files={len(self)})"


class InstallLayout:
    """Composite-only layout whose entries may be buildable objects.

    Unlike `FileManifest`, entries are not limited to files: an executable
    mounted at ``app`` is built into ``<dest>/app/``.
    """

    def __init__(self, entries: Mapping[str, Any] | None = None) -> None:
        self._entries: dict[str, Any] = {}
        for relative_path, entry in (entries or {}).items():
            self.add(relative_path, entry)

    def add(self, relative_path: str, entry: Any) -> None:
        key = normalize_relative_path(relative_path)
        if key in self._entries:
            raise ValueError(f"Duplicate layout path: {key}")
        self._entries[key] = entry

    def entries(self) -> Mapping[str, Any]:
        return dict(self._entries)

    def __repr__(self) -> str:
        return f"InstallLayout(paths={list(self._entries)})"

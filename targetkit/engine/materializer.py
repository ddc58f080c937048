"""Build materializer: turn evaluated results into files under the output root.

Every requested target owns `<output_root>/<target_name>/`. Composite results
are flattened by joining relative paths, so a nested manifest mounted at
``lib`` with an entry ``foo/bar.py`` lands at ``lib/foo/bar.py``.
"""

from __future__ import annotations

import logging
import os
import shutil
import stat
from pathlib import Path, PurePosixPath
from typing import Any, Mapping

from targetkit.capabilities import FileContent, is_buildable, is_composite
from targetkit.errors import MaterializationError, NotBuildableError

logger = logging.getLogger(__name__)


def normalize_relative_path(raw: Any, *, prefix: str = "") -> str:
    """Join `raw` onto `prefix`, rejecting absolute or escaping paths."""

    if not isinstance(raw, str) or not raw.strip():
        raise ValueError(f"Relative path must be a non-empty string (got {raw!r})")
    candidate = PurePosixPath(raw.strip().replace("\\", "/"))
    if candidate.is_absolute() or (candidate.parts and ":" in candidate.parts[0]):
        raise ValueError(f"Relative path must not be absolute: {raw}")
    parts = [part for part in candidate.parts if part not in ("", ".")]
    if not parts:
        raise ValueError(f"Relative path resolves to nothing: {raw!r}")
    if ".." in parts:
        raise ValueError(f"Relative path must not contain '..': {raw}")

    joined = PurePosixPath(prefix, *parts) if prefix else PurePosixPath(*parts)
    return joined.as_posix()


class Materializer:
    def __init__(self, *, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger(__name__)

    def target_dir(self, target_name: str, output_root: str | os.PathLike[str]) -> Path:
        return Path(output_root) / target_name

    def materialize(
        self,
        target_name: str,
        result: Any,
        output_root: str | os.PathLike[str],
        *,
        requested: bool = True,
    ) -> list[Path]:
        """Materialize `result` for `target_name`; returns the paths written.

        A result without a build capability is an error only when the target
        was explicitly requested; dependency-only targets are skipped.
        """

        dest = self.target_dir(target_name, output_root)

        if is_composite(result):
            written: list[Path] = []
            self._ensure_dir(target_name, dest, relative_path="")
            self._write_entries(target_name, result, dest, prefix="", written=written)
            self._logger.debug(
                "Materialized composite %s into %s (%d paths)", target_name, dest, len(written)
            )
            return written

        if is_buildable(result):
            self._ensure_dir(target_name, dest, relative_path="")
            built = self._build(target_name, result, dest, relative_path="")
            written = _reported_paths(built)
            if written is None:
                # No path list from the build action: everything under dest,
                # including files left there by earlier builds.
                written = sorted(path for path in dest.rglob("*") if path.is_file())
            self._logger.debug("Built %s into %s (%d files)", target_name, dest, len(written))
            return written

        if requested:
            raise NotBuildableError(target_name, result)

        self._logger.debug(
            "Not materializing %s: result has no build capability (type=%s)",
            target_name,
            type(result).__name__,
        )
        return []

    def _write_entries(
        self,
        target_name: str,
        composite: Any,
        dest_root: Path,
        *,
        prefix: str,
        written: list[Path],
    ) -> None:
        try:
            entries = composite.entries()
        except Exception as exc:  # noqa: BLE001 - entries() is collaborator code
            raise MaterializationError(target_name, prefix, exc) from exc
        if not isinstance(entries, Mapping):
            raise MaterializationError(
                target_name,
                prefix,
                TypeError(f"entries() must return a mapping (type={type(entries).__name__})"),
            )

        for raw_path, entry in entries.items():
            try:
                relative_path = normalize_relative_path(raw_path, prefix=prefix)
            except ValueError as exc:
                location = f"{prefix}/{raw_path}" if prefix else str(raw_path)
                raise MaterializationError(target_name, location, exc) from exc
            self._write_entry(target_name, relative_path, entry, dest_root, written=written)

    def _write_entry(
        self,
        target_name: str,
        relative_path: str,
        entry: Any,
        dest_root: Path,
        *,
        written: list[Path],
    ) -> None:
        path = dest_root.joinpath(*PurePosixPath(relative_path).parts)

        if is_composite(entry):
            self._write_entries(target_name, entry, dest_root, prefix=relative_path, written=written)
            return

        if is_buildable(entry):
            self._ensure_dir(target_name, path, relative_path=relative_path)
            self._build(target_name, entry, path, relative_path=relative_path)
            written.append(path)
            return

        try:
            if isinstance(entry, (bytes, bytearray)):
                self._write_bytes(path, bytes(entry))
            elif isinstance(entry, str):
                self._write_bytes(path, entry.encode("utf-8"))
            elif isinstance(entry, os.PathLike):
                self._copy_path(Path(entry), path)
            elif isinstance(entry, FileContent):
                data = entry.resolve()
                if not isinstance(data, (bytes, bytearray)):
                    raise TypeError(
                        f"resolve() must return bytes (type={type(data).__name__})"
                    )
                self._write_bytes(path, bytes(data))
                if getattr(entry, "executable", False):
                    _mark_executable(path)
            else:
                raise TypeError(
                    f"Unsupported manifest entry (type={type(entry).__name__})"
                )
        except Exception as exc:  # noqa: BLE001 - resolve() and path copies are collaborator code
            raise MaterializationError(target_name, relative_path, exc) from exc

        written.append(path)

    def _build(self, target_name: str, buildable: Any, dest: Path, *, relative_path: str) -> Any:
        try:
            return buildable.build(dest)
        except Exception as exc:  # noqa: BLE001 - build actions are collaborator code
            raise MaterializationError(target_name, relative_path, exc) from exc

    def _ensure_dir(self, target_name: str, path: Path, *, relative_path: str) -> None:
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise MaterializationError(target_name, relative_path, exc) from exc

    def _write_bytes(self, path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)

    def _copy_path(self, source: Path, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        if source.is_dir():
            shutil.copytree(source, path, dirs_exist_ok=True)
        else:
            shutil.copy2(source, path)


def _mark_executable(path: Path) -> None:
    mode = path.stat().st_mode
    path.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)


def _reported_paths(built: Any) -> list[Path] | None:
    if isinstance(built, os.PathLike):
        return [Path(built)]
    if isinstance(built, (list, tuple)) and all(isinstance(p, os.PathLike) for p in built):
        return [Path(p) for p in built]
    return None

from __future__ import annotations

import logging
import os
import stat
import subprocess
import sys
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence

from targetkit import BuildActionError

from packbuild.resources.manifest import FileManifest

logger = logging.getLogger(__name__)

LAUNCHER_TEMPLATE = """#!{interpreter}
# Generated by packbuild; runs {module} with the bundled library path first.
import os
import runpy
import sys

_here = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, os.path.join(_here, {library_dir!r}))
runpy.run_module({module!r}, run_name="__main__", alter_sys=True)
"""


@dataclass
class ScriptExecutable:
    """A launcher script for `module` plus the files it needs beside it.

    Buildable: writes `<dest>/<name>` and the bundled manifest.
    Runnable: runs `module` with the current interpreter.
    """

    name: str
    module: str
    library_dir: str = "lib"
    bundle: FileManifest = field(default_factory=FileManifest)
    interpreter: str = sys.executable
    env: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name.strip():
            raise ValueError("ScriptExecutable.name must be a non-empty string")
        if "/" in self.name or "\\" in self.name:
            raise ValueError(f"ScriptExecutable.name must be a file name: {self.name}")
        if not isinstance(self.module, str) or not self.module.strip():
            raise ValueError("ScriptExecutable.module must be a non-empty string")
        self.name = self.name.strip()
        self.module = self.module.strip()

    def launcher_text(self) -> str:
        return LAUNCHER_TEMPLATE.format(
            interpreter=self.interpreter,
            module=self.module,
            library_dir=self.library_dir,
        )

    def build(self, dest_dir: Path) -> list[Path]:
        dest = Path(dest_dir)
        launcher = dest / self.name
        try:
            dest.mkdir(parents=True, exist_ok=True)
            launcher.write_text(self.launcher_text(), encoding="utf-8")
            mode = launcher.stat().st_mode
            launcher.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        except OSError as exc:
            raise BuildActionError(f"Failed to write launcher {launcher}: {exc}") from exc

        written = [launcher]
        if len(self.bundle):
            written.extend(self.bundle.build(dest))
        logger.debug("Wrote launcher %s for module %s", launcher, self.module)
        return written

    def command(self, args: Sequence[str]) -> list[str]:
        return [self.interpreter, "-m", self.module, *args]

    def run(self, args: Sequence[str]) -> int:
        """Run `module` with the bundle staged in a temporary directory."""

        env = dict(os.environ)
        env.update(self.env)
        with tempfile.TemporaryDirectory(prefix=f"packbuild-{self.name}-") as staging:
            if len(self.bundle):
                self.bundle.build(Path(staging))
                library = os.path.join(staging, *self.library_dir.split("/"))
                existing = env.get("PYTHONPATH")
                env["PYTHONPATH"] = os.pathsep.join(p for p in (library, existing) if p)
            cmd = self.command(args)
            logger.debug("Running: %s", " ".join(cmd))
            completed = subprocess.run(cmd, check=False, env=env)
        return int(completed.returncode)

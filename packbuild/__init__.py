"""packbuild: declarative build targets evaluated into on-disk artifacts.

Common entrypoints:

- `packbuild.cli`: the `packbuild` command line (`build`, `run`, `plan`, `list-targets`)
- `packbuild.app.build`: session setup and build orchestration used by the CLI
- `packbuild.resources`: manifests, data locations and executables returned by targets

The target graph kernel itself lives in `targetkit`.
"""

__version__ = "0.1.0"

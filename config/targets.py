"""Example targets: a small application bundled, wrapped in a launcher and installed.

    packbuild plan            # dist, exe, install
    packbuild build           # materializes build/out/install/
    packbuild run exe -- --name world
"""

from __future__ import annotations

from packbuild.resources import (
    DataLocation,
    InstallLayout,
    PythonModuleSource,
    PythonPackageDistributionResource,
    ScriptExecutable,
    resources_to_manifest,
)

HELLO_MAIN = '''\
import argparse


def main() -> int:
    parser = argparse.ArgumentParser(prog="hello")
    parser.add_argument("--name", default="packbuild")
    args = parser.parse_args()
    print(f"hello, {args.name}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
'''

HELLO_METADATA = """\
Metadata-Version: 2.1
Name: hello
Version: 0.1.0
"""


def register_targets(registry):
    @registry.target("dist")
    def dist(deps):
        """Python resources making up the hello application."""

        return [
            PythonModuleSource("hello", DataLocation.from_text(""), is_package=True),
            PythonModuleSource("hello.__main__", DataLocation.from_text(HELLO_MAIN)),
            PythonPackageDistributionResource(
                "hello", "0.1.0", "METADATA", DataLocation.from_text(HELLO_METADATA)
            ),
        ]

    @registry.target("exe", depends=["dist"])
    def exe(deps):
        """Launcher script bundling the dist resources under lib/."""

        return ScriptExecutable(
            name="hello",
            module="hello",
            library_dir="lib",
            bundle=resources_to_manifest(deps["dist"], prefix="lib"),
        )

    @registry.target("install", depends=["exe"], default=True)
    def install(deps):
        """Install layout: the executable under app/ plus a README."""

        return InstallLayout(
            {
                "app": deps["exe"],
                "README.txt": "Run app/hello to greet.\n",
            }
        )

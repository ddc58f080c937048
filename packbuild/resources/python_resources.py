"""Python resource types and the filesystem layout they are installed with.

Layout follows the interpreter's import conventions:

- module ``a.b``            -> ``<prefix>/a/b.py``
- package ``a.b``           -> ``<prefix>/a/b/__init__.py``
- bytecode for ``a.b``      -> ``<prefix>/a/__pycache__/b.<cache_tag>[.opt-N].pyc``
- resource ``x.txt`` in ``a.b`` -> ``<prefix>/a/b/x.txt``
- distribution metadata     -> ``<prefix>/<pkg>-<ver>.dist-info/<name>``
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Iterable, Literal, Sequence, Union

from packbuild.resources.data_location import DataLocation
from packbuild.resources.manifest import FileEntry, FileManifest

DistributionFlavor = Literal["dist-info", "egg-info"]

DEFAULT_CACHE_TAG: str = sys.implementation.cache_tag or "cpython"


def optimization_tag(level: int) -> str:
    if level == 0:
        return ""
    if level in (1, 2):
        return f".opt-{level}"
    raise ValueError(f"Invalid bytecode optimization level: {level} (expected 0, 1 or 2)")


def packages_from_module_name(name: str) -> tuple[str, ...]:
    """Parent packages of a dotted module name, outermost first."""

    parts = name.split(".")
    return tuple(".".join(parts[:idx]) for idx in range(1, len(parts)))


def is_in_packages(name: str, packages: Iterable[str]) -> bool:
    parents = set(packages_from_module_name(name))
    return any(name == package or package in parents for package in packages)


def _validate_module_name(name: str) -> list[str]:
    if not isinstance(name, str) or not name.strip():
        raise ValueError("Module name must be a non-empty string")
    parts = name.strip().split(".")
    if any(not part for part in parts):
        raise ValueError(f"Invalid module name: {name!r}")
    return parts


def module_source_path(prefix: str, name: str, *, is_package: bool) -> str:
    parts = _validate_module_name(name)
    if is_package:
        path = PurePosixPath(prefix, *parts, "__init__.py")
    else:
        path = PurePosixPath(prefix, *parts[:-1], f"{parts[-1]}.py")
    return path.as_posix()


def module_bytecode_path(
    prefix: str,
    name: str,
    *,
    is_package: bool,
    cache_tag: str = DEFAULT_CACHE_TAG,
    optimize_level: int = 0,
) -> str:
    parts = _validate_module_name(name)
    tag = f"{cache_tag}{optimization_tag(optimize_level)}"
    if is_package:
        path = PurePosixPath(prefix, *parts, "__pycache__", f"__init__.{tag}.pyc")
    else:
        path = PurePosixPath(prefix, *parts[:-1], "__pycache__", f"{parts[-1]}.{tag}.pyc")
    return path.as_posix()


def package_resource_path(prefix: str, leaf_package: str, relative_name: str) -> str:
    parts = _validate_module_name(leaf_package)
    return PurePosixPath(prefix, *parts, relative_name).as_posix()


def distribution_resource_path(
    prefix: str,
    package: str,
    version: str,
    name: str,
    *,
    flavor: DistributionFlavor = "dist-info",
) -> str:
    if flavor not in ("dist-info", "egg-info"):
        raise ValueError(f"Unknown distribution flavor: {flavor}")
    return PurePosixPath(prefix, f"{package}-{version}.{flavor}", name).as_posix()


def extension_module_path(prefix: str, name: str, file_suffix: str) -> str:
    parts = _validate_module_name(name)
    return PurePosixPath(prefix, *parts[:-1], f"{parts[-1]}{file_suffix}").as_posix()


@dataclass(frozen=True)
class PythonModuleSource:
    name: str
    source: DataLocation
    is_package: bool = False

    def resolve_path(self, prefix: str) -> str:
        return module_source_path(prefix, self.name, is_package=self.is_package)

    def package(self) -> str:
        if self.is_package:
            return self.name
        return self.name.rpartition(".")[0]


@dataclass(frozen=True)
class PythonModuleBytecode:
    name: str
    bytecode: DataLocation
    is_package: bool = False
    optimize_level: int = 0
    cache_tag: str = DEFAULT_CACHE_TAG

    def resolve_path(self, prefix: str) -> str:
        return module_bytecode_path(
            prefix,
            self.name,
            is_package=self.is_package,
            cache_tag=self.cache_tag,
            optimize_level=self.optimize_level,
        )


@dataclass(frozen=True)
class PythonPackageResource:
    leaf_package: str
    relative_name: str
    data: DataLocation

    def symbolic_name(self) -> str:
        return f"{self.leaf_package}:{self.relative_name}"

    def resolve_path(self, prefix: str) -> str:
        return package_resource_path(prefix, self.leaf_package, self.relative_name)


@dataclass(frozen=True)
class PythonPackageDistributionResource:
    package: str
    version: str
    name: str
    data: DataLocation
    flavor: DistributionFlavor = "dist-info"

    def resolve_path(self, prefix: str) -> str:
        return distribution_resource_path(
            prefix, self.package, self.version, self.name, flavor=self.flavor
        )


@dataclass(frozen=True)
class PythonExtensionModule:
    name: str
    file_suffix: str
    shared_library: DataLocation | None = None

    def resolve_path(self, prefix: str) -> str:
        return extension_module_path(prefix, self.name, self.file_suffix)


PythonResource = Union[
    PythonModuleSource,
    PythonModuleBytecode,
    PythonPackageResource,
    PythonPackageDistributionResource,
    PythonExtensionModule,
]


def resource_full_name(resource: PythonResource) -> str:
    if isinstance(resource, PythonPackageResource):
        return f"{resource.leaf_package}.{resource.relative_name}"
    if isinstance(resource, PythonPackageDistributionResource):
        return f"{resource.package}:{resource.name}"
    return resource.name


def resources_to_manifest(resources: Sequence[PythonResource], prefix: str = "lib") -> FileManifest:
    """Lay out resources beneath `prefix`, adding missing package `__init__.py` files.

    Extension modules without a shared library (statically linked) have no
    file representation and are skipped.
    """

    manifest = FileManifest()
    package_inits: set[str] = set()
    declared: set[str] = set()

    for resource in resources:
        if isinstance(resource, PythonExtensionModule) and resource.shared_library is None:
            continue
        path = resource.resolve_path(prefix)
        if isinstance(resource, PythonExtensionModule):
            assert resource.shared_library is not None
            manifest.add_entry(path, FileEntry(resource.shared_library, executable=True))
        elif isinstance(resource, PythonModuleSource):
            manifest.add_entry(path, FileEntry(resource.source))
        elif isinstance(resource, PythonModuleBytecode):
            manifest.add_entry(path, FileEntry(resource.bytecode))
        else:
            manifest.add_entry(path, FileEntry(resource.data))
        declared.add(path)

        if isinstance(resource, (PythonModuleSource, PythonModuleBytecode, PythonExtensionModule)):
            package_inits.update(packages_from_module_name(resource.name))
        elif isinstance(resource, PythonPackageResource):
            package_inits.update(packages_from_module_name(resource.leaf_package))
            package_inits.add(resource.leaf_package)

    for package in sorted(package_inits):
        init_path = module_source_path(prefix, package, is_package=True)
        if init_path not in declared:
            manifest.add_bytes(init_path, b"")
    return manifest

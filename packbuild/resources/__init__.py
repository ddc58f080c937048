"""Domain payloads produced by target functions (files, manifests, executables)."""

from packbuild.resources.data_location import DataLocation
from packbuild.resources.executable import ScriptExecutable
from packbuild.resources.manifest import FileEntry, FileManifest, InstallLayout
from packbuild.resources.python_resources import (
    PythonExtensionModule,
    PythonModuleBytecode,
    PythonModuleSource,
    PythonPackageDistributionResource,
    PythonPackageResource,
    PythonResource,
    is_in_packages,
    packages_from_module_name,
    resource_full_name,
    resources_to_manifest,
)

__all__ = [
    "DataLocation",
    "FileEntry",
    "FileManifest",
    "InstallLayout",
    "PythonExtensionModule",
    "PythonModuleBytecode",
    "PythonModuleSource",
    "PythonPackageDistributionResource",
    "PythonPackageResource",
    "PythonResource",
    "ScriptExecutable",
    "is_in_packages",
    "packages_from_module_name",
    "resource_full_name",
    "resources_to_manifest",
]

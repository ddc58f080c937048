import os
import stat

import pytest

from targetkit import BuildActionError, MaterializationError, Materializer, NotBuildableError
from targetkit.engine.materializer import normalize_relative_path


class Tree:
    def __init__(self, entries):
        self._entries = entries

    def entries(self):
        return self._entries


class Blob:
    def __init__(self, data: bytes, executable: bool = False) -> None:
        self.data = data
        self.executable = executable

    def resolve(self) -> bytes:
        return self.data


class Stamp:
    def __init__(self, text: str) -> None:
        self.text = text

    def build(self, dest_dir):
        (dest_dir / "stamp.txt").write_text(self.text, encoding="utf-8")


class BrokenBuild:
    def build(self, dest_dir):
        raise BuildActionError("toolchain missing")


def test_requested_result_without_build_capability_is_an_error(tmp_path):
    with pytest.raises(NotBuildableError, match=r"Target dist does not produce a buildable result \(type=list\)"):
        Materializer().materialize("dist", ["resource"], tmp_path)

    assert not (tmp_path / "dist").exists()


def test_dependency_only_result_is_skipped(tmp_path):
    written = Materializer().materialize("dist", ["resource"], tmp_path, requested=False)

    assert written == []
    assert not (tmp_path / "dist").exists()


def test_nested_composites_are_flattened(tmp_path):
    result = Tree(
        {
            "README.txt": "hello\n",
            "lib": Tree({"foo/bar.py": b"x = 1\n", "foo/baz.py": Blob(b"y = 2\n")}),
        }
    )

    written = Materializer().materialize("install", result, tmp_path)

    root = tmp_path / "install"
    assert (root / "README.txt").read_text(encoding="utf-8") == "hello\n"
    assert (root / "lib" / "foo" / "bar.py").read_bytes() == b"x = 1\n"
    assert (root / "lib" / "foo" / "baz.py").read_bytes() == b"y = 2\n"
    assert sorted(written) == sorted(
        [root / "README.txt", root / "lib" / "foo" / "bar.py", root / "lib" / "foo" / "baz.py"]
    )


def test_buildable_entries_inside_composites_build_into_their_path(tmp_path):
    result = Tree({"app": Stamp("built")})

    Materializer().materialize("install", result, tmp_path)

    assert (tmp_path / "install" / "app" / "stamp.txt").read_text(encoding="utf-8") == "built"


def test_buildable_root_writes_into_target_directory(tmp_path):
    written = Materializer().materialize("exe", Stamp("v1"), tmp_path)

    assert written == [tmp_path / "exe" / "stamp.txt"]


def test_path_entries_are_copied(tmp_path):
    source = tmp_path / "src.txt"
    source.write_text("copied", encoding="utf-8")
    source_dir = tmp_path / "assets"
    (source_dir / "img").mkdir(parents=True)
    (source_dir / "img" / "a.txt").write_text("a", encoding="utf-8")

    Materializer().materialize("pkg", Tree({"doc.txt": source, "share": source_dir}), tmp_path / "out")

    assert (tmp_path / "out" / "pkg" / "doc.txt").read_text(encoding="utf-8") == "copied"
    assert (tmp_path / "out" / "pkg" / "share" / "img" / "a.txt").read_text(encoding="utf-8") == "a"


@pytest.mark.skipif(os.name == "nt", reason="POSIX permission bits")
def test_executable_file_content_is_marked_executable(tmp_path):
    Materializer().materialize("tool", Tree({"bin/run": Blob(b"#!/bin/sh\n", executable=True)}), tmp_path)

    mode = (tmp_path / "tool" / "bin" / "run").stat().st_mode
    assert mode & stat.S_IXUSR


@pytest.mark.parametrize("bad_path", ["../escape.txt", "lib/../../escape.txt", "/etc/passwd"])
def test_paths_escaping_the_target_directory_are_rejected(tmp_path, bad_path):
    out = tmp_path / "out"

    with pytest.raises(MaterializationError, match=r"Target install failed to materialize") as excinfo:
        Materializer().materialize("install", Tree({bad_path: b"nope"}), out)

    assert excinfo.value.target == "install"
    assert excinfo.value.relative_path == bad_path
    assert isinstance(excinfo.value.cause, ValueError)
    assert not (tmp_path / "escape.txt").exists()


def test_nested_escape_reports_full_location(tmp_path):
    with pytest.raises(MaterializationError) as excinfo:
        Materializer().materialize("install", Tree({"lib": Tree({"../x": b""})}), tmp_path)

    assert excinfo.value.relative_path == "lib/../x"


def test_failing_build_action_names_target_and_path(tmp_path):
    with pytest.raises(MaterializationError, match=r"failed to materialize app: toolchain missing") as excinfo:
        Materializer().materialize("install", Tree({"app": BrokenBuild()}), tmp_path)

    assert excinfo.value.relative_path == "app"
    assert isinstance(excinfo.value.cause, BuildActionError)


def test_unsupported_entry_type(tmp_path):
    with pytest.raises(MaterializationError, match=r"Unsupported manifest entry \(type=int\)") as excinfo:
        Materializer().materialize("install", Tree({"count": 3}), tmp_path)

    assert excinfo.value.relative_path == "count"


def test_normalize_relative_path():
    assert normalize_relative_path("a/./b") == "a/b"
    assert normalize_relative_path("c.txt", prefix="lib/x") == "lib/x/c.txt"
    assert normalize_relative_path("win\\style.txt") == "win/style.txt"

    for bad in ["", "   ", ".", "../a", "/abs", "C:/x", None]:
        with pytest.raises(ValueError):
            normalize_relative_path(bad)


class FailingLookup:
    def entries(self):
        raise KeyError("manifest lookup")


class BadContent:
    def resolve(self) -> bytes:
        raise ValueError("checksum mismatch")


def test_entries_failure_is_wrapped(tmp_path):
    with pytest.raises(MaterializationError, match=r"manifest lookup") as excinfo:
        Materializer().materialize("install", Tree({"lib": FailingLookup()}), tmp_path)

    assert excinfo.value.relative_path == "lib"
    assert isinstance(excinfo.value.cause, KeyError)


def test_file_content_failure_is_wrapped(tmp_path):
    with pytest.raises(MaterializationError, match=r"checksum mismatch") as excinfo:
        Materializer().materialize("install", Tree({"data.bin": BadContent()}), tmp_path)

    assert excinfo.value.relative_path == "data.bin"


class Listed:
    def build(self, dest_dir):
        path = dest_dir / "fresh.txt"
        path.write_text("new", encoding="utf-8")
        return [path]


def test_build_outputs_come_from_the_build_action(tmp_path):
    stale = tmp_path / "exe" / "stale.txt"
    stale.parent.mkdir(parents=True)
    stale.write_text("old", encoding="utf-8")

    written = Materializer().materialize("exe", Listed(), tmp_path)

    assert written == [tmp_path / "exe" / "fresh.txt"]

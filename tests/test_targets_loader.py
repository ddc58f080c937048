import textwrap

import pytest

from targetkit import TargetConfigError, TargetRegistry

from packbuild.framework.config import BuildConfig
from packbuild.framework.loader import TargetLoadError, load_targets


def _targets_file(tmp_path, body: str):
    path = tmp_path / "targets.py"
    path.write_text(textwrap.dedent(body), encoding="utf-8")
    return path


def test_load_targets_registers_into_fresh_registry(tmp_path):
    path = _targets_file(
        tmp_path,
        """\
        def register_targets(registry):
            @registry.target("dist")
            def dist(deps):
                return []

            @registry.target("exe", depends=["dist"], default=True)
            def exe(deps):
                return deps["dist"]
        """,
    )

    registry = load_targets(path)

    assert registry.names() == ("dist", "exe")
    assert [target.name for target in registry.list_defaults()] == ["exe"]


def test_load_targets_extends_given_registry(tmp_path):
    path = _targets_file(
        tmp_path,
        """\
        def register_targets(registry):
            registry.register("extra", lambda deps: 1, ["base"])
        """,
    )
    registry = TargetRegistry()
    registry.register("base", lambda deps: 0)

    returned = load_targets(path, registry)

    assert returned is registry
    assert registry.names() == ("base", "extra")


def test_hook_may_receive_build_config(tmp_path):
    path = _targets_file(
        tmp_path,
        """\
        def register_targets(registry, cfg):
            registry.register("where", lambda deps: cfg.output_root)
        """,
    )
    cfg, _warnings = BuildConfig.from_dict({"build": {"output_root": "elsewhere"}}, base_dir=str(tmp_path))

    registry = load_targets(path, cfg=cfg)

    assert registry.get("where").fn({}) == cfg.output_root


def test_missing_file(tmp_path):
    with pytest.raises(TargetLoadError, match=r"file does not exist"):
        load_targets(tmp_path / "nope.py")


def test_missing_hook(tmp_path):
    path = _targets_file(tmp_path, "TARGETS = []\n")

    with pytest.raises(TargetLoadError, match=r"missing callable register_targets\(registry\)"):
        load_targets(path)


def test_errors_while_importing_are_wrapped(tmp_path):
    path = _targets_file(tmp_path, "raise RuntimeError('boom')\n")

    with pytest.raises(TargetLoadError, match=r"RuntimeError: boom") as excinfo:
        load_targets(path)

    assert isinstance(excinfo.value, TargetConfigError)
    assert excinfo.value.path.endswith("targets.py")


def test_errors_inside_hook_propagate(tmp_path):
    path = _targets_file(
        tmp_path,
        """\
        def register_targets(registry):
            registry.register("a", lambda deps: 1)
            registry.register("a", lambda deps: 2)
        """,
    )

    with pytest.raises(TargetConfigError, match=r"Duplicate target: a"):
        load_targets(path)


def test_invalid_declaration_inside_hook_is_a_load_error(tmp_path):
    path = _targets_file(
        tmp_path,
        """\
        def register_targets(registry):
            registry.register("a", None)
        """,
    )

    with pytest.raises(
        TargetLoadError, match=r"register_targets failed: TypeError: Target\.fn must be callable"
    ) as excinfo:
        load_targets(path)

    assert isinstance(excinfo.value.__cause__, TypeError)

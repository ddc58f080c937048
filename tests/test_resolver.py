import pytest

from targetkit import (
    CyclicDependencyError,
    NoDefaultTargetsError,
    TargetRegistry,
    UnknownTargetError,
    resolve,
)


def _never_called(deps):
    raise AssertionError("resolution must not invoke target functions")


def _registry(edges: dict[str, list[str]], *, defaults: tuple[str, ...] = ()) -> TargetRegistry:
    registry = TargetRegistry()
    for name, deps in edges.items():
        registry.register(name, _never_called, deps, is_default=name in defaults)
    return registry


def test_defaults_resolve_to_dependency_order():
    registry = _registry(
        {"dist": [], "exe": ["dist"], "install": ["exe"]},
        defaults=("install",),
    )

    plan = resolve(registry, [])

    assert plan.order == ("dist", "exe", "install")
    assert plan.roots == ("install",)
    assert plan.from_defaults is True
    assert plan.is_root("install")
    assert not plan.is_root("dist")


def test_diamond_dependency_appears_once():
    registry = _registry({"a": [], "b": ["a"], "c": ["a"], "d": ["b", "c"]})

    plan = resolve(registry, ["d"])

    assert plan.order == ("a", "b", "c", "d")
    assert plan.from_defaults is False


def test_roots_are_visited_in_requested_order():
    registry = _registry({"a": [], "b": ["a"], "c": ["a"]})

    assert resolve(registry, ["c", "b"]).order == ("a", "c", "b")
    assert resolve(registry, ["b", "c"]).order == ("a", "b", "c")


def test_dependencies_follow_declaration_order():
    registry = _registry({"x": [], "y": [], "top": ["y", "x"]})

    assert resolve(registry, ["top"]).order == ("y", "x", "top")


def test_resolution_is_deterministic():
    registry = _registry({"a": [], "b": ["a"], "c": ["b", "a"], "d": ["c", "b"]})

    plans = {resolve(registry, ["d", "a"]).order for _ in range(5)}

    assert len(plans) == 1


def test_duplicate_requested_names_are_collapsed():
    registry = _registry({"a": [], "b": ["a"]})

    plan = resolve(registry, ["b", "b", " b "])

    assert plan.order == ("a", "b")
    assert plan.roots == ("b",)


def test_cycle_is_reported_with_participants():
    registry = _registry({"a": ["b"], "b": ["a"]})

    with pytest.raises(CyclicDependencyError, match=r"Cyclic dependency: a -> b -> a") as excinfo:
        resolve(registry, ["a"])

    assert excinfo.value.cycle == ("a", "b", "a")


def test_cycle_reported_from_the_entry_point_into_the_loop():
    registry = _registry({"top": ["a"], "a": ["b"], "b": ["c"], "c": ["a"]})

    with pytest.raises(CyclicDependencyError) as excinfo:
        resolve(registry, ["top"])

    assert excinfo.value.cycle == ("a", "b", "c", "a")


def test_self_dependency_is_a_cycle():
    registry = _registry({"a": ["a"]})

    with pytest.raises(CyclicDependencyError) as excinfo:
        resolve(registry, ["a"])

    assert excinfo.value.cycle == ("a", "a")


def test_unknown_requested_target():
    registry = _registry({"a": []})

    with pytest.raises(UnknownTargetError, match=r"Unknown target: nope"):
        resolve(registry, ["nope"])


def test_unknown_dependency_names_referencing_target():
    registry = _registry({"exe": ["dist"]})

    with pytest.raises(UnknownTargetError, match=r"dependency of exe") as excinfo:
        resolve(registry, ["exe"])

    assert excinfo.value.target == "dist"
    assert excinfo.value.referenced_by == "exe"


def test_no_request_and_no_defaults():
    registry = _registry({"a": []})

    with pytest.raises(NoDefaultTargetsError):
        resolve(registry)


def test_requested_must_not_be_a_bare_string():
    registry = _registry({"a": []})

    with pytest.raises(TypeError, match=r"not a string"):
        resolve(registry, "a")


def test_long_dependency_chain_resolves_without_recursion_limit():
    registry = TargetRegistry()
    registry.register("t0", _never_called)
    for idx in range(1, 2000):
        registry.register(f"t{idx}", _never_called, [f"t{idx - 1}"])

    plan = resolve(registry, ["t1999"])

    assert plan.order == tuple(f"t{idx}" for idx in range(2000))


def test_long_chain_closing_into_a_cycle_is_reported():
    registry = TargetRegistry()
    registry.register("t0", _never_called, ["t1999"])
    for idx in range(1, 2000):
        registry.register(f"t{idx}", _never_called, [f"t{idx - 1}"])

    with pytest.raises(CyclicDependencyError) as excinfo:
        resolve(registry, ["t1999"])

    assert len(excinfo.value.cycle) == 2001
    assert excinfo.value.cycle[0] == excinfo.value.cycle[-1] == "t1999"

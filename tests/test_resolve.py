"""Tests for ScopedRegistry.resolve — descent, shadowing, and fallback."""

import pytest

from canopy.config import RegistryConfig
from canopy.errors import InvalidPatternError
from canopy.pattern import parse_pattern
from canopy.registry import ScopedRegistry


def _h1() -> str:
    return "h1"


def _h2() -> str:
    return "h2"


@pytest.fixture
def tree() -> dict[str, ScopedRegistry]:
    """ROOT -> DOMAIN -> CONTEXT, plus a sibling context and domain."""
    root = ScopedRegistry("root")
    domain = root.create_child("domain")
    context = domain.create_child("context")
    sibling = domain.create_child("sibling")
    other = root.create_child("other")
    return {
        "root": root,
        "domain": domain,
        "context": context,
        "sibling": sibling,
        "other": other,
    }


class TestLocal:
    def test_unscoped_pattern(self) -> None:
        registry = ScopedRegistry("server")
        registry.register("DO_THING", _h1)
        assert registry.resolve("DO_THING") == [_h1]

    def test_self_scoped_pattern(self) -> None:
        registry = ScopedRegistry("server")
        registry.register("DO_THING", _h1)
        assert registry.resolve("server::do_thing") == [_h1]

    def test_case_insensitive(self) -> None:
        registry = ScopedRegistry("server")
        registry.register("Foo::Bar", _h1)
        assert registry.resolve("foo::BAR") == [_h1]

    def test_missing_returns_empty(self) -> None:
        assert ScopedRegistry("server").resolve("NOTHING::HERE") == []

    def test_result_is_a_copy(self) -> None:
        registry = ScopedRegistry("server")
        registry.register("X", _h1)

        result = registry.resolve("X")
        result.append(_h2)
        assert registry.resolve("X") == [_h1]

    def test_invalid_pattern_raises(self) -> None:
        with pytest.raises(InvalidPatternError):
            ScopedRegistry("server").resolve("a::::b")

    def test_register_then_resolve_from_any_node(self, tree: dict[str, ScopedRegistry]) -> None:
        for name, node in tree.items():
            pattern = f"{name}_ACTION"
            node.register(pattern, _h1)
            node.register(pattern, _h1)
            assert node.resolve(pattern) == [_h1], name

    def test_custom_delimiter(self) -> None:
        root = ScopedRegistry("root", config=RegistryConfig(delimiter="."))
        root.create_child("users").register("create", _h1)
        assert root.resolve("users.create") == [_h1]

    def test_parsed_pattern_with_other_delimiter(self) -> None:
        root = ScopedRegistry("root", config=RegistryConfig(delimiter="."))
        root.create_child("users").register("create", _h1)
        assert root.resolve(parse_pattern("users::create")) == [_h1]  # type: ignore[arg-type]


class TestDescent:
    def test_end_to_end(self, tree: dict[str, ScopedRegistry]) -> None:
        root, context = tree["root"], tree["context"]
        context.register("DO_THING", _h1)

        assert root.resolve("DOMAIN::CONTEXT::DO_THING") == [_h1]

        context.unregister("DOMAIN::CONTEXT::DO_THING", _h1)
        assert root.resolve("DOMAIN::CONTEXT::DO_THING") == []

    def test_fully_qualified_from_root(self, tree: dict[str, ScopedRegistry]) -> None:
        tree["context"].register("DO_THING", _h1)
        assert tree["root"].resolve("ROOT::DOMAIN::CONTEXT::DO_THING") == [_h1]

    def test_partially_qualified_from_domain(self, tree: dict[str, ScopedRegistry]) -> None:
        tree["context"].register("DO_THING", _h1)
        assert tree["domain"].resolve("CONTEXT::DO_THING") == [_h1]

    def test_sibling_lookup(self, tree: dict[str, ScopedRegistry]) -> None:
        tree["sibling"].register("READ", _h1)
        assert tree["context"].resolve("SIBLING::READ") == [_h1]

    def test_cousin_lookup(self, tree: dict[str, ScopedRegistry]) -> None:
        tree["other"].register("READ", _h1)
        assert tree["context"].resolve("OTHER::READ") == [_h1]

    def test_matched_scope_is_authoritative(self, tree: dict[str, ScopedRegistry]) -> None:
        tree["root"].register("READ", _h1)
        assert tree["context"].resolve("CONTEXT::READ") == []

    def test_scope_name_alone_is_not_a_descent(self, tree: dict[str, ScopedRegistry]) -> None:
        tree["root"].register("CONTEXT", _h1)
        assert tree["domain"].resolve("CONTEXT") == [_h1]


class TestShadowing:
    def test_child_registration_wins(self) -> None:
        root = ScopedRegistry("r")
        child = root.create_child("c")
        root.register("C::X", _h1)
        child.register("X", _h2)

        assert root.resolve("C::X") == [_h2]

    def test_child_without_entry_still_wins(self) -> None:
        root = ScopedRegistry("r")
        root.create_child("c")
        root.register("C::X", _h1)

        assert root.resolve("C::X") == []

    def test_nested_override(self, tree: dict[str, ScopedRegistry]) -> None:
        tree["root"].register("FORMAT", _h1)
        tree["context"].register("FORMAT", _h2)

        assert tree["context"].resolve("FORMAT") == [_h2]
        assert tree["sibling"].resolve("FORMAT") == [_h1]


class TestFallback:
    def test_grandchild_climbs_to_root(self) -> None:
        root = ScopedRegistry("r")
        child = root.create_child("c")
        grandchild = child.create_child("g")
        root.register("Y", _h1)

        assert grandchild.resolve("R::Y") == [_h1]

    def test_unscoped_bubbles_up(self, tree: dict[str, ScopedRegistry]) -> None:
        tree["domain"].register("AUDIT", _h1)
        assert tree["context"].resolve("AUDIT") == [_h1]

    def test_nothing_anywhere(self, tree: dict[str, ScopedRegistry]) -> None:
        assert tree["context"].resolve("NOWHERE::X") == []

    def test_detached_node_does_not_climb(self) -> None:
        root = ScopedRegistry("r")
        root.register("Y", _h1)
        orphan = ScopedRegistry("c")

        assert orphan.resolve("R::Y") == []

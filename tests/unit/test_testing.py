"""Tests for the pytest helpers in typeprobe.testing."""

from __future__ import annotations

from typeprobe.descriptor import TypeKind
from typeprobe.session_types import SessionConfig, SessionState
from typeprobe.testing import ReflectTest


def test_sources_fixture_is_open(sources):
    assert sources.state == SessionState.OPEN
    assert sources.snippets == {}


class TestReflectTestLifecycle(ReflectTest):
    @classmethod
    def define_sources(cls, sources):
        cls.X = sources.add("X", "class X:\n    pass")
        cls.types = sources.types()
        cls.types.add("tuple[X, ...]")
        with cls.types.block("T") as block:
            block.add("T")

    def initialize_for_test(self):
        self.prepared = True

    def test_class_handle_reads_as_compiled_class(self):
        assert isinstance(self.X, type)
        assert self.X.__name__ == "X"

    def test_type_set_is_compiled(self):
        assert self.types["tuple[X, ...]"].component.target is self.X
        assert self.types.plain["T"].kind == TypeKind.TYPE_VARIABLE

    def test_each_test_gets_fresh_sources(self):
        assert self.class_sources.state == SessionState.COMPILED
        assert self.sources.state == SessionState.OPEN
        assert self.sources is not self.class_sources
        assert self.prepared


class TestReflectTestConfig(ReflectTest):
    config = SessionConfig(root_package="fixtures")

    @classmethod
    def define_sources(cls, sources):
        cls.X = sources.add("inner.X", "class X:\n    pass")

    def test_custom_root_package(self):
        assert self.X.__module__ == "fixtures.inner"
        assert self.sources.root_package == "fixtures"

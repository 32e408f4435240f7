"""Tests for the per-name descriptor cache."""

from __future__ import annotations

from typeprobe.cache import TypeDescriptorCache
from typeprobe.descriptor import DescriptorPair, TypeDescriptor, TypeKind


def _pair(name: str) -> DescriptorPair:
    descriptor = TypeDescriptor(kind=TypeKind.CLASS, name=name)
    return DescriptorPair(plain=descriptor, annotated=descriptor)


class TestTypeDescriptorCache:
    def test_computes_once_per_name(self):
        cache = TypeDescriptorCache()
        calls = []

        def compute():
            calls.append(1)
            return _pair("int")

        first = cache.get_or_compute("int", compute)
        second = cache.get_or_compute("int", compute)
        assert first is second
        assert len(calls) == 1

    def test_names_are_independent(self):
        cache = TypeDescriptorCache()
        cache.get_or_compute("a", lambda: _pair("a"))
        cache.get_or_compute("b", lambda: _pair("b"))
        assert len(cache) == 2
        assert "a" in cache
        assert "c" not in cache

    def test_published_value_is_kept(self):
        cache = TypeDescriptorCache()
        published = cache.get_or_compute("x", lambda: _pair("first"))
        assert cache.get_or_compute("x", lambda: _pair("second")) is published

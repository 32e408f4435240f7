"""pytest integration for tests that reflect over runtime-compiled sources.

Import the ``sources`` fixture into a ``conftest.py`` to get a fresh session
per test, or subclass ``ReflectTest``:

```python
class TestGenerics(ReflectTest):
    @classmethod
    def define_sources(cls, sources):
        cls.X = sources.add("X", "class X: pass")
        cls.types = sources.types()
        cls.types.add("tuple[X, ...]")

    def test_array(self):
        assert self.types["tuple[X, ...]"].component.target is self.X
```
"""

from __future__ import annotations

import logging

import pytest

from . import reflect
from .session import Session
from .session_types import SessionConfig

logger = logging.getLogger(__name__)


@pytest.fixture
def sources() -> Session:
    """A fresh, uncompiled session."""
    return Session()


class ReflectTest:
    """Base class whose class-level sources are compiled once before any test.

    ``define_sources`` runs against the class session in ``setup_class``;
    handles stored on the class resolve through the descriptor protocol, so
    ``self.X`` is the compiled class. Each test also receives its own fresh
    ``self.sources``, unrelated to the class session, which it must compile
    itself.
    """

    config: SessionConfig | None = None
    class_sources: Session

    # Member helpers, callable as self.find_and_call(instance, "name", ...)
    find_method = staticmethod(reflect.find_method)
    get_inner_class = staticmethod(reflect.get_inner_class)
    new_instance = staticmethod(reflect.new_instance)
    call = staticmethod(reflect.call)
    find_and_call = staticmethod(reflect.find_and_call)
    find_and_call_static = staticmethod(reflect.find_and_call_static)
    find_and_get = staticmethod(reflect.find_and_get)
    find_and_set = staticmethod(reflect.find_and_set)
    find_and_get_static = staticmethod(reflect.find_and_get_static)
    find_and_set_static = staticmethod(reflect.find_and_set_static)

    @classmethod
    def define_sources(cls, sources: Session) -> None:
        """Override to declare snippets and type sets shared by every test."""

    @classmethod
    def setup_class(cls) -> None:
        cls.class_sources = Session(cls.config)
        cls.define_sources(cls.class_sources)
        logger.debug("Compiling class sources for %s", cls.__name__)
        cls.class_sources.compile()

    def setup_method(self, method) -> None:
        self.sources = Session(self.config)
        self.initialize_for_test()

    def initialize_for_test(self) -> None:
        """Called before each test, after ``sources`` has been reset."""

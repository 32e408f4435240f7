"""Demo: declare snippets and scoped type probes, compile, and print what resolved."""

import logging

from typeprobe.api import dump_sources, probe_field_source
from typeprobe.errors import CompileError
from typeprobe.session import Session


def _declare(sources):
    sources.add(
        "Tag",
        """
        @meta
        class Tag:
            label: str
        """,
    )
    sources.add("Node", "class Node:\n    pass")
    types = sources.types()
    types.add("nodes", "tuple[Node, ...]")
    types.add("tagged", "Annotated[Node, Tag('root')]")
    with types.block("K", "V") as block:
        block.add("mapping", "dict[K, list[V]]")
        with block.block("T: Node") as inner:
            inner.add("bounded", "Callable[[T], V]")
    return types


def main():
    logging.basicConfig(level=logging.INFO)
    sources = Session()
    types = _declare(sources)

    print("=" * 60)
    print("GENERATED SOURCES:")
    print(dump_sources(sources))

    print("=" * 60)
    print("RESOLVED TYPES:")
    print("=" * 60)
    sources.compile()
    for name in ("nodes", "tagged", "mapping", "bounded"):
        pair = types.resolve(name)
        print(f"    {name}")
        print(f"        field     = {probe_field_source(sources, name)}")
        print(f"        plain     = {pair.plain}")
        print(f"        annotated = {pair.annotated}")
        for argument in pair.plain.arguments:
            if argument.owner:
                print(f"        {argument.name} owned by {argument.owner}")

    print()
    print("=" * 60)
    print("OUT-OF-SCOPE REFERENCE:")
    print("=" * 60)
    broken = Session()
    broken_types = broken.types()
    with broken_types.block("T") as block:
        block.add("T")
    broken_types.add("stray", "T")
    try:
        broken.compile()
    except CompileError as error:
        print(error)


if __name__ == "__main__":
    main()

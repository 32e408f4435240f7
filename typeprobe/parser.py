"""Tree-sitter access for the Python sources a session generates."""

from __future__ import annotations

from abc import ABC, abstractmethod

from tree_sitter import Tree

from . import constants


class SourceParserFactory(ABC):
    """Supplies the parser used to navigate generated sources."""

    @abstractmethod
    def get_parser(self): ...


class TreeSitterParserFactory(SourceParserFactory):
    """Python parser from tree-sitter-language-pack, created on first use."""

    def __init__(self):
        self._parser = None

    def get_parser(self):
        if self._parser is None:
            import tree_sitter_language_pack as tslp

            self._parser = tslp.get_parser(constants.SOURCE_LANGUAGE)
        return self._parser


_default_factory = TreeSitterParserFactory()


def parse_source(source: str, factory: SourceParserFactory | None = None) -> Tree:
    """Parse generated *source* into a syntax tree."""
    parser = (factory or _default_factory).get_parser()
    return parser.parse(source.encode("utf-8"))

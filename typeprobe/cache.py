"""Per-name memo of resolved descriptor pairs."""

from __future__ import annotations

import logging
from typing import Callable

from .descriptor import DescriptorPair

logger = logging.getLogger(__name__)


class TypeDescriptorCache:
    """Compute-and-publish-once cache keyed by probe name.

    Two callers racing on the same name may both compute, but only the
    first published pair is ever returned.
    """

    def __init__(self):
        self._entries: dict[str, DescriptorPair] = {}

    def get_or_compute(
        self, name: str, compute: Callable[[], DescriptorPair]
    ) -> DescriptorPair:
        found = self._entries.get(name)
        if found is not None:
            logger.debug("Descriptor cache hit for %r", name)
            return found
        return self._entries.setdefault(name, compute())

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)

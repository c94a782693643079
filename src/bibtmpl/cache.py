"""Parse cache - template text to parsed :class:`Template`.

Users configure a handful of templates, but a live preview re-parses on every
keystroke, so the cache is a small LRU guarded by a single lock.
"""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from typing import Optional

from bibtmpl.ast.nodes import Template
from bibtmpl.ast.parser import Parser

log = logging.getLogger(__name__)

DEFAULT_CACHE_SIZE = 256


class TemplateCache:
    """Insert-or-fetch map of parsed templates.

    ``maxsize=0`` disables eviction. Syntax errors are not cached; a broken
    template raises on every lookup.
    """

    def __init__(self, maxsize: int = DEFAULT_CACHE_SIZE, parser: Optional[Parser] = None):
        if maxsize < 0:
            raise ValueError(f"maxsize must be >= 0, got {maxsize}")
        self.maxsize = maxsize
        self.parser = parser or Parser()
        self._entries: OrderedDict[str, Template] = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get(self, source: str) -> Template:
        """Return the parsed template for ``source``, parsing it if needed."""
        with self._lock:
            cached = self._entries.get(source)
            if cached is not None:
                self._entries.move_to_end(source)
                self.hits += 1
                return cached

        # Parse outside the lock; a duplicate parse of the same text is harmless
        template = self.parser.parse(source)

        with self._lock:
            self.misses += 1
            self._entries[source] = template
            self._entries.move_to_end(source)
            if self.maxsize and len(self._entries) > self.maxsize:
                evicted, _ = self._entries.popitem(last=False)
                log.debug("Evicted template from cache (%d chars)", len(evicted))
            log.debug("Cached template (%d entries)", len(self._entries))
        return template

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, source: str) -> bool:
        with self._lock:
            return source in self._entries

"""Tests for the parse cache."""

import threading

import pytest

from bibtmpl.ast.parser import Parser
from bibtmpl.cache import TemplateCache
from bibtmpl.exceptions import SectionMismatchError


class CountingParser(Parser):
    def __init__(self):
        super().__init__()
        self.calls = 0

    def parse(self, source):
        self.calls += 1
        return super().parse(source)


class TestTemplateCache:
    def test_same_text_returns_same_tree(self):
        cache = TemplateCache()
        first = cache.get("{{a|upper}}")
        assert cache.get("{{a|upper}}") is first
        assert (cache.hits, cache.misses) == (1, 1)

    def test_parses_once(self):
        parser = CountingParser()
        cache = TemplateCache(parser=parser)
        for _ in range(10):
            cache.get("{{title}}")
        assert parser.calls == 1

    def test_lru_eviction(self):
        cache = TemplateCache(maxsize=2)
        cache.get("a")
        cache.get("b")
        cache.get("a")  # "b" is now least recently used
        cache.get("c")
        assert "a" in cache
        assert "b" not in cache
        assert "c" in cache
        assert len(cache) == 2

    def test_zero_means_unbounded(self):
        cache = TemplateCache(maxsize=0)
        for i in range(50):
            cache.get(f"t{i}")
        assert len(cache) == 50

    def test_negative_size_rejected(self):
        with pytest.raises(ValueError):
            TemplateCache(maxsize=-1)

    def test_syntax_errors_are_not_cached(self):
        cache = TemplateCache()
        for _ in range(2):
            with pytest.raises(SectionMismatchError):
                cache.get("{{#a}}{{/b}}")
        assert len(cache) == 0

    def test_clear(self):
        cache = TemplateCache()
        cache.get("x")
        cache.clear()
        assert len(cache) == 0
        assert cache.hits == cache.misses == 0

    def test_concurrent_access(self):
        cache = TemplateCache(maxsize=8)
        errors = []

        def worker(n):
            try:
                for i in range(200):
                    template = cache.get(f"{{{{v{(n + i) % 12}}}}}")
                    assert template.nodes[0].path == f"v{(n + i) % 12}"
            except Exception as exc:  # pragma: no cover
                errors.append(exc)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert len(cache) <= 8

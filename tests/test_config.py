"""Tests for engine settings and the engine object."""

import pytest
from pydantic import ValidationError

from bibtmpl import RenderMode, TemplateEngine
from bibtmpl.config import EngineSettings, find_settings_file, load_settings
from bibtmpl.engine.filters import DEFAULT_REGISTRY


class TestEngineSettings:
    def test_defaults(self):
        settings = EngineSettings()
        assert settings.cache_size == 256
        assert settings.default_mode is RenderMode.NORMAL
        assert settings.stop_words is None

    def test_load_yaml(self, tmp_path):
        path = tmp_path / "bibtmpl.yaml"
        path.write_text("cache_size: 4\ndefault_mode: citekey\nstop_words: [dune]\n")
        settings = EngineSettings.load(path)
        assert settings.cache_size == 4
        assert settings.default_mode is RenderMode.CITEKEY
        assert settings.stop_words == ["dune"]

    def test_missing_file_gives_defaults(self, tmp_path):
        assert EngineSettings.load(tmp_path / "nope.yaml") == EngineSettings()

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "bibtmpl.yaml"
        path.write_text("")
        assert EngineSettings.load(path) == EngineSettings()

    def test_non_mapping_rejected(self, tmp_path):
        path = tmp_path / "bibtmpl.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ValueError):
            EngineSettings.load(path)

    def test_invalid_values_rejected(self):
        with pytest.raises(ValidationError):
            EngineSettings(cache_size=-1)
        with pytest.raises(ValidationError):
            EngineSettings(default_mode="loud")

    def test_env_overrides(self):
        env = {"BIBTMPL_CACHE_SIZE": "3", "BIBTMPL_DEFAULT_MODE": "array"}
        settings = EngineSettings().with_env(env)
        assert settings.cache_size == 3
        assert settings.default_mode is RenderMode.ARRAY

    def test_no_env_overrides_returns_self(self):
        settings = EngineSettings()
        assert settings.with_env({}) is settings

    def test_registry(self):
        assert EngineSettings().build_registry() is DEFAULT_REGISTRY
        custom = EngineSettings(stop_words=["dune"]).build_registry()
        assert custom.apply("Dune Messiah", ["titleword"]) == "Messiah"


class TestSettingsFile:
    def test_found_in_parent(self, tmp_path):
        (tmp_path / "bibtmpl.yaml").write_text("cache_size: 1\n")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        assert find_settings_file(nested) == tmp_path / "bibtmpl.yaml"

    def test_load_settings_applies_env(self, tmp_path, monkeypatch):
        path = tmp_path / "bibtmpl.yaml"
        path.write_text("cache_size: 1\n")
        monkeypatch.setenv("BIBTMPL_CACHE_SIZE", "9")
        assert load_settings(path).cache_size == 9


class TestTemplateEngine:
    def test_default_mode_does_not_change_library_renders(self):
        engine = TemplateEngine(EngineSettings(default_mode="citekey"))
        ctx = {"a": "J. Doe", "b": "x/y"}
        assert engine.render("{{a}} {{b}}", ctx) == "J. Doe x/y"
        assert engine.render("{{a}} {{b}}", ctx, sanitize_for_citekey=False) == "J. Doe x/y"

    def test_explicit_flags_select_mode(self):
        engine = TemplateEngine(EngineSettings(default_mode="citekey"))
        assert engine.render("{{a}}!", {"a": "x"}, yaml_array=True) == "x!"
        engine = TemplateEngine()
        assert engine.render("{{a}}!", {"a": "x"}, sanitize_for_citekey=True) == "x"

    def test_cache_size_is_applied(self):
        engine = TemplateEngine(EngineSettings(cache_size=1))
        engine.parse("a")
        engine.parse("b")
        assert len(engine.cache) == 1

    def test_stop_words_reach_the_parser(self):
        engine = TemplateEngine(EngineSettings(stop_words=["dune"]))
        assert engine.render("{{t|titleword}}", {"t": "Dune Messiah"}) == "Messiah"

    def test_lookup(self):
        engine = TemplateEngine()
        ctx = {"issued": {"date-parts": [[2024]]}}
        assert engine.lookup("issued.date-parts.0.0", ctx) == 2024
        assert engine.lookup("issued.month", ctx) is None

    def test_clear_cache(self):
        engine = TemplateEngine()
        engine.parse("x")
        engine.clear_cache()
        assert len(engine.cache) == 0

    def test_unsupported_context_value(self):
        with pytest.raises(TypeError):
            TemplateEngine().render("{{a}}", {"a": object()})

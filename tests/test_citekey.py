"""Tests for citekey generation."""

import pytest

from bibtmpl.citekey import (
    CitekeyOptions,
    convert_legacy_template,
    extract_author,
    extract_year,
    generate_citekey,
    prepare_citekey_variables,
)
from bibtmpl.exceptions import CitekeyError, TemplateSyntaxError

SMITH = {
    "id": "ABCD1234",
    "title": "The Art of Computer Programming",
    "author": [{"family": "Smith", "given": "Anna"}, {"family": "Jones"}],
    "issued": {"date-parts": [[2024, 5]]},
}

NO_ZOTERO = CitekeyOptions(use_zotero_keys=False)


# =============================================================================
# Field extraction
# =============================================================================


class TestExtractAuthor:
    def test_family_name(self):
        assert extract_author(SMITH) == "smith"

    def test_literal_name_first_word(self):
        assert extract_author({"author": [{"literal": "World Health Organization"}]}) == "world"

    def test_zotero_creators(self):
        citation = {
            "creators": [
                {"creatorType": "editor", "lastName": "Ed"},
                {"creatorType": "author", "lastName": "Doe"},
            ]
        }
        assert extract_author(citation) == "doe"

    def test_string_author(self):
        assert extract_author({"author": ["Doe, John"]}) == "doe"
        assert extract_author({"author": ["John Doe"]}) == "john"

    def test_non_key_characters_dropped(self):
        assert extract_author({"author": [{"family": "O'Brien"}]}) == "obrien"

    def test_unknown(self):
        assert extract_author({}) == "unknown"


class TestExtractYear:
    @pytest.mark.parametrize(
        "citation,expected",
        [
            (SMITH, "2024"),
            ({"issued": {"date-parts": [["1999"]]}}, "1999"),
            ({"year": "c. 1987"}, "1987"),
            ({"issued": {"literal": "Spring 2001"}}, "2001"),
            ({"date": "2010-05-01"}, "2010"),
            ({"issued": "1976"}, "1976"),
            ({"issued": {"date-parts": [[12]]}, "year": 1950}, "1950"),
            ({"issued": {"date-parts": [["2023-05"]]}}, "2023"),
            ({"issued": {"date-parts": [[2023.0, 5]]}}, "2023"),
            ({"issued": {"date-parts": [[" 1999"]]}}, "1999"),
            ({"issued": {"date-parts": [["n.d."]]}, "year": "2002"}, "2002"),
            ({}, ""),
        ],
    )
    def test_sources(self, citation, expected):
        assert extract_year(citation) == expected


def test_prepare_citekey_variables():
    variables = prepare_citekey_variables(SMITH)
    assert variables["author"] == "smith"
    assert variables["year"] == "2024"
    assert variables["shorttitle"] == "artcomputerprogramming"
    assert variables["authors"] == SMITH["author"]
    assert variables["id"] == "ABCD1234"


# =============================================================================
# Legacy templates
# =============================================================================


@pytest.mark.parametrize(
    "legacy,converted",
    [
        ("[auth:lower][year]", "{{author|lower}}{{year}}"),
        ("[auth:abbr(3)][year]", "{{author|abbr3}}{{year}}"),
        ("[title:words(1)]", "{{title|titleword}}"),
        ("[shorttitle:words(3)]", "{{shorttitle|shorttitle}}"),
        ("{{author}}{{year}}", "{{author}}{{year}}"),
        ("key_[year]", "key_{{year}}"),
    ],
)
def test_convert_legacy_template(legacy, converted):
    assert convert_legacy_template(legacy) == converted


# =============================================================================
# Generation
# =============================================================================


class TestGenerateCitekey:
    def test_zotero_key_first(self):
        assert generate_citekey(SMITH) == "ABCD1234"
        assert generate_citekey({"key": " K1 ", "title": "x"}) == "K1"

    def test_default_template(self):
        assert generate_citekey(SMITH, NO_ZOTERO) == "smith2024"

    def test_custom_template_is_sanitised(self):
        options = CitekeyOptions(
            template="{{author|capitalize}}-{{year}}: {{title|titleword}}", use_zotero_keys=False
        )
        assert generate_citekey(SMITH, options) == "Smith-2024Computer"

    def test_legacy_template(self):
        options = CitekeyOptions(template="[auth:abbr(3)][year]", use_zotero_keys=False)
        assert generate_citekey(SMITH, options) == "smi2024"

    def test_shorttitle_filter_matches_variable(self):
        options = CitekeyOptions(template="{{title|shorttitle}}{{year}}", use_zotero_keys=False)
        citation = {"title": "A Study on Machine Learning", "issued": {"date-parts": [["2023-05"]]}}
        assert generate_citekey(citation, options) == "studymachinelearning2023"
        assert prepare_citekey_variables(citation)["shorttitle"] == "studymachinelearning"

    def test_short_keys_get_stable_suffix(self):
        options = CitekeyOptions(template="{{author}}", use_zotero_keys=False)
        citation = {"author": [{"family": "Li"}]}
        first = generate_citekey(citation, options)
        assert first.startswith("li")
        assert len(first) == 5
        assert first[2:].isdigit()
        assert generate_citekey(citation, options) == first

    def test_min_length_zero_disables_suffix(self):
        options = CitekeyOptions(template="{{author}}", use_zotero_keys=False, min_length=0)
        assert generate_citekey({"author": [{"family": "Li"}]}, options) == "li"

    def test_empty_render_raises(self):
        options = CitekeyOptions(template="{{nothing}}", use_zotero_keys=False)
        with pytest.raises(CitekeyError):
            generate_citekey(SMITH, options)

    def test_broken_template_raises(self):
        options = CitekeyOptions(template="{{#author}}", use_zotero_keys=False)
        with pytest.raises(TemplateSyntaxError):
            generate_citekey(SMITH, options)

    def test_fallback_without_template(self):
        options = CitekeyOptions(template="  ", use_zotero_keys=False)
        assert generate_citekey(SMITH, options) == "smith2024"
        assert generate_citekey({"title": "Untitled"}, options) == "unknownnd"

    @pytest.mark.parametrize("citation", [None, {}, "smith2024", ["a"]])
    def test_no_usable_citation(self, citation):
        with pytest.raises(CitekeyError):
            generate_citekey(citation)

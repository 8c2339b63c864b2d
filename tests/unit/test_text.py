"""Tests for artist name cleaning."""

import pytest

from scrapers.venue_lineups.text import clean, collapse_whitespace, normalize_key, strip_title_noise


class TestClean:
    """Tests for clean()."""

    def test_strips_presenter_prefix(self):
        """Should drop an "X Presents:" prefix."""
        assert clean("Mohawk Presents: Band Alpha") == "Band Alpha"

    def test_strips_pres_abbreviation(self):
        """Should drop an "X Pres.:" prefix."""
        assert clean("Transmission Pres.: Band Alpha") == "Band Alpha"

    def test_strips_at_sign_time(self):
        """Should remove "@ 9pm" fragments."""
        assert clean("Band Alpha @ 9pm") == "Band Alpha"

    def test_strips_at_word_time(self):
        """Should remove "at 9:30 pm" fragments."""
        assert clean("Band Alpha at 9:30 pm") == "Band Alpha"

    def test_strips_trailing_descriptor(self):
        """Should remove a trailing " - tour" segment."""
        assert clean("Band Alpha - Farewell Tour") == "Band Alpha"

    def test_keeps_hyphenated_names(self):
        """A dash without leading whitespace is part of the name."""
        assert clean("Jay-Z") == "Jay-Z"

    def test_strips_parentheticals(self):
        """Should remove parenthetical asides."""
        assert clean("Band Alpha (Record Release)") == "Band Alpha"

    def test_normalizes_curly_quotes(self):
        """Curly quotes become straight quotes."""
        assert clean("Guns ’n’ Roses") == "Guns 'n' Roses"
        assert clean("“Weird Al” Yankovic") == '"Weird Al" Yankovic'

    def test_collapses_nbsp(self):
        """NBSP counts as whitespace."""
        assert clean("Band\u00a0 Alpha") == "Band Alpha"

    def test_trims_edge_punctuation(self):
        """Leading and trailing separators are removed."""
        assert clean(" , Band Alpha ;") == "Band Alpha"
        assert clean("- Band Alpha |") == "Band Alpha"

    def test_combined_noise(self):
        """Descriptor and parenthetical stripping compose."""
        assert clean("Band Alpha (Late Show) - Spring Tour") == "Band Alpha"

    @pytest.mark.parametrize("raw", [None, "", "   ", "(sold out)", " - "])
    def test_empty_results_are_none(self, raw):
        """Nothing left after cleaning means None."""
        assert clean(raw) is None

    @pytest.mark.parametrize(
        "raw",
        [
            "Mohawk Presents: Band Alpha @ 9pm",
            "(Presents: x) Band - Tour",
            "  “The Band”  (21+) ,",
            "Band Alpha at 8 pm - Night One (Early)",
            "Jay-Z",
        ],
    )
    def test_idempotent(self, raw):
        """Cleaning a cleaned name changes nothing."""
        once = clean(raw)
        assert clean(once) == once

    @pytest.mark.parametrize("raw", ["  Band  ", "\tBand Alpha\n", " Band "])
    def test_no_surrounding_whitespace(self, raw):
        """Results never start or end with whitespace."""
        result = clean(raw)
        assert result == result.strip()


class TestHelpers:
    """Tests for whitespace and title helpers."""

    def test_collapse_whitespace(self):
        assert collapse_whitespace("  a \n\t b c ") == "a b c"

    def test_collapse_whitespace_none(self):
        assert collapse_whitespace(None) == ""

    def test_normalize_key(self):
        """Keys are lower-cased and whitespace-collapsed."""
        assert normalize_key("  The   BAND ") == "the band"

    def test_strip_title_noise(self):
        """Drops "@ time" tails and parentheticals."""
        assert strip_title_noise("Band Alpha (Early Show) @ 8pm doors") == "Band Alpha"

    def test_strip_title_noise_empty(self):
        assert strip_title_noise(None) == ""

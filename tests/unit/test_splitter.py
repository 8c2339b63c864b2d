"""Tests for compound lineup splitting."""

import pytest

from scrapers.venue_lineups.splitter import split


class TestSplit:
    """Tests for split()."""

    def test_heading_style_billing(self):
        """Should split "A w/ B, C & D" into four names."""
        assert split("Band Alpha w/ Band Beta, Band Gamma & Band Delta") == [
            "Band Alpha",
            "Band Beta",
            "Band Gamma",
            "Band Delta",
        ]

    @pytest.mark.parametrize(
        "compound",
        [
            "Alpha with Beta",
            "Alpha WITH Beta",
            "Alpha feat. Beta",
            "Alpha feat Beta",
            "Alpha featuring Beta",
            "Alpha & Beta",
            "Alpha and Beta",
            "Alpha / Beta",
            "Alpha + Beta",
            "Alpha, Beta",
        ],
    )
    def test_delimiters(self, compound):
        """Each delimiter yields two parts, case-insensitively."""
        assert split(compound) == ["Alpha", "Beta"]

    def test_word_delimiters_need_whitespace(self):
        """Names containing "and" or "with" are not split."""
        assert split("Andrew Bird") == ["Andrew Bird"]
        assert split("Withered Hand") == ["Withered Hand"]
        assert split("Sandy and") == ["Sandy and"]

    @pytest.mark.parametrize("name", ["AC/DC", "Blink+182", "Sunn O)))"])
    def test_unspaced_slash_and_plus_kept(self, name):
        """Slash and plus only split when surrounded by spaces."""
        assert split(name) == [name]

    def test_unspaced_name_in_billing(self):
        assert split("Blink+182 with AC/DC") == ["Blink+182", "AC/DC"]

    def test_spaced_ampersand_inside_name_splits(self):
        """No allow-list: a band name with a spaced separator is broken up."""
        assert split("Hootie & the Blowfish") == ["Hootie", "the Blowfish"]

    def test_no_empty_parts(self):
        """Adjacent delimiters do not produce empty names."""
        parts = split("Alpha,, Beta ,  & Gamma,")
        assert parts == ["Alpha", "Beta", "Gamma"]
        assert all(part for part in parts)

    def test_parts_are_trimmed(self):
        assert split("  Alpha ,   Beta  ") == ["Alpha", "Beta"]

    def test_parts_do_not_split_again(self):
        """Every part is already atomic."""
        for part in split("Alpha w/ Beta, Gamma feat. Delta & Epsilon"):
            assert split(part) == [part]

    @pytest.mark.parametrize("compound", [None, "", "   "])
    def test_empty_input(self, compound):
        assert split(compound) == []

"""Tests for theme/style label normalization and lookup tables."""

import pytest

from nightstory.core.themes import (
    STYLES,
    THEMES,
    get_companion_keywords,
    parse_length_minutes,
    parse_style,
    parse_theme,
)
from nightstory.core.types import StyleType, ThemeType


class TestParseTheme:
    @pytest.mark.parametrize("label, expected", [
        ("Dragons", ThemeType.DRAGONS),
        ("Animals", ThemeType.ANIMALS),
        ("Animaux", ThemeType.ANIMALS),
        ("Super-héros", ThemeType.SUPERHEROES),
        ("SUPER-HEROS", ThemeType.SUPERHEROES),
        ("superheroes", ThemeType.SUPERHEROES),
        ("  Princesses ", ThemeType.PRINCESSES),
        (ThemeType.DRAGONS, ThemeType.DRAGONS),
    ])
    def test_known_labels(self, label, expected):
        assert parse_theme(label) is expected

    @pytest.mark.parametrize("label", ["Robots", "", None])
    def test_unknown_labels(self, label):
        assert parse_theme(label) is None


class TestParseStyle:
    @pytest.mark.parametrize("label, expected", [
        ("Cartoon", StyleType.CARTOON),
        ("Dessin animé", StyleType.CARTOON),
        ("dessin anime", StyleType.CARTOON),
        ("Réaliste", StyleType.REALISTIC),
        ("Fantastique", StyleType.FANTASY),
        ("Moderne", StyleType.MODERN),
        ("modern", StyleType.MODERN),
    ])
    def test_known_labels(self, label, expected):
        assert parse_style(label) is expected

    def test_unknown_label(self):
        assert parse_style("Watercolor") is None


class TestTables:
    def test_every_theme_has_one_definition(self):
        assert set(THEMES) == set(ThemeType)

    def test_every_style_has_one_definition(self):
        assert set(STYLES) == set(StyleType)

    def test_companion_keywords_are_bilingual(self):
        keywords = get_companion_keywords(ThemeType.ANIMALS)

        assert "puppy" in keywords
        assert "chiot" in keywords

    def test_no_theme_has_no_keywords(self):
        assert get_companion_keywords(None) == []


class TestParseLengthMinutes:
    @pytest.mark.parametrize("label, expected", [
        ("3-5 Mins", 4),
        ("5-10 Mins", 8),
        ("10-15 Mins", 13),
        ("20 Mins", 20),
        ("long", 5),
        (None, 5),
    ])
    def test_midpoint_rounded_half_up(self, label, expected):
        assert parse_length_minutes(label) == expected

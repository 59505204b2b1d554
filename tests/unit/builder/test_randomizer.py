"""Tests for builder randomization."""

from __future__ import annotations

import random
from collections import Counter

import pytest

from conftest import FIREBALL, FROSTBITE, LIGHT, MEND
from vagabond_builder.builder.randomizer import sample_spells, uniform_choice, weighted_choice
from vagabond_builder.core.constants import DEFAULT_ANCESTRY_WEIGHTS
from vagabond_builder.core.exceptions import SelectionError
from vagabond_builder.models.items import IndexEntry


@pytest.fixture
def ancestries() -> list[IndexEntry]:
    return [
        IndexEntry(uuid=f"a.{name}", name=name, type="ancestry")
        for name in ("Dwarf", "Elf", "Halfling", "Human", "Orc")
    ]


class TestChoices:
    """Tests for uniform and weighted choices."""

    def test_weighted_distribution(self, ancestries: list[IndexEntry]) -> None:
        """Test the 5:1:1:1 ancestry weighting over many trials."""
        rng = random.Random(2024)

        counts = Counter(weighted_choice(ancestries, DEFAULT_ANCESTRY_WEIGHTS, rng).name for _ in range(1000))

        assert counts["Orc"] == 0
        assert 550 <= counts["Human"] <= 700
        for name in ("Dwarf", "Elf", "Halfling"):
            assert 70 <= counts[name] <= 190

    def test_uniform_fallback(self, ancestries: list[IndexEntry]) -> None:
        """Test that unmatched weight tables fall back to uniform."""
        rng = random.Random(5)

        names = {weighted_choice(ancestries, {"Goblin": 3}, rng).name for _ in range(200)}

        assert names == {"Dwarf", "Elf", "Halfling", "Human", "Orc"}

    def test_empty_candidates(self) -> None:
        """Test that there must be something to choose."""
        with pytest.raises(SelectionError):
            uniform_choice([], random.Random())
        with pytest.raises(SelectionError):
            weighted_choice([], DEFAULT_ANCESTRY_WEIGHTS, random.Random())

    def test_seeded_repeatable(self, ancestries: list[IndexEntry]) -> None:
        """Test that a seed reproduces the choice."""
        first = uniform_choice(ancestries, random.Random(9))

        assert uniform_choice(ancestries, random.Random(9)) == first


class TestSampleSpells:
    """Tests for spell randomization."""

    def test_keeps_required_and_fills_cap(self) -> None:
        """Test that required spells stay and the cap is filled."""
        result = sample_spells([LIGHT, FIREBALL, FROSTBITE, MEND], [LIGHT], 3, random.Random(1))

        assert result[0] == LIGHT
        assert len(result) == 3
        assert len(set(result)) == 3

    def test_cap_below_required(self) -> None:
        """Test that required spells are never dropped."""
        assert sample_spells([FIREBALL], [LIGHT, MEND], 1, random.Random(1)) == [LIGHT, MEND]

    def test_not_enough_candidates(self) -> None:
        """Test sampling when fewer spells exist than the cap."""
        assert sorted(sample_spells([FIREBALL, FIREBALL], [], 4, random.Random(1))) == [FIREBALL]

"""Unit tests for DNA generation, gender generation and breeding."""

import hashlib

import pytest

from src.creatures.errors import AssetNotFoundError
from src.creatures.genetics import GeneticsEngine, mix_dna
from src.creatures.models import Creature, Gender
from src.creatures.storage import AssetStore
from tests.testing_utils import FixedHeight, FixedRandomness


DNA_OUTPUT = bytes(range(32))


@pytest.fixture
def fixed_engine() -> GeneticsEngine:
    randomness = FixedRandomness({b"dna": DNA_OUTPUT, b"gender": b"\x03" + bytes(31)})
    return GeneticsEngine(randomness, FixedHeight(7))


class TestMixDna:
    """Each child bit comes from parent 1 where the mask bit is 1, else parent 2."""

    def test_bit_level(self) -> None:
        mask = bytes([0b10101010, 0xFF, 0x00, 0x0F] * 4)
        dna1 = bytes([0b11001100, 0x12, 0x34, 0x56] * 4)
        dna2 = bytes([0b00110011, 0xAB, 0xCD, 0xEF] * 4)

        child = mix_dna(mask, dna1, dna2)

        for i in range(16):
            for bit in range(8):
                expected_source = dna1 if (mask[i] >> bit) & 1 else dna2
                assert (child[i] >> bit) & 1 == (expected_source[i] >> bit) & 1

    def test_full_mask_copies_parent1(self) -> None:
        dna1, dna2 = bytes(range(16)), bytes(range(16, 32))
        assert mix_dna(b"\xff" * 16, dna1, dna2) == dna1

    def test_empty_mask_copies_parent2(self) -> None:
        dna1, dna2 = bytes(range(16)), bytes(range(16, 32))
        assert mix_dna(bytes(16), dna1, dna2) == dna2

    def test_identical_parents_give_identical_child(self) -> None:
        dna = bytes(range(100, 116))
        assert mix_dna(bytes(range(16)), dna, dna) == dna

    def test_length_mismatch_rejected(self) -> None:
        with pytest.raises(ValueError):
            mix_dna(bytes(15), bytes(16), bytes(16))


class TestGenerate:
    """Tests for fresh DNA and gender."""

    def test_dna_is_blake2_128_of_random_and_height(self, fixed_engine: GeneticsEngine) -> None:
        expected = hashlib.blake2b(
            DNA_OUTPUT + (7).to_bytes(8, "little"), digest_size=16
        ).digest()
        assert fixed_engine.generate_dna() == expected

    def test_dna_changes_with_height(self) -> None:
        randomness = FixedRandomness({b"dna": DNA_OUTPUT})
        height = FixedHeight(1)
        engine = GeneticsEngine(randomness, height)
        first = engine.generate_dna()
        height.number = 2
        assert engine.generate_dna() != first

    def test_same_context_repeats(self, fixed_engine: GeneticsEngine) -> None:
        """Same randomness and height yield the same DNA."""
        assert fixed_engine.generate_dna() == fixed_engine.generate_dna()

    def test_gender_from_first_random_byte(self) -> None:
        for first_byte, expected in [(0, Gender.MALE), (3, Gender.FEMALE), (254, Gender.MALE)]:
            engine = GeneticsEngine(
                FixedRandomness({b"gender": bytes([first_byte]) + bytes(31)}),
                FixedHeight(),
            )
            assert engine.generate_gender() == expected

    def test_seed_tags_are_domain_separated(self, fixed_engine: GeneticsEngine) -> None:
        fixed_engine.generate_dna()
        fixed_engine.generate_gender()
        assert fixed_engine.randomness.calls == [b"dna", b"gender"]  # type: ignore[attr-defined]

    def test_identical_seed_tags_rejected(self) -> None:
        with pytest.raises(ValueError):
            GeneticsEngine(FixedRandomness(), FixedHeight(), dna_seed_tag=b"x", gender_seed_tag=b"x")

    def test_gender_for_random_source(self, fixed_engine: GeneticsEngine) -> None:
        # Random draw starts with 0x03 -> Female, regardless of dna parity
        assert fixed_engine.gender_for(bytes(16)) == Gender.FEMALE

    def test_gender_for_dna_source(self) -> None:
        engine = GeneticsEngine(FixedRandomness(), FixedHeight(), gender_source="dna")
        assert engine.gender_for(bytes([4]) + bytes(15)) == Gender.MALE
        assert engine.gender_for(bytes([5]) + bytes(15)) == Gender.FEMALE

    def test_unknown_gender_source_rejected(self) -> None:
        with pytest.raises(ValueError):
            GeneticsEngine(FixedRandomness(), FixedHeight(), gender_source="parent")  # type: ignore[arg-type]


class TestCombine:
    """Tests for breeding two stored creatures."""

    @pytest.fixture
    def assets(self) -> AssetStore:
        store = AssetStore()
        store.insert("p1", Creature(dna=b"\xff" * 16, price=None, gender=Gender.MALE, owner="alice"))
        store.insert("p2", Creature(dna=bytes(16), price=None, gender=Gender.FEMALE, owner="alice"))
        return store

    def test_child_follows_mask(self, fixed_engine: GeneticsEngine, assets: AssetStore) -> None:
        mask = fixed_engine.generate_dna()
        # parent1 is all ones, parent2 all zeros: child equals the mask
        assert fixed_engine.combine(assets, "p1", "p2") == mask

    def test_swapped_parents_give_inverted_mask(self, fixed_engine: GeneticsEngine, assets: AssetStore) -> None:
        mask = fixed_engine.generate_dna()
        child = fixed_engine.combine(assets, "p2", "p1")
        assert child == bytes(~b & 0xFF for b in mask)

    @pytest.mark.parametrize("parents", [("missing", "p2"), ("p1", "missing")])
    def test_missing_parent(self, fixed_engine: GeneticsEngine, assets: AssetStore, parents: tuple[str, str]) -> None:
        with pytest.raises(AssetNotFoundError):
            fixed_engine.combine(assets, *parents)

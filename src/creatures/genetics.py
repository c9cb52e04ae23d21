"""DNA generation, gender generation and breeding.

Fresh DNA is blake2b-128 over the randomness output for the DNA seed
tag followed by the current block number (u64 little-endian). Breeding
draws a fresh DNA value as a bit mask and takes each child bit from
parent 1 where the mask bit is set, from parent 2 otherwise.
"""

from __future__ import annotations

import hashlib
from typing import TYPE_CHECKING, Literal

from .constants import DNA_LENGTH, DNA_SEED_TAG, GENDER_SEED_TAG
from .errors import AssetNotFoundError
from .models import Gender, gender_from_dna
from .providers import HeightOracle, RandomnessSource

if TYPE_CHECKING:
    from .storage import AssetStore


def mix_dna(mask: bytes, dna1: bytes, dna2: bytes) -> bytes:
    """Bitwise inheritance: mask bit 1 takes parent 1, mask bit 0 parent 2."""
    if not len(mask) == len(dna1) == len(dna2) == DNA_LENGTH:
        raise ValueError(f"mask and parent dna must all be {DNA_LENGTH} bytes")
    return bytes(
        (m & a) | (~m & 0xFF & b)
        for m, a, b in zip(mask, dna1, dna2)
    )


class GeneticsEngine:
    """Generates and combines creature DNA.

    The engine holds no state of its own; every call reads the randomness
    source and height oracle it was built with.
    """

    def __init__(
        self,
        randomness: RandomnessSource,
        height: HeightOracle,
        dna_seed_tag: bytes = DNA_SEED_TAG,
        gender_seed_tag: bytes = GENDER_SEED_TAG,
        gender_source: Literal["random", "dna"] = "random",
    ) -> None:
        if dna_seed_tag == gender_seed_tag:
            raise ValueError("dna and gender seed tags must differ")
        if gender_source not in ("random", "dna"):
            raise ValueError(f"unknown gender source: {gender_source}")
        self.randomness = randomness
        self.height = height
        self.dna_seed_tag = dna_seed_tag
        self.gender_seed_tag = gender_seed_tag
        self.gender_source = gender_source

    def generate_dna(self) -> bytes:
        """Fresh 16-byte DNA from randomness and the current block number.

        Two calls in the same block return the same value unless the
        randomness source changes in between.
        """
        output, _ = self.randomness.random(self.dna_seed_tag)
        payload = bytes(output) + self.height.block_number().to_bytes(8, "little")
        return hashlib.blake2b(payload, digest_size=DNA_LENGTH).digest()

    def generate_gender(self) -> Gender:
        """Random gender from the first byte of a gender-tagged draw."""
        output, _ = self.randomness.random(self.gender_seed_tag)
        return Gender.from_byte(output[0])

    def gender_for(self, dna: bytes) -> Gender:
        """Gender for a creature minted without an explicit one."""
        if self.gender_source == "dna":
            return gender_from_dna(dna)
        return self.generate_gender()

    def combine(self, assets: "AssetStore", parent1_id: str, parent2_id: str) -> bytes:
        """Child DNA for two existing creatures.

        Raises:
            AssetNotFoundError: If either parent is not in ``assets``.
        """
        parent1 = assets.get(parent1_id)
        if parent1 is None:
            raise AssetNotFoundError(f"parent not found: {parent1_id}", creature_id=parent1_id)
        parent2 = assets.get(parent2_id)
        if parent2 is None:
            raise AssetNotFoundError(f"parent not found: {parent2_id}", creature_id=parent2_id)

        mask = self.generate_dna()
        return mix_dna(mask, parent1.dna, parent2.dna)

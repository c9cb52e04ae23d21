"""Creature record and gender derivation."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .constants import DNA_LENGTH, MAX_BALANCE


class Gender(str, Enum):
    """Creature gender. Encoded as a single byte: Male=0, Female=1."""

    MALE = "Male"
    FEMALE = "Female"

    @classmethod
    def from_byte(cls, value: int) -> "Gender":
        """Even byte values map to Male, odd to Female."""
        return cls.MALE if value % 2 == 0 else cls.FEMALE


def gender_from_dna(dna: bytes) -> Gender:
    """Derive gender from the parity of the first DNA byte."""
    if len(dna) != DNA_LENGTH:
        raise ValueError(f"dna must be {DNA_LENGTH} bytes, got {len(dna)}")
    return Gender.from_byte(dna[0])


@dataclass(frozen=True, eq=False)
class Creature:
    """A creature in the registry.

    - dna: 16 bytes, immutable after creation
    - price: asking price, None when not for sale
    - gender: stored once at creation for fast access
    - owner: account id of the current owner

    Records are immutable: changes go through dataclasses.replace and
    AssetStore.update. Equality compares the encoded byte layout (see
    codec.py), so two creatures are equal exactly when they hash to the
    same identifier.
    """

    dna: bytes
    price: int | None
    gender: Gender
    owner: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "dna", bytes(self.dna))
        if len(self.dna) != DNA_LENGTH:
            raise ValueError(f"dna must be {DNA_LENGTH} bytes, got {len(self.dna)}")
        if self.price is not None and not 0 <= self.price <= MAX_BALANCE:
            raise ValueError(f"price out of range: {self.price}")
        object.__setattr__(self, "gender", Gender(self.gender))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Creature):
            return NotImplemented
        from .codec import creatures_equal
        return creatures_equal(self, other)

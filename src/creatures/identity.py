"""Content-derived creature identifiers."""

from __future__ import annotations

import hashlib

from .codec import encode_creature
from .constants import ID_DIGEST_SIZE
from .models import Creature


def hash_of(data: bytes) -> str:
    """blake2b-256 of ``data`` as lowercase hex."""
    return hashlib.blake2b(data, digest_size=ID_DIGEST_SIZE).hexdigest()


def derive_creature_id(creature: Creature) -> str:
    """Identifier of a creature: hash of its full encoded record.

    Pure. Structurally equal creatures (same dna, price, gender, owner)
    always get the same id; uniqueness has to come from differing content.
    """
    return hash_of(encode_creature(creature))

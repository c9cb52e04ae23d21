"""Block clock and collective-flip randomness.

These stand in for the host chain: BlockClock seals blocks and exposes
the current height; CollectiveFlipRandomness mixes a subject with the
hashes of recent blocks.

The randomness is NOT secure. Anyone who produces blocks can influence
it, and two calls with the same subject in the same block return the
same output. It is fit for DNA and gender derivation only.
"""

from __future__ import annotations

import hashlib
import secrets
from collections import deque

from .constants import RANDOM_MATERIAL_LEN


def _blake2_256(data: bytes) -> bytes:
    return hashlib.blake2b(data, digest_size=32).digest()


class BlockClock:
    """Monotonic block counter that also records recent block hashes.

    Block 0 is the genesis block. Each call to advance() seals a new block
    whose hash commits to the parent hash and the new number.
    """

    def __init__(
        self,
        genesis_hash: bytes | None = None,
        material_len: int = RANDOM_MATERIAL_LEN,
    ) -> None:
        if material_len < 1:
            raise ValueError("material_len must be at least 1")
        self._number = 0
        self._parent_hash = genesis_hash if genesis_hash is not None else secrets.token_bytes(32)
        self._recent: deque[bytes] = deque([self._parent_hash], maxlen=material_len)

    def block_number(self) -> int:
        return self._number

    @property
    def parent_hash(self) -> bytes:
        return self._parent_hash

    def recent_hashes(self) -> list[bytes]:
        """Hashes of the most recent blocks, oldest first."""
        return list(self._recent)

    def advance(self, blocks: int = 1) -> int:
        """Seal ``blocks`` new blocks. Returns the new block number."""
        if blocks < 0:
            raise ValueError("cannot advance by a negative number of blocks")
        for _ in range(blocks):
            self._number += 1
            self._parent_hash = _blake2_256(
                self._parent_hash + self._number.to_bytes(8, "little")
            )
            self._recent.append(self._parent_hash)
        return self._number


class CollectiveFlipRandomness:
    """RandomnessSource built from the recent block hashes of a BlockClock.

    random(subject) = blake2b-256(subject || i || hash_i ...) over the
    clock's recent hashes. The returned marker is the block number of the
    oldest hash that went into the output.
    """

    def __init__(self, clock: BlockClock) -> None:
        self.clock = clock

    def random(self, subject: bytes) -> tuple[bytes, int]:
        material = self.clock.recent_hashes()
        hasher = hashlib.blake2b(digest_size=32)
        hasher.update(subject)
        for index, block_hash in enumerate(material):
            hasher.update(index.to_bytes(4, "little"))
            hasher.update(block_hash)
        marker = max(0, self.clock.block_number() - (len(material) - 1))
        return hasher.digest(), marker

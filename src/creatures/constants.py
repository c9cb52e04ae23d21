"""Centralized constants for the creatures module.

Byte lengths and numeric ceilings live here to avoid magic numbers
scattered across the codec, storage and genetics modules.
"""

# Creature DNA is a fixed 16-byte value
DNA_LENGTH = 16

# Identifiers are 32-byte blake2b digests, hex encoded
ID_DIGEST_SIZE = 32

# AssetCount is a u64
MAX_CREATURE_COUNT = 2**64 - 1

# Prices and balances are u128
MAX_BALANCE = 2**128 - 1

# Default domain-separation tags for the randomness source
DNA_SEED_TAG = b"dna"
GENDER_SEED_TAG = b"gender"

# Number of recent block hashes mixed into collective-flip randomness
RANDOM_MATERIAL_LEN = 81

# Owner capacity used when no config is supplied
DEFAULT_MAX_OWNED = 9999

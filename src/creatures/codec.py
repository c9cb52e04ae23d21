"""Explicit byte layout for creature records.

The identifier of a creature is a hash of these bytes, so the layout is
part of the registry's contract and must stay stable:

    offset  size  field
    0       16    dna
    16      1     price tag (0x00 = None, 0x01 = Some)
    17      16    price, u128 little-endian (only when tag = 0x01)
    ..      1     gender (0x00 = Male, 0x01 = Female)
    ..      4     owner length N, u32 little-endian
    ..      N     owner, UTF-8
"""

from __future__ import annotations

from .constants import DNA_LENGTH
from .errors import CodecError
from .models import Creature, Gender

_PRICE_SIZE = 16
_LENGTH_SIZE = 4

_GENDER_TO_BYTE: dict[Gender, int] = {Gender.MALE: 0, Gender.FEMALE: 1}
_BYTE_TO_GENDER: dict[int, Gender] = {v: k for k, v in _GENDER_TO_BYTE.items()}


def encode_creature(creature: Creature) -> bytes:
    """Encode a creature into its canonical byte layout."""
    out = bytearray(creature.dna)
    if creature.price is None:
        out.append(0)
    else:
        out.append(1)
        out += creature.price.to_bytes(_PRICE_SIZE, "little")
    out.append(_GENDER_TO_BYTE[creature.gender])
    owner = creature.owner.encode("utf-8")
    out += len(owner).to_bytes(_LENGTH_SIZE, "little")
    out += owner
    return bytes(out)


def decode_creature(data: bytes) -> Creature:
    """Decode bytes produced by encode_creature.

    Raises:
        CodecError: On short input, unknown tags, invalid UTF-8 or
            trailing bytes.
    """
    view = memoryview(data)
    pos = 0

    def take(size: int, what: str) -> bytes:
        nonlocal pos
        if pos + size > len(view):
            raise CodecError(f"truncated creature record reading {what}", offset=pos)
        chunk = bytes(view[pos:pos + size])
        pos += size
        return chunk

    dna = take(DNA_LENGTH, "dna")

    price_tag = take(1, "price tag")[0]
    price: int | None
    if price_tag == 0:
        price = None
    elif price_tag == 1:
        price = int.from_bytes(take(_PRICE_SIZE, "price"), "little")
    else:
        raise CodecError(f"unknown price tag: {price_tag}", offset=pos - 1)

    gender_byte = take(1, "gender")[0]
    if gender_byte not in _BYTE_TO_GENDER:
        raise CodecError(f"unknown gender byte: {gender_byte}", offset=pos - 1)

    owner_len = int.from_bytes(take(_LENGTH_SIZE, "owner length"), "little")
    try:
        owner = take(owner_len, "owner").decode("utf-8")
    except UnicodeDecodeError as exc:
        raise CodecError(f"owner is not valid UTF-8: {exc}") from exc

    if pos != len(view):
        raise CodecError(
            f"{len(view) - pos} trailing bytes after creature record", offset=pos
        )

    return Creature(dna=dna, price=price, gender=_BYTE_TO_GENDER[gender_byte], owner=owner)


def creatures_equal(a: Creature, b: Creature) -> bool:
    """Two creatures are equal when their encodings are identical."""
    return encode_creature(a) == encode_creature(b)

"""Registry events emitted to an EventSink."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class EventType(str, Enum):
    CREATED = "created"
    PRICE_SET = "price_set"
    TRANSFERRED = "transferred"
    BOUGHT = "bought"


@dataclass(frozen=True)
class RegistryEvent:
    """A single registry occurrence.

    ``data`` holds the event fields:
    - created: owner, creature_id
    - price_set: owner, creature_id, price
    - transferred: from_id, to_id, creature_id
    - bought: buyer, seller, creature_id, price
    """

    event_type: EventType
    data: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def created(cls, owner: str, creature_id: str) -> "RegistryEvent":
        return cls(EventType.CREATED, {"owner": owner, "creature_id": creature_id})

    @classmethod
    def price_set(cls, owner: str, creature_id: str, price: int | None) -> "RegistryEvent":
        return cls(
            EventType.PRICE_SET,
            {"owner": owner, "creature_id": creature_id, "price": price},
        )

    @classmethod
    def transferred(cls, from_id: str, to_id: str, creature_id: str) -> "RegistryEvent":
        return cls(
            EventType.TRANSFERRED,
            {"from_id": from_id, "to_id": to_id, "creature_id": creature_id},
        )

    @classmethod
    def bought(cls, buyer: str, seller: str, creature_id: str, price: int) -> "RegistryEvent":
        return cls(
            EventType.BOUGHT,
            {"buyer": buyer, "seller": seller, "creature_id": creature_id, "price": price},
        )

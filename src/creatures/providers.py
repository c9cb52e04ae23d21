"""Interfaces for the collaborators the registry depends on.

The registry never talks to a concrete randomness source, clock,
currency system, or event sink directly. It depends on the protocols
below; chain.py, ledger.py and logger.py ship implementations, and tests
supply deterministic fakes.

- CallerResolver: turns a transaction Origin into an account id
- RandomnessSource: domain-separated 32-byte random output
- HeightOracle: current block number
- CurrencyLedger: balance lookup and transfer, used by buy_creature
- EventSink: fire-and-forget notification of registry events
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from .errors import UnauthenticatedError

if TYPE_CHECKING:
    from .events import RegistryEvent


@dataclass(frozen=True)
class Origin:
    """Origin of a registry call.

    ``signer`` is the account that signed the transaction, or None for an
    unsigned (root/none) origin.
    """

    signer: str | None = None

    @classmethod
    def signed(cls, account: str) -> "Origin":
        return cls(signer=account)

    @classmethod
    def none(cls) -> "Origin":
        return cls(signer=None)


def ensure_signed(origin: Origin) -> str:
    """Return the signing account of ``origin``.

    Raises:
        UnauthenticatedError: If the origin is unsigned or the signer is empty.
    """
    if not origin.signer:
        raise UnauthenticatedError("origin is not signed")
    return origin.signer


@runtime_checkable
class CallerResolver(Protocol):
    """Resolves the caller account for an operation."""

    def resolve(self, origin: Origin) -> str:
        """Return the authenticated account or raise UnauthenticatedError."""
        ...


class SignedCallerResolver:
    """Default resolver: accepts any signed origin."""

    def resolve(self, origin: Origin) -> str:
        return ensure_signed(origin)


@runtime_checkable
class RandomnessSource(Protocol):
    """Source of domain-separated randomness.

    The output is 32 bytes. The second element of the returned tuple is the
    block number from which the output became determinable. Values must be
    treated as influenceable by block producers.
    """

    def random(self, subject: bytes) -> tuple[bytes, int]:
        ...


@runtime_checkable
class HeightOracle(Protocol):
    """Current monotonically increasing block number."""

    def block_number(self) -> int:
        ...


@runtime_checkable
class CurrencyLedger(Protocol):
    """Balance transfer primitive used for purchases."""

    def free_balance(self, account: str) -> int:
        ...

    def transfer(self, from_id: str, to_id: str, amount: int) -> bool:
        """Move ``amount`` from ``from_id`` to ``to_id``. False if not possible."""
        ...


@runtime_checkable
class EventSink(Protocol):
    """Best-effort event notification. No return value."""

    def notify(self, event: "RegistryEvent") -> None:
        ...

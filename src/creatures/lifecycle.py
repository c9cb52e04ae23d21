"""Creature lifecycle service - mint, breed, price, transfer, buy.

LifecycleService is the only writer of a StorageContext. Every
state-changing operation runs inside StorageContext.transactional(), so
a failure at any step leaves the count, the creature table and the
ownership index exactly as they were.

Mint transaction:
    Pending -> CounterReserved -> IndexReserved -> Committed
    any failure along the chain -> Aborted (no observable side effects)

Two layers of API:
- Helpers (mint, breed, is_owner, transfer_to) take account ids directly.
- Dispatchables (create_creature, breed_creature, set_price, transfer,
  buy_creature) take an Origin, resolve the caller first, enforce
  ownership rules, and emit events.
"""

from __future__ import annotations

import logging
from dataclasses import replace

from ..config_schema import AppConfig
from .constants import MAX_BALANCE
from .errors import (
    AssetNotFoundError,
    BalanceOverflowError,
    BidPriceTooLowError,
    BuyerIsOwnerError,
    CreatureError,
    ExceedMaxOwnedError,
    NotEnoughBalanceError,
    NotForSaleError,
    NotOwnerError,
    PaymentFailedError,
    TransferToSelfError,
)
from .events import RegistryEvent
from .genetics import GeneticsEngine
from .identity import derive_creature_id
from .models import Creature, Gender
from .providers import (
    CallerResolver,
    CurrencyLedger,
    EventSink,
    HeightOracle,
    Origin,
    RandomnessSource,
    SignedCallerResolver,
)
from .storage import StorageContext

logger = logging.getLogger(__name__)


class LifecycleService:
    """Orchestrates creature creation and ownership changes."""

    def __init__(
        self,
        storage: StorageContext,
        genetics: GeneticsEngine,
        currency: CurrencyLedger | None = None,
        events: EventSink | None = None,
        resolver: CallerResolver | None = None,
    ) -> None:
        self.storage = storage
        self.genetics = genetics
        self.currency = currency
        self.events = events
        self.resolver = resolver or SignedCallerResolver()

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        randomness: RandomnessSource,
        height: HeightOracle,
        currency: CurrencyLedger | None = None,
        events: EventSink | None = None,
        storage: StorageContext | None = None,
    ) -> "LifecycleService":
        """Create a service wired from validated config.

        Args:
            config: Validated AppConfig
            randomness: Randomness source for DNA and gender
            height: Block number oracle
            currency: Optional ledger, required only for buy_creature
            events: Optional event sink
            storage: Existing state (e.g. restored from a checkpoint);
                     a fresh context sized by registry.max_owned otherwise
        """
        if storage is None:
            storage = StorageContext(config.registry.max_owned)
        elif storage.max_owned != config.registry.max_owned:
            raise ValueError(
                f"storage max_owned {storage.max_owned} does not match "
                f"config registry.max_owned {config.registry.max_owned}"
            )
        genetics = GeneticsEngine(
            randomness,
            height,
            dna_seed_tag=config.genetics.dna_seed_tag.encode("utf-8"),
            gender_seed_tag=config.genetics.gender_seed_tag.encode("utf-8"),
            gender_source=config.genetics.gender_source,
        )
        return cls(storage, genetics, currency=currency, events=events)

    # ===== QUERIES =====

    def count(self) -> int:
        """Number of creatures ever created."""
        return self.storage.assets.count()

    def get(self, creature_id: str) -> Creature | None:
        return self.storage.assets.get(creature_id)

    def owned_by(self, account: str) -> list[str]:
        return self.storage.owned.owned_by(account)

    def is_owner(self, creature_id: str, account: str) -> bool:
        """Whether ``account`` owns the creature.

        Raises:
            AssetNotFoundError: If the creature does not exist.
        """
        creature = self.storage.assets.get(creature_id)
        if creature is None:
            raise AssetNotFoundError(
                f"creature not found: {creature_id}", creature_id=creature_id
            )
        return creature.owner == account

    # ===== HELPERS =====

    def mint(
        self,
        owner: str,
        dna: bytes | None = None,
        gender: Gender | None = None,
    ) -> str:
        """Create a creature for ``owner`` and return its id.

        Missing DNA is generated fresh; missing gender follows the
        engine's gender source. The id is derived from the complete
        record, so minting identical explicit (owner, dna, gender) twice
        collides.

        Raises:
            CounterOverflowError: Creature count is at its ceiling.
            ExceedMaxOwnedError: Owner is at capacity.
            DuplicateIdentifierError: Identical creature already exists.
        """
        if dna is None:
            dna = self.genetics.generate_dna()
        if gender is None:
            gender = self.genetics.gender_for(dna)
        creature = Creature(dna=dna, price=None, gender=gender, owner=owner)
        creature_id = derive_creature_id(creature)

        assets = self.storage.assets
        try:
            with self.storage.transactional():
                new_count = assets.increment_count()
                self.storage.owned.try_append(owner, creature_id)
                assets.insert(creature_id, creature)
                assets.set_count(new_count)
        except CreatureError as exc:
            logger.debug("Mint aborted for %s: %s", owner, exc.code.value)
            raise

        logger.info("Minted creature %s for %s (count=%d)", creature_id, owner, new_count)
        return creature_id

    def breed(self, owner: str, parent1_id: str, parent2_id: str) -> str:
        """Mint a child of two existing creatures for ``owner``.

        The child's gender is freshly drawn, not inherited.

        Raises:
            AssetNotFoundError: If either parent does not exist.
        """
        child_dna = self.genetics.combine(self.storage.assets, parent1_id, parent2_id)
        return self.mint(owner, child_dna, None)

    def transfer_to(self, creature_id: str, to: str) -> None:
        """Move a creature to ``to`` and clear its price.

        Raises:
            AssetNotFoundError: If the creature does not exist.
            ExceedMaxOwnedError: If the receiver is at capacity.
        """
        creature = self.storage.assets.get(creature_id)
        if creature is None:
            raise AssetNotFoundError(
                f"creature not found: {creature_id}", creature_id=creature_id
            )
        previous_owner = creature.owner
        self._move(creature_id, creature, to)
        logger.info("Creature %s moved from %s to %s", creature_id, previous_owner, to)

    # ===== DISPATCHABLES =====

    def create_creature(self, origin: Origin) -> str:
        """Mint a creature with fresh DNA for the caller."""
        sender = self.resolver.resolve(origin)
        creature_id = self.mint(sender)
        self._emit(RegistryEvent.created(sender, creature_id))
        return creature_id

    def breed_creature(self, origin: Origin, parent1_id: str, parent2_id: str) -> str:
        """Breed two of the caller's creatures into a new one for the caller."""
        sender = self.resolver.resolve(origin)
        for parent_id in (parent1_id, parent2_id):
            self._ensure_owner(parent_id, sender)
        creature_id = self.breed(sender, parent1_id, parent2_id)
        self._emit(RegistryEvent.created(sender, creature_id))
        return creature_id

    def set_price(self, origin: Origin, creature_id: str, new_price: int | None) -> None:
        """Set or clear (None) the asking price of one of the caller's creatures."""
        sender = self.resolver.resolve(origin)
        creature = self._ensure_owner(creature_id, sender)
        if new_price is not None and not 0 <= new_price <= MAX_BALANCE:
            raise CreatureError(f"price out of range: {new_price}", price=new_price)

        with self.storage.transactional():
            self.storage.assets.update(creature_id, replace(creature, price=new_price))
        self._emit(RegistryEvent.price_set(sender, creature_id, new_price))

    def transfer(self, origin: Origin, to: str, creature_id: str) -> None:
        """Give one of the caller's creatures to another account."""
        sender = self.resolver.resolve(origin)
        self._ensure_owner(creature_id, sender)
        if sender == to:
            raise TransferToSelfError(
                f"cannot transfer {creature_id} to its owner", creature_id=creature_id
            )
        self._ensure_capacity(to)

        self.transfer_to(creature_id, to)
        self._emit(RegistryEvent.transferred(sender, to, creature_id))

    def buy_creature(self, origin: Origin, creature_id: str, bid_price: int) -> None:
        """Buy a creature that is for sale, paying ``bid_price`` to the seller.

        Raises:
            AssetNotFoundError: Creature does not exist.
            BuyerIsOwnerError: Caller already owns it.
            NotForSaleError: Creature has no price.
            BidPriceTooLowError: Bid below the asking price.
            NotEnoughBalanceError: Caller cannot cover the bid.
            BalanceOverflowError: Seller cannot receive the bid.
            ExceedMaxOwnedError: Caller is at capacity.
            PaymentFailedError: The currency ledger refused the payment;
                ownership is left unchanged.
        """
        buyer = self.resolver.resolve(origin)
        if self.currency is None:
            raise RuntimeError("buy_creature requires a currency ledger")

        creature = self.storage.assets.get(creature_id)
        if creature is None:
            raise AssetNotFoundError(
                f"creature not found: {creature_id}", creature_id=creature_id
            )
        seller = creature.owner
        if seller == buyer:
            raise BuyerIsOwnerError(
                f"{buyer} already owns {creature_id}", creature_id=creature_id
            )
        if creature.price is None:
            raise NotForSaleError(
                f"creature {creature_id} is not for sale", creature_id=creature_id
            )
        if bid_price < creature.price:
            raise BidPriceTooLowError(
                f"bid {bid_price} is below asking price {creature.price}",
                bid_price=bid_price,
                ask_price=creature.price,
            )
        if self.currency.free_balance(buyer) < bid_price:
            raise NotEnoughBalanceError(
                f"{buyer} cannot cover bid {bid_price}", bid_price=bid_price
            )
        if self.currency.free_balance(seller) + bid_price > MAX_BALANCE:
            raise BalanceOverflowError(
                f"{seller} cannot receive {bid_price} without exceeding the balance ceiling",
                seller=seller,
                bid_price=bid_price,
            )
        self._ensure_capacity(buyer)

        # Payment last: the ownership change above it can still roll back
        with self.storage.transactional():
            self._move(creature_id, creature, buyer)
            if not self.currency.transfer(buyer, seller, bid_price):
                raise PaymentFailedError(
                    f"payment of {bid_price} from {buyer} to {seller} was refused",
                    bid_price=bid_price,
                )
        logger.info("Creature %s sold by %s to %s for %d", creature_id, seller, buyer, bid_price)
        self._emit(RegistryEvent.bought(buyer, seller, creature_id, bid_price))

    # ===== INTERNALS =====

    def _move(self, creature_id: str, creature: Creature, to: str) -> None:
        """Reassign ownership and clear the price, all or nothing."""
        with self.storage.transactional():
            self.storage.owned.remove(creature.owner, creature_id)
            self.storage.owned.try_append(to, creature_id)
            self.storage.assets.update(creature_id, replace(creature, owner=to, price=None))

    def _ensure_owner(self, creature_id: str, account: str) -> Creature:
        """Return the creature if ``account`` owns it."""
        if not self.is_owner(creature_id, account):
            raise NotOwnerError(
                f"{account} does not own {creature_id}",
                creature_id=creature_id,
                account=account,
            )
        return self.storage.assets.get(creature_id)  # type: ignore[return-value]

    def _ensure_capacity(self, account: str) -> None:
        if not self.storage.owned.has_capacity(account):
            raise ExceedMaxOwnedError(
                f"{account} already owns the maximum of {self.storage.max_owned} creatures",
                owner=account,
                max_owned=self.storage.max_owned,
            )

    def _emit(self, event: RegistryEvent) -> None:
        """Notify the event sink. Sink failures never fail the operation."""
        if self.events is None:
            return
        try:
            self.events.notify(event)
        except OSError as exc:
            logger.warning("Event sink failed for %s: %s", event.event_type.value, exc)

# Creature registry package
from .models import Creature, Gender, gender_from_dna
from .codec import encode_creature, decode_creature
from .identity import derive_creature_id
from .genetics import GeneticsEngine, mix_dna
from .storage import AssetStore, OwnershipIndex, StorageContext
from .lifecycle import LifecycleService
from .providers import (
    Origin, ensure_signed, CallerResolver, SignedCallerResolver,
    RandomnessSource, HeightOracle, CurrencyLedger, EventSink,
)
from .chain import BlockClock, CollectiveFlipRandomness
from .ledger import Ledger
from .events import EventType, RegistryEvent
from .logger import EventLogger
from .errors import (
    CreatureError, CounterOverflowError, ExceedMaxOwnedError, AssetNotFoundError,
    DuplicateIdentifierError, UnauthenticatedError, NotOwnerError,
    TransferToSelfError, BuyerIsOwnerError, NotForSaleError,
    BidPriceTooLowError, NotEnoughBalanceError, BalanceOverflowError,
    PaymentFailedError, CodecError, CheckpointError,
)

__all__ = [
    "Creature", "Gender", "gender_from_dna",
    "encode_creature", "decode_creature", "derive_creature_id",
    "GeneticsEngine", "mix_dna",
    "AssetStore", "OwnershipIndex", "StorageContext",
    "LifecycleService",
    "Origin", "ensure_signed", "CallerResolver", "SignedCallerResolver",
    "RandomnessSource", "HeightOracle", "CurrencyLedger", "EventSink",
    "BlockClock", "CollectiveFlipRandomness",
    "Ledger",
    "EventType", "RegistryEvent", "EventLogger",
    "CreatureError", "CounterOverflowError", "ExceedMaxOwnedError", "AssetNotFoundError",
    "DuplicateIdentifierError", "UnauthenticatedError", "NotOwnerError",
    "TransferToSelfError", "BuyerIsOwnerError", "NotForSaleError",
    "BidPriceTooLowError", "NotEnoughBalanceError", "BalanceOverflowError",
    "PaymentFailedError", "CodecError", "CheckpointError",
]

"""Tests for the signed dispatchables: create, breed, price, transfer, buy."""

import logging

import pytest

from src.creatures.constants import MAX_BALANCE
from src.creatures.errors import (
    AssetNotFoundError,
    BalanceOverflowError,
    BidPriceTooLowError,
    BuyerIsOwnerError,
    CreatureError,
    ErrorCode,
    ExceedMaxOwnedError,
    NotEnoughBalanceError,
    NotForSaleError,
    NotOwnerError,
    PaymentFailedError,
    TransferToSelfError,
    UnauthenticatedError,
)
from src.creatures.events import EventType
from src.creatures.genetics import GeneticsEngine
from src.creatures.ledger import Ledger
from src.creatures.lifecycle import LifecycleService
from src.creatures.models import Gender
from src.creatures.providers import Origin
from src.creatures.storage import StorageContext
from tests.testing_utils import BrokenSink, RecordingSink, snapshot


ALICE = Origin.signed("alice")
BOB = Origin.signed("bob")


class RefusingLedger:
    """CurrencyLedger that reports enough balance but refuses to pay."""

    def free_balance(self, account: str) -> int:
        return 10**6

    def transfer(self, from_id: str, to_id: str, amount: int) -> bool:
        return False


class TestCreateAndBreed:
    """Tests for create_creature and breed_creature."""

    def test_create_emits_created(self, service: LifecycleService, sink: RecordingSink) -> None:
        creature_id = service.create_creature(ALICE)

        assert service.is_owner(creature_id, "alice")
        assert len(sink.events) == 1
        assert sink.events[0].event_type == EventType.CREATED
        assert sink.events[0].data == {"owner": "alice", "creature_id": creature_id}

    def test_unsigned_origin_rejected(self, service: LifecycleService, sink: RecordingSink) -> None:
        with pytest.raises(UnauthenticatedError):
            service.create_creature(Origin.none())
        assert service.count() == 0
        assert sink.events == []

    def test_breed_requires_both_parents_owned(self, service: LifecycleService) -> None:
        p1 = service.create_creature(ALICE)
        p2 = service.create_creature(BOB)
        before = snapshot(service.storage)

        with pytest.raises(NotOwnerError):
            service.breed_creature(ALICE, p1, p2)
        assert snapshot(service.storage) == before

    def test_breed_missing_parent(self, service: LifecycleService) -> None:
        p1 = service.create_creature(ALICE)
        with pytest.raises(AssetNotFoundError):
            service.breed_creature(ALICE, p1, "0" * 64)

    def test_breed_emits_created(self, service: LifecycleService, sink: RecordingSink) -> None:
        p1 = service.create_creature(ALICE)
        p2 = service.create_creature(ALICE)
        child = service.breed_creature(ALICE, p1, p2)

        assert service.owned_by("alice") == [p1, p2, child]
        assert [e.event_type for e in sink.events] == [EventType.CREATED] * 3


class TestSetPrice:
    """Tests for set_price."""

    def test_set_and_clear(self, service: LifecycleService, sink: RecordingSink) -> None:
        creature_id = service.create_creature(ALICE)

        service.set_price(ALICE, creature_id, 50)
        assert service.get(creature_id).price == 50  # type: ignore[union-attr]

        service.set_price(ALICE, creature_id, None)
        assert service.get(creature_id).price is None  # type: ignore[union-attr]

        assert sink.events[-1].event_type == EventType.PRICE_SET
        assert sink.events[-1].data["price"] is None

    def test_not_owner(self, service: LifecycleService) -> None:
        creature_id = service.create_creature(ALICE)
        with pytest.raises(NotOwnerError):
            service.set_price(BOB, creature_id, 5)
        assert service.get(creature_id).price is None  # type: ignore[union-attr]

    def test_missing_creature(self, service: LifecycleService) -> None:
        with pytest.raises(AssetNotFoundError):
            service.set_price(ALICE, "0" * 64, 5)

    def test_negative_price_rejected(self, service: LifecycleService) -> None:
        creature_id = service.create_creature(ALICE)
        with pytest.raises(CreatureError) as exc_info:
            service.set_price(ALICE, creature_id, -1)
        assert exc_info.value.code == ErrorCode.INVALID_ARGUMENT

    def test_price_does_not_change_id(self, service: LifecycleService) -> None:
        creature_id = service.create_creature(ALICE)
        service.set_price(ALICE, creature_id, 9)
        assert service.owned_by("alice") == [creature_id]
        assert service.is_owner(creature_id, "alice")


class TestTransfer:
    """Tests for transfer."""

    def test_transfer_moves_and_clears_price(
        self, service: LifecycleService, sink: RecordingSink
    ) -> None:
        creature_id = service.create_creature(ALICE)
        service.set_price(ALICE, creature_id, 10)

        service.transfer(ALICE, "bob", creature_id)

        creature = service.get(creature_id)
        assert creature is not None
        assert creature.owner == "bob"
        assert creature.price is None
        assert service.owned_by("alice") == []
        assert service.owned_by("bob") == [creature_id]
        assert sink.events[-1].data == {
            "from_id": "alice", "to_id": "bob", "creature_id": creature_id,
        }

    def test_transfer_to_self(self, service: LifecycleService) -> None:
        creature_id = service.create_creature(ALICE)
        with pytest.raises(TransferToSelfError):
            service.transfer(ALICE, "alice", creature_id)

    def test_not_owner(self, service: LifecycleService) -> None:
        creature_id = service.create_creature(ALICE)
        with pytest.raises(NotOwnerError):
            service.transfer(BOB, "bob", creature_id)

    def test_receiver_at_capacity(self, genetics: GeneticsEngine) -> None:
        service = LifecycleService(StorageContext(max_owned=1), genetics)
        creature_id = service.create_creature(ALICE)
        service.create_creature(BOB)
        before = snapshot(service.storage)

        with pytest.raises(ExceedMaxOwnedError):
            service.transfer(ALICE, "bob", creature_id)
        assert snapshot(service.storage) == before

    def test_transfer_keeps_order_of_remaining(self, service: LifecycleService) -> None:
        ids = [service.create_creature(ALICE) for _ in range(3)]
        service.transfer(ALICE, "bob", ids[1])
        assert service.owned_by("alice") == [ids[0], ids[2]]


class TestBuy:
    """Tests for buy_creature."""

    @pytest.fixture
    def listed(self, service: LifecycleService) -> str:
        """A creature alice is selling for 50."""
        creature_id = service.create_creature(ALICE)
        service.set_price(ALICE, creature_id, 50)
        return creature_id

    def test_buy_moves_creature_and_pays(
        self, service: LifecycleService, ledger: Ledger, sink: RecordingSink, listed: str
    ) -> None:
        service.buy_creature(BOB, listed, 60)

        assert service.is_owner(listed, "bob")
        assert service.get(listed).price is None  # type: ignore[union-attr]
        assert ledger.get_scrip("alice") == 160
        assert ledger.get_scrip("bob") == 140
        assert sink.events[-1].event_type == EventType.BOUGHT
        assert sink.events[-1].data == {
            "buyer": "bob", "seller": "alice", "creature_id": listed, "price": 60,
        }

    def test_buyer_is_owner(self, service: LifecycleService, listed: str) -> None:
        with pytest.raises(BuyerIsOwnerError):
            service.buy_creature(ALICE, listed, 60)

    def test_not_for_sale(self, service: LifecycleService) -> None:
        creature_id = service.create_creature(ALICE)
        with pytest.raises(NotForSaleError):
            service.buy_creature(BOB, creature_id, 60)

    def test_bid_too_low(self, service: LifecycleService, ledger: Ledger, listed: str) -> None:
        with pytest.raises(BidPriceTooLowError) as exc_info:
            service.buy_creature(BOB, listed, 49)
        assert exc_info.value.details == {"bid_price": 49, "ask_price": 50}
        assert ledger.get_scrip("bob") == 200

    def test_not_enough_balance(self, service: LifecycleService, listed: str) -> None:
        with pytest.raises(NotEnoughBalanceError):
            service.buy_creature(Origin.signed("carol"), listed, 50)
        assert service.is_owner(listed, "alice")

    def test_missing_creature(self, service: LifecycleService) -> None:
        with pytest.raises(AssetNotFoundError):
            service.buy_creature(BOB, "0" * 64, 1)

    def test_buyer_at_capacity(self, genetics: GeneticsEngine, ledger: Ledger) -> None:
        service = LifecycleService(StorageContext(max_owned=1), genetics, currency=ledger)
        listed = service.create_creature(ALICE)
        service.set_price(ALICE, listed, 1)
        service.create_creature(BOB)

        with pytest.raises(ExceedMaxOwnedError):
            service.buy_creature(BOB, listed, 1)
        assert ledger.get_scrip("bob") == 200

    def test_failed_payment_rolls_back_ownership(self, genetics: GeneticsEngine) -> None:
        service = LifecycleService(StorageContext(), genetics, currency=RefusingLedger())
        listed = service.mint("alice", bytes(16), Gender.MALE)
        service.set_price(ALICE, listed, 5)
        before = snapshot(service.storage)

        with pytest.raises(PaymentFailedError):
            service.buy_creature(BOB, listed, 5)

        assert snapshot(service.storage) == before
        assert service.get(listed).price == 5  # type: ignore[union-attr]

    def test_rolled_back_buy_logs_no_move(
        self, genetics: GeneticsEngine, caplog: pytest.LogCaptureFixture
    ) -> None:
        service = LifecycleService(StorageContext(), genetics, currency=RefusingLedger())
        listed = service.mint("alice", bytes(16), Gender.MALE)
        service.set_price(ALICE, listed, 5)

        with caplog.at_level(logging.INFO, logger="src.creatures.lifecycle"):
            with pytest.raises(PaymentFailedError):
                service.buy_creature(BOB, listed, 5)

        assert not [r for r in caplog.records if "moved" in r.getMessage()]
        assert not [r for r in caplog.records if "sold" in r.getMessage()]

    def test_buy_logs_sale_after_commit(
        self, service: LifecycleService, listed: str, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.INFO, logger="src.creatures.lifecycle"):
            service.buy_creature(BOB, listed, 50)
        assert any("sold by alice to bob" in r.getMessage() for r in caplog.records)

    def test_seller_overflow_changes_nothing(
        self, service: LifecycleService, ledger: Ledger, sink: RecordingSink, listed: str
    ) -> None:
        ledger.credit_scrip("alice", MAX_BALANCE - 100)
        before = snapshot(service.storage)
        events_before = len(sink.events)

        with pytest.raises(BalanceOverflowError) as exc_info:
            service.buy_creature(BOB, listed, 50)

        assert exc_info.value.code == ErrorCode.BALANCE_OVERFLOW
        assert snapshot(service.storage) == before
        assert ledger.get_scrip("bob") == 200
        assert ledger.get_scrip("alice") == MAX_BALANCE
        assert len(sink.events) == events_before

    def test_requires_currency(self, genetics: GeneticsEngine) -> None:
        service = LifecycleService(StorageContext(), genetics)
        with pytest.raises(RuntimeError):
            service.buy_creature(BOB, "0" * 64, 1)


class TestEventSinkFailure:
    """A broken sink is logged, never raised."""

    def test_operation_succeeds(self, storage: StorageContext, genetics: GeneticsEngine) -> None:
        service = LifecycleService(storage, genetics, events=BrokenSink())
        creature_id = service.create_creature(ALICE)
        assert service.is_owner(creature_id, "alice")

    def test_no_sink(self, storage: StorageContext, genetics: GeneticsEngine) -> None:
        service = LifecycleService(storage, genetics)
        service.create_creature(ALICE)
        assert service.count() == 1

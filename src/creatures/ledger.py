"""Ledger for scrip, the currency creatures are bought and sold with.

Scrip is stored as int (discrete currency units) per account. The ledger
satisfies the CurrencyLedger protocol (free_balance/transfer) used by
LifecycleService.buy_creature.
"""

# All balance mutations go through here.
# Never allow negative balances - fail loud.
from __future__ import annotations

from .constants import MAX_BALANCE


class Ledger:
    """Tracks scrip per account.

    Transfers auto-create the recipient with a zero balance, so a seller
    does not need to be registered before receiving payment.
    """

    scrip: dict[str, int]

    def __init__(self) -> None:
        self.scrip = {}

    def create_account(self, account_id: str, starting_scrip: int = 0) -> None:
        """Create an account with a starting balance."""
        if starting_scrip < 0:
            raise ValueError(f"starting scrip cannot be negative: {starting_scrip}")
        if starting_scrip > MAX_BALANCE:
            raise ValueError(f"starting scrip above the balance ceiling: {starting_scrip}")
        self.scrip[account_id] = starting_scrip

    def get_scrip(self, account_id: str) -> int:
        """Get scrip balance. Unknown accounts have 0."""
        return self.scrip.get(account_id, 0)

    def free_balance(self, account: str) -> int:
        return self.get_scrip(account)

    def can_afford_scrip(self, account_id: str, amount: int) -> bool:
        return self.get_scrip(account_id) >= amount

    def credit_scrip(self, account_id: str, amount: int) -> None:
        """Add scrip to an account."""
        if amount < 0:
            raise ValueError(f"cannot credit a negative amount: {amount}")
        balance = self.scrip.get(account_id, 0) + amount
        if balance > MAX_BALANCE:
            raise ValueError(f"balance overflow for {account_id}")
        self.scrip[account_id] = balance

    def transfer(self, from_id: str, to_id: str, amount: int) -> bool:
        """Transfer scrip between accounts. Returns False if not possible.

        Zero-amount transfers succeed without touching balances.
        """
        if amount < 0:
            return False
        if not self.can_afford_scrip(from_id, amount):
            return False
        if self.get_scrip(to_id) + amount > MAX_BALANCE:
            return False
        if amount == 0:
            return True
        self.scrip.setdefault(to_id, 0)
        self.scrip[from_id] -= amount
        self.scrip[to_id] += amount
        return True

    def get_all_scrip(self) -> dict[str, int]:
        """Snapshot of all scrip balances."""
        return dict(self.scrip)

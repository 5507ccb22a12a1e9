"""Wallet Rules — balance arithmetic and request limits for the stored-value wallet.

Invariants:
    - Balances never go negative: apply_debit raises InsufficientFundsError instead
    - pending_balance never goes negative when funds are released
    - Deposit amount in (0, MAX_DEPOSIT]; withdrawal amount >= MIN_WITHDRAWAL
    - Transfers move a positive amount between two different users
    - Reversals take back at most what the balance holds
    - All arithmetic returns 2-place Decimals

Design Decisions:
    - Functions return new values instead of mutating ORM rows (service assigns them)
"""

from dataclasses import dataclass
from decimal import Decimal

from marketplace.core.domain_types import ZERO, to_money
from marketplace.core.errors import InsufficientFundsError, InvalidRequestError

MAX_DEPOSIT = Decimal("100000")
MIN_WITHDRAWAL = Decimal("1.00")
DEPOSIT_CURRENCIES = ("gbp", "usd", "eur")


@dataclass(frozen=True)
class PendingRelease:
    balance: Decimal
    pending_balance: Decimal
    released: Decimal


def validate_deposit(amount: Decimal, currency: str) -> None:
    if amount <= 0:
        raise InvalidRequestError("Amount must be positive", field="amount")
    if amount > MAX_DEPOSIT:
        raise InvalidRequestError("Amount too large", field="amount")
    if currency.lower() not in DEPOSIT_CURRENCIES:
        raise InvalidRequestError(
            f"Unsupported currency '{currency}'", field="currency",
        )


def validate_withdrawal(amount: Decimal, balance: Decimal) -> None:
    if amount <= 0:
        raise InvalidRequestError("Amount must be positive", field="amount")
    if amount < MIN_WITHDRAWAL:
        raise InvalidRequestError(
            f"Minimum withdrawal is {MIN_WITHDRAWAL}", field="amount",
        )
    if to_money(balance) < to_money(amount):
        raise InsufficientFundsError(to_money(balance), to_money(amount))


def validate_transfer(amount: Decimal, sender_id, recipient_id) -> None:
    if amount <= 0:
        raise InvalidRequestError("Amount must be positive", field="amount")
    if sender_id == recipient_id:
        raise InvalidRequestError(
            "Cannot transfer to your own wallet", field="recipient_id",
        )


def apply_debit(balance: Decimal, amount: Decimal) -> Decimal:
    """New balance after a debit. Raises when the balance does not cover it."""
    balance, amount = to_money(balance), to_money(amount)
    if amount < 0:
        raise ValueError("debit amount must not be negative")
    if balance < amount:
        raise InsufficientFundsError(balance, amount)
    return to_money(balance - amount)


def apply_credit(balance: Decimal, amount: Decimal) -> Decimal:
    amount = to_money(amount)
    if amount < 0:
        raise ValueError("credit amount must not be negative")
    return to_money(to_money(balance) + amount)


def move_pending_to_available(
    balance: Decimal, pending_balance: Decimal, amount: Decimal,
) -> PendingRelease:
    """Release up to `amount` from pending into available balance."""
    pending = to_money(pending_balance)
    released = min(to_money(amount), pending) if pending > 0 else ZERO
    return PendingRelease(
        balance=to_money(to_money(balance) + released),
        pending_balance=to_money(pending - released),
        released=released,
    )


def reverse_credit(balance: Decimal, amount: Decimal) -> tuple[Decimal, Decimal]:
    """Take back up to `amount`. Returns (new balance, amount taken)."""
    balance = to_money(balance)
    taken = max(ZERO, min(to_money(amount), balance))
    return to_money(balance - taken), taken

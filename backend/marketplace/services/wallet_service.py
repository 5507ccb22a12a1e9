"""Wallet Service — stored balance, ledger, deposits, withdrawals, transfers, purchases and escrow.

Invariants:
    - Every balance change writes exactly one WalletTransaction on the affected wallet
    - Pending sale and escrow rows are completed when their funds are released
    - A withdrawal is debited and flushed before the payout is requested
    - Wallet rows are locked (SELECT ... FOR UPDATE) before any balance change
    - Balances never go negative (core.wallet_rules raises first)
    - Deposit confirmation and sale settlement are idempotent

Design Decisions:
    - Deposits are credited only from the payment webhook, never from the request
    - A wallet sale credits the seller's pending_balance; delivery settles it
    - Trade cash is escrowed into the seller's pending_balance on accept and
      released to available balance when the buyer confirms receipt
    - Wallets touched together are locked in user_id order
"""

import logging
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.core.checkout import check_purchasable, to_minor_units
from marketplace.core.domain_types import (
    ListingStatus, OrderStatus, PaymentMethod, TransactionStatus,
    WalletTransactionType, ZERO, to_money, utcnow,
)
from marketplace.core.errors import (
    BusinessRuleError, ResourceNotFoundError,
)
from marketplace.core.order_rules import seller_share
from marketplace.core.wallet_rules import (
    apply_credit, apply_debit, move_pending_to_available, reverse_credit,
    validate_deposit, validate_transfer, validate_withdrawal,
)
from marketplace.infrastructure.auth import CurrentUser
from marketplace.infrastructure.payment_gateway import PaymentGateway
from marketplace.models.bank_account import BankAccount
from marketplace.models.listing import Listing
from marketplace.models.order import Order
from marketplace.models.profile import Profile
from marketplace.models.trade_offer import TradeOffer
from marketplace.models.wallet import WalletAccount, WalletTransaction
from marketplace.services.profile_service import ensure_profile
from marketplace.services.quote_service import quote_listing

logger = logging.getLogger(__name__)


# ─── Accounts & ledger ──────────────────────────────────────────

async def get_or_create_wallet(
    db: AsyncSession, user_id: UUID, lock: bool = False,
) -> WalletAccount:
    query = select(WalletAccount).where(WalletAccount.user_id == user_id)
    if lock:
        query = query.with_for_update()
    wallet = (await db.execute(query)).scalar_one_or_none()
    if wallet is None:
        wallet = WalletAccount(
            user_id=user_id, balance=Decimal("0.00"), pending_balance=Decimal("0.00"),
        )
        db.add(wallet)
        await db.flush()
        logger.info(
            f"Created wallet for {user_id}",
            extra={"user_id": str(user_id), "wallet_id": str(wallet.id)},
        )
    return wallet


def _record(
    db: AsyncSession,
    wallet: WalletAccount,
    tx_type: WalletTransactionType,
    amount: Decimal,
    *,
    status: TransactionStatus = TransactionStatus.COMPLETED,
    description: str | None = None,
    external_reference: str | None = None,
    related_order_id: UUID | None = None,
    related_offer_id: UUID | None = None,
) -> WalletTransaction:
    tx = WalletTransaction(
        wallet_id=wallet.id,
        type=tx_type.value,
        amount=to_money(amount),
        balance_after=to_money(wallet.balance),
        status=status.value,
        description=description,
        external_reference=external_reference,
        related_order_id=related_order_id,
        related_offer_id=related_offer_id,
    )
    db.add(tx)
    return tx


async def get_wallet(db: AsyncSession, user: CurrentUser) -> WalletAccount:
    await ensure_profile(db, user)
    wallet = await get_or_create_wallet(db, user.id)
    await db.commit()
    return wallet


async def list_transactions(
    db: AsyncSession, user: CurrentUser, limit: int = 20, offset: int = 0,
) -> list[WalletTransaction]:
    wallet = (await db.execute(
        select(WalletAccount).where(WalletAccount.user_id == user.id),
    )).scalar_one_or_none()
    if wallet is None:
        return []
    result = await db.execute(
        select(WalletTransaction)
        .where(WalletTransaction.wallet_id == wallet.id)
        .order_by(WalletTransaction.created_at.desc())
        .limit(limit)
        .offset(offset),
    )
    return list(result.scalars().all())


# ─── Deposits ───────────────────────────────────────────────────

async def start_deposit(
    db: AsyncSession,
    gateway: PaymentGateway,
    user: CurrentUser,
    amount: Decimal,
    currency: str = "gbp",
) -> dict:
    """Create a payment intent and a pending deposit row; the webhook credits it."""
    validate_deposit(amount, currency)
    await ensure_profile(db, user)
    wallet = await get_or_create_wallet(db, user.id)
    intent = await gateway.create_payment_intent(
        amount=to_minor_units(amount),
        currency=currency.lower(),
        metadata={
            "type": "wallet_deposit",
            "user_id": str(user.id),
            "wallet_id": str(wallet.id),
        },
    )
    tx = _record(
        db, wallet, WalletTransactionType.DEPOSIT, amount,
        status=TransactionStatus.PENDING,
        description="Wallet deposit",
        external_reference=intent.id,
    )
    await db.commit()
    logger.info(
        f"Started wallet deposit {intent.id}",
        extra={"user_id": str(user.id), "wallet_id": str(wallet.id), "amount": str(amount)},
    )
    return {
        "client_secret": intent.client_secret,
        "payment_intent_id": intent.id,
        "transaction_id": tx.id,
    }


async def _pending_deposit(db: AsyncSession, payment_intent_id: str) -> WalletTransaction | None:
    return (await db.execute(
        select(WalletTransaction).where(
            WalletTransaction.external_reference == payment_intent_id,
            WalletTransaction.type == WalletTransactionType.DEPOSIT.value,
        ),
    )).scalar_one_or_none()


async def confirm_deposit(db: AsyncSession, payment_intent_id: str) -> bool:
    """Credit a succeeded deposit. False when unknown or already processed."""
    tx = await _pending_deposit(db, payment_intent_id)
    if tx is None:
        logger.warning(f"Deposit confirmation for unknown intent {payment_intent_id}")
        return False
    if tx.status != TransactionStatus.PENDING.value:
        logger.info(f"Deposit {payment_intent_id} already {tx.status}")
        return False
    wallet = (await db.execute(
        select(WalletAccount).where(WalletAccount.id == tx.wallet_id).with_for_update(),
    )).scalar_one()
    wallet.balance = apply_credit(wallet.balance, tx.amount)
    tx.status = TransactionStatus.COMPLETED.value
    tx.balance_after = wallet.balance
    await db.commit()
    logger.info(
        f"Confirmed wallet deposit {payment_intent_id}",
        extra={"wallet_id": str(wallet.id), "amount": str(tx.amount)},
    )
    return True


async def fail_deposit(db: AsyncSession, payment_intent_id: str) -> bool:
    tx = await _pending_deposit(db, payment_intent_id)
    if tx is None or tx.status != TransactionStatus.PENDING.value:
        return False
    tx.status = TransactionStatus.FAILED.value
    await db.commit()
    logger.info(f"Wallet deposit {payment_intent_id} failed", extra={"wallet_id": str(tx.wallet_id)})
    return True


# ─── Withdrawals ────────────────────────────────────────────────

async def _withdrawal_account(
    db: AsyncSession, user_id: UUID, bank_account_id: UUID | None,
) -> BankAccount:
    query = select(BankAccount).where(BankAccount.user_id == user_id)
    if bank_account_id:
        account = (await db.execute(
            query.where(BankAccount.id == bank_account_id),
        )).scalar_one_or_none()
        if account is None:
            raise ResourceNotFoundError("Bank account", str(bank_account_id))
        return account
    account = (await db.execute(
        query.order_by(BankAccount.is_default.desc(), BankAccount.created_at.desc()).limit(1),
    )).scalar_one_or_none()
    if account is None:
        raise BusinessRuleError(
            "Add a bank account before withdrawing", "NO_BANK_ACCOUNT",
        )
    return account


async def withdraw(
    db: AsyncSession,
    gateway: PaymentGateway,
    user: CurrentUser,
    amount: Decimal,
    bank_account_id: UUID | None = None,
) -> dict:
    """Debit the wallet, then pay out. A failed payout rolls the debit back."""
    profile = await ensure_profile(db, user)
    wallet = await get_or_create_wallet(db, user.id, lock=True)
    validate_withdrawal(amount, wallet.balance)
    account = await _withdrawal_account(db, user.id, bank_account_id)
    if not profile.payout_account_id or not profile.payouts_enabled:
        raise BusinessRuleError(
            "Complete seller onboarding before withdrawing", "PAYOUTS_NOT_ENABLED",
        )

    wallet.balance = apply_debit(wallet.balance, amount)
    tx = _record(
        db, wallet, WalletTransactionType.WITHDRAWAL, -to_money(amount),
        status=TransactionStatus.PENDING,
        description=f"Withdrawal to account ending {account.account_last4}",
    )
    await db.flush()

    transfer = await gateway.create_transfer(
        amount=to_minor_units(amount),
        currency=wallet.currency,
        destination_account=profile.payout_account_id,
        metadata={
            "type": "wallet_withdrawal",
            "user_id": str(user.id),
            "wallet_id": str(wallet.id),
            "bank_account_id": str(account.id),
            "transaction_id": str(tx.id),
        },
    )
    tx.external_reference = transfer.id
    await db.commit()
    logger.info(
        f"Wallet withdrawal {transfer.id}",
        extra={"user_id": str(user.id), "wallet_id": str(wallet.id), "amount": str(amount)},
    )
    return {
        "transaction_id": tx.id,
        "transfer_id": transfer.id,
        "amount": to_money(amount),
        "new_balance": wallet.balance,
    }


# ─── Purchases & settlement ─────────────────────────────────────

async def purchase(
    db: AsyncSession,
    user: CurrentUser,
    listing_id: UUID,
    shipping_address: dict | None = None,
) -> dict:
    """Buy a listing outright from the wallet balance (wallet-purchase)."""
    listing = (await db.execute(
        select(Listing).where(Listing.id == listing_id).with_for_update(),
    )).scalar_one_or_none()
    if listing is None:
        raise ResourceNotFoundError("Listing", str(listing_id))
    check_purchasable(listing.status, listing.seller_id, user.id)
    await ensure_profile(db, user)

    country = (shipping_address or {}).get("country")
    totals = await quote_listing(db, listing, user.id, country)
    buyer_wallet = await get_or_create_wallet(db, user.id, lock=True)
    buyer_wallet.balance = apply_debit(buyer_wallet.balance, totals.total_amount)

    now = utcnow()
    order = Order(
        buyer_id=user.id,
        seller_id=listing.seller_id,
        listing_id=listing.id,
        status=OrderStatus.PAID.value,
        payment_method=PaymentMethod.WALLET.value,
        item_price=totals.item_price,
        shipping_cost=totals.shipping_cost,
        buyer_fee=totals.buyer_fee,
        seller_fee=totals.seller_fee,
        platform_fee=totals.platform_fee,
        total_amount=totals.total_amount,
        seller_amount=totals.seller_amount,
        currency=totals.currency,
        shipping_address=shipping_address,
        paid_at=now,
    )
    db.add(order)
    await db.flush()

    _record(
        db, buyer_wallet, WalletTransactionType.PURCHASE, -totals.total_amount,
        description=f"Purchase of {listing.title}",
        related_order_id=order.id,
    )
    listing.status = ListingStatus.SOLD.value

    seller_credit = to_money(totals.seller_amount + totals.shipping_cost)
    seller_wallet = await get_or_create_wallet(db, listing.seller_id, lock=True)
    seller_wallet.pending_balance = apply_credit(seller_wallet.pending_balance, seller_credit)
    _record(
        db, seller_wallet, WalletTransactionType.SALE_PENDING, seller_credit,
        status=TransactionStatus.PENDING,
        description=f"Sale of {listing.title} (pending delivery)",
        related_order_id=order.id,
    )
    await db.commit()
    logger.info(
        f"Wallet purchase of listing {listing.id}",
        extra={
            "user_id": str(user.id), "order_id": str(order.id),
            "listing_id": str(listing.id), "amount": str(totals.total_amount),
        },
    )
    return {
        "order_id": order.id,
        "total_amount": totals.total_amount,
        "new_balance": buyer_wallet.balance,
    }


async def _complete_pending(
    db: AsyncSession,
    wallet: WalletAccount,
    tx_type: WalletTransactionType,
    *,
    related_order_id: UUID | None = None,
    related_offer_id: UUID | None = None,
    status: TransactionStatus = TransactionStatus.COMPLETED,
) -> None:
    """Close the pending ledger row a sale or escrow credit opened."""
    query = select(WalletTransaction).where(
        WalletTransaction.wallet_id == wallet.id,
        WalletTransaction.type == tx_type.value,
        WalletTransaction.status == TransactionStatus.PENDING.value,
    )
    if related_order_id is not None:
        query = query.where(WalletTransaction.related_order_id == related_order_id)
    if related_offer_id is not None:
        query = query.where(WalletTransaction.related_offer_id == related_offer_id)
    for tx in (await db.execute(query)).scalars():
        tx.status = status.value


def _seller_credit(order: Order) -> Decimal:
    return to_money(order.seller_amount + order.shipping_cost)


async def settle_wallet_sale(db: AsyncSession, order: Order) -> bool:
    """Move a delivered wallet sale from pending to available. Caller commits."""
    if order.payment_method != PaymentMethod.WALLET.value or order.seller_settled:
        return False
    credit = _seller_credit(order)
    already_reversed = seller_share(credit, order.total_amount, order.refunded_amount or ZERO)
    seller_wallet = await get_or_create_wallet(db, order.seller_id, lock=True)
    release = move_pending_to_available(
        seller_wallet.balance, seller_wallet.pending_balance, credit - already_reversed,
    )
    seller_wallet.balance = release.balance
    seller_wallet.pending_balance = release.pending_balance
    _record(
        db, seller_wallet, WalletTransactionType.SALE_SETTLEMENT, release.released,
        description="Sale settled after delivery",
        related_order_id=order.id,
    )
    await _complete_pending(
        db, seller_wallet, WalletTransactionType.SALE_PENDING, related_order_id=order.id,
    )
    order.seller_settled = True
    logger.info(
        f"Settled wallet sale for order {order.id}",
        extra={"order_id": str(order.id), "amount": str(release.released)},
    )
    return True


async def refund_wallet_order(db: AsyncSession, order: Order, amount: Decimal) -> Decimal:
    """Credit the buyer and take the seller's share back. Caller commits.

    The seller gives back the same fraction of their credit as the buyer
    receives; unsettled sales lose it from pending, settled ones from balance.
    Returns the amount reversed from the seller.
    """
    amount = to_money(amount)
    credit = _seller_credit(order)
    refunded_before = to_money(order.refunded_amount or ZERO)
    refunded_after = refunded_before + amount
    reversal = (
        seller_share(credit, order.total_amount, refunded_after)
        - seller_share(credit, order.total_amount, refunded_before)
    )
    wallets = await _lock_wallets(db, order.buyer_id, order.seller_id)
    buyer_wallet, seller_wallet = wallets[order.buyer_id], wallets[order.seller_id]

    buyer_wallet.balance = apply_credit(buyer_wallet.balance, amount)
    _record(
        db, buyer_wallet, WalletTransactionType.REFUND, amount,
        description="Refund for order",
        related_order_id=order.id,
    )

    if order.seller_settled:
        seller_wallet.balance, taken = reverse_credit(seller_wallet.balance, reversal)
    else:
        seller_wallet.pending_balance, taken = reverse_credit(
            seller_wallet.pending_balance, reversal,
        )
    _record(
        db, seller_wallet, WalletTransactionType.SALE_REVERSAL, -taken,
        description="Sale reversed by refund",
        related_order_id=order.id,
    )
    if not order.seller_settled and refunded_after >= to_money(order.total_amount):
        await _complete_pending(
            db, seller_wallet, WalletTransactionType.SALE_PENDING,
            related_order_id=order.id, status=TransactionStatus.FAILED,
        )
    if taken < reversal:
        logger.warning(
            f"Seller wallet short by {reversal - taken} reversing order {order.id}",
            extra={"order_id": str(order.id), "user_id": str(order.seller_id)},
        )
    logger.info(
        f"Refunded {amount} to wallet for order {order.id}",
        extra={"order_id": str(order.id), "amount": str(amount)},
    )
    return taken


# ─── Transfers ──────────────────────────────────────────────────

async def _lock_wallets(db: AsyncSession, *user_ids: UUID) -> dict[UUID, WalletAccount]:
    """Lock wallets in a fixed order so concurrent pairs cannot deadlock."""
    return {
        user_id: await get_or_create_wallet(db, user_id, lock=True)
        for user_id in sorted(set(user_ids), key=str)
    }


async def transfer_funds(
    db: AsyncSession,
    user: CurrentUser,
    recipient_id: UUID,
    amount: Decimal,
    description: str | None = None,
) -> dict:
    """Move balance from the caller's wallet to another user's."""
    validate_transfer(amount, user.id, recipient_id)
    await ensure_profile(db, user)
    if await db.get(Profile, recipient_id) is None:
        raise ResourceNotFoundError("User", str(recipient_id))

    amount = to_money(amount)
    description = description or "Transfer to user"
    wallets = await _lock_wallets(db, user.id, recipient_id)
    sender, recipient = wallets[user.id], wallets[recipient_id]
    sender.balance = apply_debit(sender.balance, amount)
    recipient.balance = apply_credit(recipient.balance, amount)
    tx = _record(db, sender, WalletTransactionType.TRANSFER_OUT, -amount, description=description)
    _record(db, recipient, WalletTransactionType.TRANSFER_IN, amount, description=description)
    await db.commit()
    logger.info(
        f"Wallet transfer from {user.id} to {recipient_id}",
        extra={"user_id": str(user.id), "wallet_id": str(sender.id), "amount": str(amount)},
    )
    return {
        "transaction_id": tx.id,
        "recipient_id": recipient_id,
        "amount": amount,
        "new_balance": sender.balance,
    }


# ─── Trade escrow ───────────────────────────────────────────────

async def hold_trade_escrow(db: AsyncSession, offer: TradeOffer) -> Decimal:
    """Move offer cash from buyer balance into seller pending. Caller commits."""
    amount = to_money(offer.cash_amount)
    buyer_wallet = await get_or_create_wallet(db, offer.buyer_id, lock=True)
    buyer_wallet.balance = apply_debit(buyer_wallet.balance, amount)
    _record(
        db, buyer_wallet, WalletTransactionType.TRADE_ESCROW, -amount,
        description="Trade cash held in escrow",
        related_offer_id=offer.id,
    )
    seller_wallet = await get_or_create_wallet(db, offer.seller_id, lock=True)
    seller_wallet.pending_balance = apply_credit(seller_wallet.pending_balance, amount)
    _record(
        db, seller_wallet, WalletTransactionType.TRADE_ESCROW, amount,
        status=TransactionStatus.PENDING,
        description="Trade cash received in escrow",
        related_offer_id=offer.id,
    )
    logger.info(
        f"Escrowed {amount} for offer {offer.id}",
        extra={"offer_id": str(offer.id), "amount": str(amount)},
    )
    return amount


async def release_trade_escrow(db: AsyncSession, offer: TradeOffer) -> Decimal:
    """Release held trade cash to the seller's available balance. Caller commits."""
    seller_wallet = await get_or_create_wallet(db, offer.seller_id, lock=True)
    release = move_pending_to_available(
        seller_wallet.balance, seller_wallet.pending_balance, offer.escrow_amount,
    )
    seller_wallet.balance = release.balance
    seller_wallet.pending_balance = release.pending_balance
    _record(
        db, seller_wallet, WalletTransactionType.ESCROW_RELEASE, release.released,
        description="Trade escrow released",
        related_offer_id=offer.id,
    )
    await _complete_pending(
        db, seller_wallet, WalletTransactionType.TRADE_ESCROW, related_offer_id=offer.id,
    )
    logger.info(
        f"Released escrow for offer {offer.id}",
        extra={"offer_id": str(offer.id), "amount": str(release.released)},
    )
    return release.released

"""Wallet Schemas — balances, ledger rows, deposits, withdrawals, transfers and purchases."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class WalletResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    balance: Decimal
    pending_balance: Decimal
    currency: str


class WalletTransactionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    type: str
    amount: Decimal
    balance_after: Decimal | None
    status: str
    external_reference: str | None
    related_order_id: UUID | None
    related_offer_id: UUID | None
    description: str | None
    created_at: datetime


class TransactionPage(BaseModel):
    transactions: list[WalletTransactionResponse]
    limit: int
    offset: int


class DepositRequest(BaseModel):
    amount: Decimal = Field(gt=0)
    currency: str = Field("gbp", min_length=3, max_length=3)


class DepositResponse(BaseModel):
    client_secret: str
    payment_intent_id: str
    transaction_id: UUID


class WithdrawalRequest(BaseModel):
    amount: Decimal = Field(gt=0)
    bank_account_id: UUID | None = None


class WithdrawalResponse(BaseModel):
    transaction_id: UUID
    transfer_id: str
    amount: Decimal
    new_balance: Decimal


class TransferRequest(BaseModel):
    recipient_id: UUID
    amount: Decimal = Field(gt=0)
    description: str | None = Field(None, max_length=200)


class TransferResponse(BaseModel):
    transaction_id: UUID
    recipient_id: UUID
    amount: Decimal
    new_balance: Decimal


class WalletPurchaseRequest(BaseModel):
    listing_id: UUID
    shipping_address: dict | None = None


class WalletPurchaseResponse(BaseModel):
    order_id: UUID
    total_amount: Decimal
    new_balance: Decimal

"""Wallet Routes — balance, history, deposits, withdrawals, transfers and wallet purchases."""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.infrastructure.auth import CurrentUser, get_current_user
from marketplace.infrastructure.database import get_db
from marketplace.infrastructure.payment_gateway import PaymentGateway, get_payment_gateway
from marketplace.schemas.wallet import (
    DepositRequest, DepositResponse, TransactionPage, TransferRequest, TransferResponse,
    WalletPurchaseRequest, WalletPurchaseResponse, WalletResponse, WithdrawalRequest,
    WithdrawalResponse,
)
from marketplace.services import wallet_service

router = APIRouter(prefix="/api/v1/wallet", tags=["wallet"])


@router.get("", response_model=WalletResponse)
async def get_wallet(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await wallet_service.get_wallet(db, user)


@router.get("/transactions", response_model=TransactionPage)
async def list_transactions(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    transactions = await wallet_service.list_transactions(db, user, limit, offset)
    return {"transactions": transactions, "limit": limit, "offset": offset}


@router.post("/deposits", response_model=DepositResponse, status_code=status.HTTP_201_CREATED)
async def start_deposit(
    body: DepositRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    gateway: PaymentGateway = Depends(get_payment_gateway),
):
    return await wallet_service.start_deposit(db, gateway, user, body.amount, body.currency)


@router.post(
    "/withdrawals", response_model=WithdrawalResponse, status_code=status.HTTP_201_CREATED,
)
async def withdraw(
    body: WithdrawalRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    gateway: PaymentGateway = Depends(get_payment_gateway),
):
    return await wallet_service.withdraw(
        db, gateway, user, body.amount, body.bank_account_id,
    )


@router.post(
    "/transfers", response_model=TransferResponse, status_code=status.HTTP_201_CREATED,
)
async def transfer(
    body: TransferRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await wallet_service.transfer_funds(
        db, user, body.recipient_id, body.amount, body.description,
    )


@router.post(
    "/purchases", response_model=WalletPurchaseResponse, status_code=status.HTTP_201_CREATED,
)
async def purchase(
    body: WalletPurchaseRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await wallet_service.purchase(db, user, body.listing_id, body.shipping_address)

"""Initial schema — profiles, listings, bundles, trades, orders, wallets, disputes, catalog.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _money(name: str, nullable: bool = False, default: str | None = None) -> sa.Column:
    return sa.Column(name, sa.Numeric(12, 2), nullable=nullable, server_default=default)


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now(),
    )


def upgrade() -> None:
    op.create_table(
        "profiles",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("email", sa.String(320), nullable=True),
        sa.Column("display_name", sa.String(100), nullable=True),
        sa.Column("bio", sa.Text, nullable=True),
        sa.Column("location", sa.String(120), nullable=True),
        sa.Column("membership_tier", sa.String(10), nullable=False, server_default="free"),
        sa.Column("promo_expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("risk_tier", sa.String(1), nullable=False, server_default="A"),
        sa.Column("payout_account_id", sa.String(100), nullable=True),
        sa.Column("payouts_enabled", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("onboarding_status", sa.String(20), nullable=False, server_default="not_started"),
        sa.Column("business_type", sa.String(20), nullable=True),
        sa.Column("business_name", sa.String(200), nullable=True),
        sa.Column("first_name", sa.String(100), nullable=True),
        sa.Column("last_name", sa.String(100), nullable=True),
        sa.Column("date_of_birth", sa.Date, nullable=True),
        sa.Column("address_line1", sa.String(200), nullable=True),
        sa.Column("address_line2", sa.String(200), nullable=True),
        sa.Column("city", sa.String(100), nullable=True),
        sa.Column("state", sa.String(100), nullable=True),
        sa.Column("postal_code", sa.String(20), nullable=True),
        sa.Column("country", sa.String(2), nullable=True),
        sa.Column("phone", sa.String(30), nullable=True),
        _created_at(),
    )

    op.create_table(
        "listings",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("seller_id", UUID(as_uuid=True), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("card_name", sa.String(200), nullable=True),
        sa.Column("set_name", sa.String(200), nullable=True),
        sa.Column("card_number", sa.String(30), nullable=True),
        sa.Column("condition", sa.String(30), nullable=True),
        _money("seller_price"),
        sa.Column("currency", sa.String(3), nullable=False, server_default="GBP"),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("free_shipping", sa.Boolean, nullable=False, server_default="false"),
        _money("shipping_cost_uk", nullable=True),
        _money("shipping_cost_europe", nullable=True),
        _money("shipping_cost_international", nullable=True),
        sa.Column("has_variants", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("bundle_type", sa.String(30), nullable=True),
        _money("bundle_price", nullable=True),
        sa.Column("bundle_discount_percentage", sa.Numeric(5, 2), nullable=True),
        _money("remaining_bundle_price", nullable=True),
        _created_at(),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("seller_price > 0", name="ck_listings_seller_price_positive"),
    )
    op.create_index("ix_listings_seller_id", "listings", ["seller_id"])
    op.create_index("ix_listings_status", "listings", ["status"])

    op.create_table(
        "listing_images",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "listing_id", UUID(as_uuid=True),
            sa.ForeignKey("listings.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("image_url", sa.Text, nullable=False),
        sa.Column("storage_key", sa.String(500), nullable=True),
        sa.Column("display_order", sa.Integer, nullable=False, server_default="0"),
    )

    op.create_table(
        "listing_variants",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "listing_id", UUID(as_uuid=True),
            sa.ForeignKey("listings.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("variant_name", sa.String(200), nullable=False),
        _money("variant_price"),
        sa.Column("variant_quantity", sa.Integer, nullable=False, server_default="1"),
        sa.Column("is_available", sa.Boolean, nullable=False, server_default="true"),
        sa.Column("is_sold", sa.Boolean, nullable=False, server_default="false"),
    )

    op.create_table(
        "bundles",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("seller_id", UUID(as_uuid=True), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("discount_percentage", sa.Numeric(5, 2), nullable=False, server_default="0"),
        _money("total_price", nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        _created_at(),
    )
    op.create_index("ix_bundles_seller_id", "bundles", ["seller_id"])

    op.create_table(
        "bundle_items",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "bundle_id", UUID(as_uuid=True),
            sa.ForeignKey("bundles.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("listing_id", UUID(as_uuid=True), sa.ForeignKey("listings.id"), nullable=False),
        sa.UniqueConstraint("bundle_id", "listing_id"),
    )

    op.create_table(
        "trade_offers",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("buyer_id", UUID(as_uuid=True), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("seller_id", UUID(as_uuid=True), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("proposed_by", UUID(as_uuid=True), nullable=False),
        sa.Column(
            "target_listing_id", UUID(as_uuid=True), sa.ForeignKey("listings.id"), nullable=False,
        ),
        sa.Column(
            "parent_offer_id", UUID(as_uuid=True), sa.ForeignKey("trade_offers.id"), nullable=True,
        ),
        _money("cash_amount", default="0"),
        sa.Column("trade_items", sa.JSON, nullable=False),
        sa.Column("message", sa.Text, nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("escrow_enabled", sa.Boolean, nullable=False, server_default="false"),
        _money("escrow_amount", default="0"),
        sa.Column("escrow_released", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("escrow_released_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("responded_at", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
    )
    op.create_index("ix_trade_offers_buyer_id", "trade_offers", ["buyer_id"])
    op.create_index("ix_trade_offers_seller_id", "trade_offers", ["seller_id"])
    op.create_index("ix_trade_offers_status", "trade_offers", ["status"])

    op.create_table(
        "orders",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("buyer_id", UUID(as_uuid=True), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("seller_id", UUID(as_uuid=True), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("listing_id", UUID(as_uuid=True), sa.ForeignKey("listings.id"), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("payment_method", sa.String(10), nullable=False, server_default="card"),
        _money("item_price"),
        _money("shipping_cost", default="0"),
        _money("buyer_fee", default="0"),
        _money("seller_fee", default="0"),
        _money("platform_fee", default="0"),
        _money("total_amount"),
        _money("seller_amount"),
        _money("refunded_amount", default="0"),
        sa.Column("currency", sa.String(3), nullable=False, server_default="GBP"),
        sa.Column("shipping_address", sa.JSON, nullable=True),
        sa.Column("payment_intent_id", sa.String(100), nullable=True),
        sa.Column("tracking_number", sa.String(100), nullable=True),
        sa.Column("seller_settled", sa.Boolean, nullable=False, server_default="false"),
        _created_at(),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("shipped_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("delivered_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("refunded_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_orders_buyer_id", "orders", ["buyer_id"])
    op.create_index("ix_orders_seller_id", "orders", ["seller_id"])
    op.create_index("ix_orders_payment_intent_id", "orders", ["payment_intent_id"])

    op.create_table(
        "disputes",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("order_id", UUID(as_uuid=True), sa.ForeignKey("orders.id"), nullable=False),
        sa.Column("listing_id", UUID(as_uuid=True), sa.ForeignKey("listings.id"), nullable=False),
        sa.Column("buyer_id", UUID(as_uuid=True), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("seller_id", UUID(as_uuid=True), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("dispute_type", sa.String(40), nullable=False),
        sa.Column("reason", sa.Text, nullable=False),
        sa.Column("buyer_evidence", sa.JSON, nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="open"),
        sa.Column("priority", sa.String(20), nullable=False, server_default="low_priority"),
        sa.Column("resolution", sa.String(30), nullable=True),
        sa.Column("resolution_notes", sa.Text, nullable=True),
        _created_at(),
        sa.Column("resolved_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_disputes_order_id", "disputes", ["order_id"])

    op.create_table(
        "wallet_accounts",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "user_id", UUID(as_uuid=True), sa.ForeignKey("profiles.id"),
            nullable=False, unique=True,
        ),
        _money("balance", default="0"),
        _money("pending_balance", default="0"),
        sa.Column("currency", sa.String(3), nullable=False, server_default="gbp"),
        _created_at(),
        sa.CheckConstraint("balance >= 0", name="ck_wallet_balance_non_negative"),
        sa.CheckConstraint("pending_balance >= 0", name="ck_wallet_pending_non_negative"),
    )

    op.create_table(
        "wallet_transactions",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "wallet_id", UUID(as_uuid=True),
            sa.ForeignKey("wallet_accounts.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("type", sa.String(30), nullable=False),
        _money("amount"),
        _money("balance_after", nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="completed"),
        sa.Column("external_reference", sa.String(100), nullable=True),
        sa.Column("related_order_id", UUID(as_uuid=True), sa.ForeignKey("orders.id"), nullable=True),
        sa.Column(
            "related_offer_id", UUID(as_uuid=True), sa.ForeignKey("trade_offers.id"), nullable=True,
        ),
        sa.Column("description", sa.Text, nullable=True),
        _created_at(),
    )
    op.create_index("ix_wallet_transactions_wallet_id", "wallet_transactions", ["wallet_id"])
    op.create_index(
        "ix_wallet_transactions_external_reference", "wallet_transactions", ["external_reference"],
    )

    op.create_table(
        "bank_accounts",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", UUID(as_uuid=True), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("account_holder_name", sa.String(200), nullable=False),
        sa.Column("account_last4", sa.String(4), nullable=False),
        sa.Column("routing_number", sa.String(20), nullable=False),
        sa.Column("account_type", sa.String(10), nullable=False),
        sa.Column("country", sa.String(2), nullable=False),
        sa.Column("is_default", sa.Boolean, nullable=False, server_default="false"),
        _created_at(),
    )
    op.create_index("ix_bank_accounts_user_id", "bank_accounts", ["user_id"])

    op.create_table(
        "pokemon_card_attributes",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("english_name", sa.String(200), nullable=True),
        sa.Column("set_id", sa.String(50), nullable=True),
        sa.Column("set_name", sa.String(200), nullable=True),
        sa.Column("number", sa.String(30), nullable=True),
        sa.Column("rarity", sa.String(50), nullable=True),
        sa.Column("supertype", sa.String(30), nullable=True),
        sa.Column("image_url", sa.Text, nullable=True),
        sa.Column("language", sa.String(5), nullable=False, server_default="en"),
    )
    op.create_index("ix_pokemon_card_attributes_name", "pokemon_card_attributes", ["name"])


def downgrade() -> None:
    op.drop_table("pokemon_card_attributes")
    op.drop_table("bank_accounts")
    op.drop_table("wallet_transactions")
    op.drop_table("wallet_accounts")
    op.drop_table("disputes")
    op.drop_table("orders")
    op.drop_table("trade_offers")
    op.drop_table("bundle_items")
    op.drop_table("bundles")
    op.drop_table("listing_variants")
    op.drop_table("listing_images")
    op.drop_table("listings")
    op.drop_table("profiles")

"""ORM Models — SQLAlchemy declarative models for all marketplace entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - Profile ids come from the auth provider; every other id is generated here

Design Decisions:
    - One file per aggregate; child rows (images, variants, items, transactions) live with their root
    - All models imported here so string-based relationship() references resolve
      before any query runs
"""

from marketplace.models.profile import Profile  # noqa: F401
from marketplace.models.listing import Listing, ListingImage, ListingVariant  # noqa: F401
from marketplace.models.bundle import Bundle, BundleItem  # noqa: F401
from marketplace.models.trade_offer import TradeOffer  # noqa: F401
from marketplace.models.order import Order  # noqa: F401
from marketplace.models.dispute import Dispute  # noqa: F401
from marketplace.models.wallet import WalletAccount, WalletTransaction  # noqa: F401
from marketplace.models.bank_account import BankAccount  # noqa: F401
from marketplace.models.card import PokemonCard  # noqa: F401

"""Card Marketplace Backend — listings, trades, wallet, checkout and disputes.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""

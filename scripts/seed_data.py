"""
Deterministic demo data.

Produces:
  - 3 sellers
  - 2 quick items per seller
  - 30 sold items spread over one Saturday morning (8:00 - 13:00),
    about a third of them from quick items, the rest loose amounts
"""

import random
from datetime import datetime, timedelta
from decimal import Decimal

from app.models import QuickItem, Seller, SoldItem
from app.store import DataStore

SEED = 42
START = datetime(2026, 5, 16, 8, 0)
END = datetime(2026, 5, 16, 13, 0)

LOOSE_AMOUNTS = ["0.25", "0.50", "1", "2", "3", "5", "10", "20"]


def _rand_ms(rng: random.Random, lo: datetime = START, hi: datetime = END) -> int:
    secs = rng.randint(0, int((hi - lo).total_seconds()))
    return int((lo + timedelta(seconds=secs)).timestamp() * 1000)


def seed(store: DataStore) -> None:
    rng = random.Random(SEED)

    # ── sellers ──────────────────────────────────────────────────────────────
    sellers = [
        Seller(id="seller-1", name="Alice"),
        Seller(id="seller-2", name="Bob"),
        Seller(id="seller-3", name="The Garcias"),
    ]
    for s in sellers:
        store.put_seller(s)

    # ── quick items ──────────────────────────────────────────────────────────
    quick_items = [
        QuickItem(id="quick-1", name="Paperback", amount=Decimal("0.50"), seller_id="seller-1"),
        QuickItem(id="quick-2", name="Mug", amount=Decimal("2.50"), seller_id="seller-1"),
        QuickItem(id="quick-3", name="Record", amount=Decimal("5.00"), seller_id="seller-2"),
        QuickItem(id="quick-4", name="", amount=Decimal("1.00"), seller_id="seller-2"),
        QuickItem(id="quick-5", name="Kids clothes", amount=Decimal("3.00"), seller_id="seller-3"),
        QuickItem(id="quick-6", name="Toy", amount=Decimal("0.25"), seller_id="seller-3"),
    ]
    for q in quick_items:
        store.put_quick_item(q)

    # ── sold items ───────────────────────────────────────────────────────────
    sold = []
    for n in range(1, 31):
        if rng.random() < 0.35:
            q = rng.choice(quick_items)
            name, amount, seller_id = q.name, q.amount, q.seller_id
        else:
            name = ""
            amount = Decimal(rng.choice(LOOSE_AMOUNTS))
            seller_id = rng.choice(sellers).id
        sold.append(SoldItem(
            id=f"sold-{n:04d}",
            name=name,
            amount=amount,
            seller_id=seller_id,
            timestamp=_rand_ms(rng),
        ))
    store.add_sold_items(sold)

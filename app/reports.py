from decimal import Decimal
from typing import Optional

from app.models import SalesReport, SellerTotal, SoldItem
from app.money import total
from app.store import DataStore

UNKNOWN_SELLER = "Unknown Seller"


def seller_name(store: DataStore, seller_id: str) -> str:
    seller = store.get_seller(seller_id)
    return seller.name if seller else UNKNOWN_SELLER


def item_label(store: DataStore, item) -> str:
    """Display name for a line or sold item; unnamed items show the seller."""
    return item.name or f"{seller_name(store, item.seller_id)}'s Item"


def sales_per_seller(store: DataStore) -> dict[str, Decimal]:
    return {
        s.id: total(i.amount for i in store.get_sold_items_for_seller(s.id))
        for s in store.list_sellers()
    }


def grand_total(store: DataStore) -> Decimal:
    # sold items of sellers no longer present are not counted, same as the cards
    return total(sales_per_seller(store).values())


def sold_items_view(store: DataStore, seller_id: Optional[str] = None) -> list[SoldItem]:
    """Most recent first, optionally one seller only."""
    items = store.list_sold_items()
    if seller_id:
        items = [i for i in items if i.seller_id == seller_id]
    return sorted(items, key=lambda i: i.timestamp, reverse=True)


def build_report(store: DataStore, seller_id: Optional[str] = None) -> SalesReport:
    # ── 1. Per-seller totals, in seller order ────────────────────────────────
    per_seller = [
        SellerTotal(
            seller_id=s.id,
            seller_name=s.name,
            total=total(i.amount for i in store.get_sold_items_for_seller(s.id)),
            item_count=len(store.get_sold_items_for_seller(s.id)),
        )
        for s in store.list_sellers()
    ]

    # ── 2. Ledger title ──────────────────────────────────────────────────────
    if seller_id:
        seller = store.get_seller(seller_id)
        title = f"Sold Items for {seller.name}" if seller else "Sold Items (Unknown Seller)"
    else:
        title = "All Sold Items:"

    return SalesReport(
        grand_total=total(t.total for t in per_seller),
        per_seller=per_seller,
        filter_seller_id=seller_id,
        title=title,
        sold_items=sold_items_view(store, seller_id),
    )

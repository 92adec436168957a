"""
Seller, quick item and sold item maintenance.

Delete policy for a seller is asymmetric: quick items are removed with it,
sold items block the delete until they are removed by hand.

Blank entries are ignored rather than raised: add/edit calls that fail
validation return ``None`` and leave the store untouched.
"""

import logging
from typing import Callable, Optional

from app.errors import GuardedDeleteError, NotFoundError
from app.models import EditSession, ItemDraft, QuickItem, Seller, SellerDraft, SoldItem
from app.money import AmountInput, parse_amount
from app.store import DataStore

logger = logging.getLogger("tracker.registry")

Confirm = Callable[[str], bool]

DELETE_SELLER_PROMPT = (
    "Are you sure you want to delete this seller? "
    "All their associated quick items will also be removed."
)
DELETE_QUICK_ITEM_PROMPT = "Are you sure you want to delete this quick item?"


class Registry:
    def __init__(
        self,
        store: DataStore,
        on_seller_deleted: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.store = store
        self.on_seller_deleted = on_seller_deleted
        self.seller_edit: Optional[EditSession[SellerDraft]] = None
        self.quick_item_edit: Optional[EditSession[ItemDraft]] = None
        self.sold_item_edit: Optional[EditSession[ItemDraft]] = None

    def _require_seller(self, seller_id: str) -> Seller:
        seller = self.store.get_seller(seller_id)
        if seller is None:
            raise NotFoundError("Seller", seller_id)
        return seller

    def _valid_item_fields(self, amount: AmountInput, seller_id: Optional[str], positive: bool):
        """Parsed amount if the seller exists and the amount is acceptable, else None."""
        if not seller_id or self.store.get_seller(seller_id) is None:
            return None
        parsed = parse_amount(amount)
        if parsed is None or parsed < 0 or (positive and parsed == 0):
            return None
        return parsed

    # ── sellers ───────────────────────────────────────────────────────────────

    def add_seller(self, name: str) -> Optional[Seller]:
        name = (name or "").strip()
        if not name:
            logger.debug("ignored blank seller name")
            return None
        seller = Seller(id=self.store.new_id("seller"), name=name)
        self.store.put_seller(seller)
        logger.info("added seller %s (%s)", seller.id, seller.name)
        return seller

    def edit_seller(self, seller_id: str, name: str) -> Seller:
        seller = self._require_seller(seller_id)
        updated = seller.model_copy(update={"name": (name or "").strip()})
        self.store.put_seller(updated)
        logger.info("renamed seller %s to %r", seller_id, updated.name)
        return updated

    def delete_seller(self, seller_id: str, confirm: Confirm) -> bool:
        """
        Delete a seller and cascade to its quick items.

        Raises GuardedDeleteError while any sold item references the seller.
        Returns False, with nothing changed, if ``confirm`` declines.
        """
        self._require_seller(seller_id)
        sold = self.store.get_sold_items_for_seller(seller_id)
        if sold:
            logger.warning("refused delete of seller %s: %d sold items", seller_id, len(sold))
            raise GuardedDeleteError(seller_id, len(sold))
        if not confirm(DELETE_SELLER_PROMPT):
            return False
        cascaded = self.store.remove_seller(seller_id)
        if self.seller_edit and self.seller_edit.entity_id == seller_id:
            self.seller_edit = None
        if self.quick_item_edit and self.quick_item_edit.entity_id in {q.id for q in cascaded}:
            self.quick_item_edit = None
        if self.on_seller_deleted is not None:
            self.on_seller_deleted(seller_id)
        logger.info("deleted seller %s and %d quick items", seller_id, len(cascaded))
        return True

    def start_edit_seller(self, seller_id: str) -> EditSession[SellerDraft]:
        seller = self._require_seller(seller_id)
        self.seller_edit = EditSession[SellerDraft](
            entity_id=seller_id, draft=SellerDraft(name=seller.name)
        )
        return self.seller_edit

    def save_edit_seller(self) -> Optional[Seller]:
        if self.seller_edit is None:
            return None
        session, self.seller_edit = self.seller_edit, None
        return self.edit_seller(session.entity_id, session.draft.name)

    def cancel_edit_seller(self) -> None:
        self.seller_edit = None

    # ── quick items ───────────────────────────────────────────────────────────

    def add_quick_item(self, name: str, amount: AmountInput, seller_id: Optional[str]) -> Optional[QuickItem]:
        parsed = self._valid_item_fields(amount, seller_id, positive=True)
        if parsed is None:
            logger.debug("ignored quick item: seller=%r amount=%r", seller_id, amount)
            return None
        item = QuickItem(
            id=self.store.new_id("quick"),
            name=(name or "").strip(),
            amount=parsed,
            seller_id=seller_id,
        )
        self.store.put_quick_item(item)
        logger.info("added quick item %s %s for %s", item.id, item.amount, seller_id)
        return item

    def edit_quick_item(
        self, item_id: str, name: str, amount: AmountInput, seller_id: str,
    ) -> Optional[QuickItem]:
        item = self.store.get_quick_item(item_id)
        if item is None:
            raise NotFoundError("Quick item", item_id)
        parsed = self._valid_item_fields(amount, seller_id, positive=False)
        if parsed is None:
            return None
        updated = item.model_copy(update={
            "name": (name or "").strip(),
            "amount": parsed,
            "seller_id": seller_id,
        })
        self.store.put_quick_item(updated)
        logger.info("edited quick item %s", item_id)
        return updated

    def delete_quick_item(self, item_id: str, confirm: Confirm) -> bool:
        if self.store.get_quick_item(item_id) is None:
            raise NotFoundError("Quick item", item_id)
        if not confirm(DELETE_QUICK_ITEM_PROMPT):
            return False
        self.store.remove_quick_item(item_id)
        if self.quick_item_edit and self.quick_item_edit.entity_id == item_id:
            self.quick_item_edit = None
        logger.info("deleted quick item %s", item_id)
        return True

    def start_edit_quick_item(self, item_id: str) -> EditSession[ItemDraft]:
        item = self.store.get_quick_item(item_id)
        if item is None:
            raise NotFoundError("Quick item", item_id)
        self.quick_item_edit = EditSession[ItemDraft](entity_id=item_id, draft=_draft_of(item))
        return self.quick_item_edit

    def save_edit_quick_item(self) -> Optional[QuickItem]:
        if self.quick_item_edit is None:
            return None
        session, self.quick_item_edit = self.quick_item_edit, None
        d = session.draft
        return self.edit_quick_item(session.entity_id, d.name, d.amount, d.seller_id)

    def cancel_edit_quick_item(self) -> None:
        self.quick_item_edit = None

    # ── sold items ────────────────────────────────────────────────────────────

    def edit_sold_item(
        self, item_id: str, name: str, amount: AmountInput, seller_id: str,
    ) -> Optional[SoldItem]:
        """Correct a ledger line. The timestamp is kept."""
        item = self.store.get_sold_item(item_id)
        if item is None:
            raise NotFoundError("Sold item", item_id)
        parsed = self._valid_item_fields(amount, seller_id, positive=False)
        if parsed is None:
            return None
        updated = item.model_copy(update={
            "name": (name or "").strip(),
            "amount": parsed,
            "seller_id": seller_id,
        })
        self.store.put_sold_item(updated)
        logger.info("edited sold item %s", item_id)
        return updated

    def delete_sold_item(self, item_id: str) -> None:
        if self.store.get_sold_item(item_id) is None:
            raise NotFoundError("Sold item", item_id)
        self.store.remove_sold_item(item_id)
        if self.sold_item_edit and self.sold_item_edit.entity_id == item_id:
            self.sold_item_edit = None
        logger.info("deleted sold item %s", item_id)

    def start_edit_sold_item(self, item_id: str) -> EditSession[ItemDraft]:
        item = self.store.get_sold_item(item_id)
        if item is None:
            raise NotFoundError("Sold item", item_id)
        self.sold_item_edit = EditSession[ItemDraft](entity_id=item_id, draft=_draft_of(item))
        return self.sold_item_edit

    def save_edit_sold_item(self) -> Optional[SoldItem]:
        if self.sold_item_edit is None:
            return None
        session, self.sold_item_edit = self.sold_item_edit, None
        d = session.draft
        return self.edit_sold_item(session.entity_id, d.name, d.amount, d.seller_id)

    def cancel_edit_sold_item(self) -> None:
        self.sold_item_edit = None

    def quick_item_draft_from_sold_item(self, item_id: str) -> ItemDraft:
        item = self.store.get_sold_item(item_id)
        if item is None:
            raise NotFoundError("Sold item", item_id)
        return _draft_of(item)


def _draft_of(item) -> ItemDraft:
    return ItemDraft(name=item.name, amount=f"{item.amount:.2f}", seller_id=item.seller_id)

import logging
from decimal import Decimal
from typing import Callable, Optional

from app.errors import NoSellerSelectedError, NotFoundError
from app.models import SoldItem, TransactionLineItem
from app.money import AmountInput, parse_amount, total
from app.store import DataStore

logger = logging.getLogger("tracker.transaction")

CANCEL_PROMPT = "Are you sure you want to cancel this transaction? All items will be removed."


class TransactionEngine:
    """The pending purchase being rung up. Nothing here is persisted until confirm()."""

    def __init__(self, store: DataStore) -> None:
        self.store = store
        self.selected_seller_id: Optional[str] = None
        self.pending_items: list[TransactionLineItem] = []
        # free-text inputs on the transaction screen
        self.item_name: str = ""
        self.custom_amount: str = ""

    def reset(self) -> None:
        self.selected_seller_id = None
        self.pending_items = []
        self.item_name = ""
        self.custom_amount = ""

    def select_seller(self, seller_id: str) -> Optional[str]:
        """Toggle: picking the selected seller again clears the selection."""
        if self.store.get_seller(seller_id) is None:
            raise NotFoundError("Seller", seller_id)
        if self.selected_seller_id == seller_id:
            self.selected_seller_id = None
        else:
            self.selected_seller_id = seller_id
        return self.selected_seller_id

    def forget_seller(self, seller_id: str) -> None:
        if self.selected_seller_id == seller_id:
            self.selected_seller_id = None

    def add_line(
        self, amount: AmountInput, name: str = "", seller_id: Optional[str] = None,
    ) -> TransactionLineItem:
        effective = seller_id or self.selected_seller_id
        parsed = parse_amount(amount)
        if not effective or parsed is None or parsed <= 0:
            logger.debug("rejected line: seller=%r amount=%r", effective, amount)
            raise NoSellerSelectedError()
        line = TransactionLineItem(
            id=self.store.new_id("temp-item", random_len=5),
            name=(name or "").strip(),
            amount=parsed,
            seller_id=effective,
        )
        self.pending_items.append(line)
        self.item_name = ""
        self.custom_amount = ""
        return line

    def add_quick_item(self, item_id: str) -> TransactionLineItem:
        """Quick items carry their own seller; no selection needed."""
        item = self.store.get_quick_item(item_id)
        if item is None:
            raise NotFoundError("Quick item", item_id)
        return self.add_line(item.amount, item.name, item.seller_id)

    def add_preset_amount(self, amount: AmountInput) -> TransactionLineItem:
        return self.add_line(amount, self.item_name, self.selected_seller_id)

    def add_custom(self) -> TransactionLineItem:
        if not self.selected_seller_id:
            raise NoSellerSelectedError()
        return self.add_line(self.custom_amount, self.item_name, self.selected_seller_id)

    def remove_line(self, line_id: str) -> None:
        self.pending_items = [i for i in self.pending_items if i.id != line_id]

    def total(self) -> Decimal:
        return total(i.amount for i in self.pending_items)

    def confirm(self) -> list[SoldItem]:
        """Commit every pending line to the ledger as one batch."""
        if not self.pending_items:
            return []
        sold = []
        for line in self.pending_items:
            sold.append(SoldItem(
                id=self.store.new_id("sold", random_len=9),
                name=line.name,
                amount=line.amount,
                seller_id=line.seller_id,
                timestamp=self.store.clock(),
            ))
        self.store.add_sold_items(sold)
        self.pending_items = []
        logger.info("confirmed purchase of %d items totalling %s", len(sold), total(s.amount for s in sold))
        return sold

    def cancel(self, confirm: Callable[[str], bool]) -> bool:
        if not confirm(CANCEL_PROMPT):
            return False
        logger.info("cancelled transaction with %d items", len(self.pending_items))
        self.pending_items = []
        return True

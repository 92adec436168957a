"""
Screen state machine: home, settings, transaction.

    home ──start──▶ transaction ──confirm/cancel──▶ home
      │  (no sellers: settings)      │
      └──open_settings──▶ settings ◀─┘
                            │ back ──▶ recorded screen (default home)

The navigator owns no data. It routes intent to the engines and keeps the
status line the screens display.
"""

import logging
from typing import Callable, Optional

from app.errors import NotFoundError
from app.models import ItemDraft, SCREEN_TITLES, Screen
from app.registry import Registry
from app.store import DataStore
from app.transaction import TransactionEngine

logger = logging.getLogger("tracker.navigation")

NO_SELLERS_MESSAGE = "Please define at least one seller in Settings before starting a transaction."


class Navigator:
    def __init__(self, store: DataStore, registry: Registry, transaction: TransactionEngine) -> None:
        self.store = store
        self.registry = registry
        self.transaction = transaction
        self.screen = Screen.SETTINGS if not store.sellers else Screen.HOME
        self.previous_screen: Optional[Screen] = None
        self.status_message = ""
        # home screen ledger filter
        self.filter_seller_id: Optional[str] = None
        # quick item form prefill waiting on the settings screen
        self.quick_item_prefill: Optional[ItemDraft] = None

    @property
    def title(self) -> str:
        return SCREEN_TITLES[self.screen]

    def _move(self, screen: Screen) -> None:
        if screen != self.screen:
            logger.debug("screen %s -> %s", self.screen.value, screen.value)
        self.screen = screen

    # ── transitions ───────────────────────────────────────────────────────────

    def go_home(self) -> None:
        self.previous_screen = self.screen
        self._move(Screen.HOME)
        self.transaction.reset()
        self.status_message = ""

    def open_settings(self) -> None:
        if self.screen != Screen.SETTINGS:
            self.previous_screen = self.screen
        self._move(Screen.SETTINGS)

    def back(self) -> None:
        if self.previous_screen in (Screen.HOME, Screen.TRANSACTION):
            self._move(self.previous_screen)
        else:
            self._move(Screen.HOME)
        self.previous_screen = None

    def start_transaction(self) -> bool:
        """Enter a fresh transaction. Only reachable from home."""
        if self.screen == Screen.TRANSACTION:
            return True
        if self.screen != Screen.HOME:
            return False
        self.previous_screen = self.screen
        if not self.store.sellers:
            self.status_message = NO_SELLERS_MESSAGE
            self._move(Screen.SETTINGS)
            return False
        self.transaction.reset()
        self._move(Screen.TRANSACTION)
        return True

    def confirm_purchase(self) -> int:
        if not self.transaction.pending_items:
            return 0
        sold = self.transaction.confirm()
        self.go_home()
        self.status_message = "Purchase confirmed! Items added to sales report."
        return len(sold)

    def cancel_transaction(self, confirm: Callable[[str], bool]) -> bool:
        if not self.transaction.cancel(confirm):
            return False
        self.go_home()
        self.status_message = "Transaction cancelled. Items removed from current transaction."
        return True

    # ── home screen ───────────────────────────────────────────────────────────

    def toggle_filter(self, seller_id: str) -> Optional[str]:
        if self.store.get_seller(seller_id) is None:
            raise NotFoundError("Seller", seller_id)
        self.filter_seller_id = None if self.filter_seller_id == seller_id else seller_id
        return self.filter_seller_id

    def forget_seller(self, seller_id: str) -> None:
        if self.filter_seller_id == seller_id:
            self.filter_seller_id = None
        self.transaction.forget_seller(seller_id)

    def create_quick_item_from_sold_item(self, item_id: str) -> ItemDraft:
        self.quick_item_prefill = self.registry.quick_item_draft_from_sold_item(item_id)
        self.open_settings()
        self.status_message = "Quick item form pre-filled from sold item. Review and add."
        return self.quick_item_prefill

    def take_quick_item_prefill(self) -> Optional[ItemDraft]:
        prefill, self.quick_item_prefill = self.quick_item_prefill, None
        return prefill

import logging
from typing import Optional

from app.config import Settings
from app.models import Screen
from app.navigation import Navigator
from app.persistence import (
    Clipboard,
    DirectoryFilePicker,
    FilePicker,
    LoadResult,
    LoadStatus,
    MemoryClipboard,
    PersistenceGateway,
    SaveResult,
    select_backend,
)
from app.registry import Registry
from app.store import DataStore, JsonFileSlotStorage, MemorySlotStorage
from app.transaction import TransactionEngine

logger = logging.getLogger("tracker.session")


class Session:
    """One local tracker session: a store and the engines sharing it."""

    def __init__(
        self,
        store: DataStore,
        picker: Optional[FilePicker] = None,
        clipboard: Optional[Clipboard] = None,
    ) -> None:
        self.store = store
        self.transaction = TransactionEngine(store)
        self.registry = Registry(store, on_seller_deleted=self._seller_deleted)
        self.navigator = Navigator(store, self.registry, self.transaction)
        self.gateway = PersistenceGateway(select_backend(picker), clipboard)

    @classmethod
    def from_settings(cls, settings: Settings) -> "Session":
        storage = JsonFileSlotStorage(settings.data_dir) if settings.data_dir else MemorySlotStorage()
        store = DataStore(storage)
        store.load()
        picker = (
            DirectoryFilePicker(settings.export_dir, settings.export_filename)
            if settings.export_dir else None
        )
        return cls(store, picker=picker, clipboard=MemoryClipboard())

    def _seller_deleted(self, seller_id: str) -> None:
        self.navigator.forget_seller(seller_id)
        self.navigator.status_message = "Seller and associated quick items deleted successfully."
        self._require_sellers()

    def _require_sellers(self) -> None:
        # nothing can be sold without a seller: keep the user on settings
        if not self.store.sellers and self.navigator.screen != Screen.SETTINGS:
            self.navigator.screen = Screen.SETTINGS

    # ── persistence ───────────────────────────────────────────────────────────

    def save_data(self) -> SaveResult:
        result = self.gateway.save(self.store.snapshot())
        self.navigator.status_message = result.message
        return result

    def load_data(self) -> LoadResult:
        return self._apply(self.gateway.load())

    def load_pasted(self, text: str) -> LoadResult:
        return self._apply(self.gateway.load_from_text(text))

    def copy_to_clipboard(self) -> str:
        self.navigator.status_message = self.gateway.copy_to_clipboard()
        return self.navigator.status_message

    def drop_view_state(self) -> None:
        """Forget edit sessions and the ledger filter after the dataset is swapped out."""
        self.registry.cancel_edit_seller()
        self.registry.cancel_edit_quick_item()
        self.registry.cancel_edit_sold_item()
        self.navigator.filter_seller_id = None

    def _apply(self, result: LoadResult) -> LoadResult:
        if result.status == LoadStatus.LOADED and result.dataset is not None:
            self.store.replace(result.dataset)
            self.drop_view_state()
            self.navigator.go_home()
            self._require_sellers()
            logger.info(
                "replaced dataset: %d sellers, %d quick items, %d sold items",
                len(self.store.sellers), len(self.store.quick_items), len(self.store.sold_items),
            )
        self.navigator.status_message = result.message
        return result

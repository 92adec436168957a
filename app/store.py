import logging
import random
import string
import time
from pathlib import Path
from typing import Callable, Iterable, Optional, Protocol

from pydantic import TypeAdapter, ValidationError

from app.errors import InvalidFormatError
from app.models import Dataset, QuickItem, Seller, SoldItem, duplicate_ids

logger = logging.getLogger("tracker.store")

SELLERS_SLOT = "yardSaleSellers"
QUICK_ITEMS_SLOT = "yardSaleQuickItems"
SOLD_ITEMS_SLOT = "yardSaleSoldItems"

_ADAPTERS = {
    SELLERS_SLOT: TypeAdapter(list[Seller]),
    QUICK_ITEMS_SLOT: TypeAdapter(list[QuickItem]),
    SOLD_ITEMS_SLOT: TypeAdapter(list[SoldItem]),
}


def now_ms() -> int:
    return int(time.time() * 1000)


class SlotStorage(Protocol):
    def read(self, slot: str) -> Optional[str]: ...

    def write(self, slot: str, text: str) -> None: ...


class MemorySlotStorage:
    def __init__(self, slots: Optional[dict[str, str]] = None) -> None:
        self.slots: dict[str, str] = dict(slots or {})

    def read(self, slot: str) -> Optional[str]:
        return self.slots.get(slot)

    def write(self, slot: str, text: str) -> None:
        self.slots[slot] = text


class JsonFileSlotStorage:
    """One ``<slot>.json`` file per slot inside ``directory``."""

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def _file(self, slot: str) -> Path:
        return self.directory / f"{slot}.json"

    def read(self, slot: str) -> Optional[str]:
        path = self._file(slot)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def write(self, slot: str, text: str) -> None:
        # write-then-rename so a crash never leaves half a slot behind
        path = self._file(slot)
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(text, encoding="utf-8")
        tmp.replace(path)


class DataStore:
    """
    The single owned state container for the dataset.

    Engines get a reference to it and go through its methods; every write
    is mirrored to ``storage`` before the method returns.
    """

    def __init__(
        self,
        storage: Optional[SlotStorage] = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.storage: SlotStorage = storage if storage is not None else MemorySlotStorage()
        self.clock = clock
        self.sellers: dict[str, Seller] = {}
        self.quick_items: dict[str, QuickItem] = {}
        self.sold_items: dict[str, SoldItem] = {}

    # ── startup ───────────────────────────────────────────────────────────────

    def load(self) -> None:
        """Read all three slots. A missing slot is an empty collection."""
        loaded = {}
        for slot, adapter in _ADAPTERS.items():
            raw = self.storage.read(slot)
            if raw is None:
                loaded[slot] = []
                continue
            try:
                loaded[slot] = adapter.validate_json(raw)
            except ValidationError as exc:
                raise InvalidFormatError(f"Stored slot '{slot}' is corrupt: {exc}") from exc
            dupes = duplicate_ids(loaded[slot])
            if dupes:
                raise InvalidFormatError(f"Stored slot '{slot}' has duplicate ids: {', '.join(dupes)}")
        self.sellers = {s.id: s for s in loaded[SELLERS_SLOT]}
        self.quick_items = {q.id: q for q in loaded[QUICK_ITEMS_SLOT]}
        self.sold_items = {s.id: s for s in loaded[SOLD_ITEMS_SLOT]}
        logger.info(
            "loaded %d sellers, %d quick items, %d sold items",
            len(self.sellers), len(self.quick_items), len(self.sold_items),
        )

    # ── ids ───────────────────────────────────────────────────────────────────

    def new_id(self, prefix: str, random_len: int = 0) -> str:
        """``<prefix>-<ms>[-<random>]``, unique across every collection."""
        taken = self.sellers.keys() | self.quick_items.keys() | self.sold_items.keys()
        while True:
            new = f"{prefix}-{self.clock()}"
            if random_len:
                new += "-" + "".join(random.choices(string.ascii_lowercase + string.digits, k=random_len))
            if new not in taken:
                return new
            random_len = random_len or 5

    # ── writes ────────────────────────────────────────────────────────────────

    def _persist(self, *slots: str) -> None:
        for slot in slots:
            items = {
                SELLERS_SLOT: self.sellers,
                QUICK_ITEMS_SLOT: self.quick_items,
                SOLD_ITEMS_SLOT: self.sold_items,
            }[slot]
            text = _ADAPTERS[slot].dump_json(list(items.values()), by_alias=True).decode("utf-8")
            self.storage.write(slot, text)

    def put_seller(self, seller: Seller) -> None:
        self.sellers[seller.id] = seller
        self._persist(SELLERS_SLOT)

    def put_quick_item(self, item: QuickItem) -> None:
        self.quick_items[item.id] = item
        self._persist(QUICK_ITEMS_SLOT)

    def put_sold_item(self, item: SoldItem) -> None:
        self.sold_items[item.id] = item
        self._persist(SOLD_ITEMS_SLOT)

    def add_sold_items(self, items: Iterable[SoldItem]) -> None:
        """Append a batch and persist once."""
        for item in items:
            self.sold_items[item.id] = item
        self._persist(SOLD_ITEMS_SLOT)

    def remove_seller(self, seller_id: str) -> list[QuickItem]:
        """Drop the seller and its quick items; returns the removed quick items."""
        cascaded = [q for q in self.quick_items.values() if q.seller_id == seller_id]
        self.sellers.pop(seller_id, None)
        for item in cascaded:
            del self.quick_items[item.id]
        self._persist(SELLERS_SLOT, QUICK_ITEMS_SLOT)
        return cascaded

    def remove_quick_item(self, item_id: str) -> None:
        self.quick_items.pop(item_id, None)
        self._persist(QUICK_ITEMS_SLOT)

    def remove_sold_item(self, item_id: str) -> None:
        self.sold_items.pop(item_id, None)
        self._persist(SOLD_ITEMS_SLOT)

    def replace(self, dataset: Dataset) -> None:
        """Swap in a whole dataset at once."""
        self.sellers = {s.id: s for s in dataset.sellers}
        self.quick_items = {q.id: q for q in dataset.quick_items}
        self.sold_items = {s.id: s for s in dataset.sold_items}
        self._persist(SELLERS_SLOT, QUICK_ITEMS_SLOT, SOLD_ITEMS_SLOT)

    def clear(self) -> None:
        self.replace(Dataset(sellers=[], quick_items=[], sold_items=[]))

    # ── reads ─────────────────────────────────────────────────────────────────

    def get_seller(self, seller_id: str) -> Optional[Seller]:
        return self.sellers.get(seller_id)

    def get_quick_item(self, item_id: str) -> Optional[QuickItem]:
        return self.quick_items.get(item_id)

    def get_sold_item(self, item_id: str) -> Optional[SoldItem]:
        return self.sold_items.get(item_id)

    def list_sellers(self) -> list[Seller]:
        return list(self.sellers.values())

    def list_quick_items(self) -> list[QuickItem]:
        return list(self.quick_items.values())

    def list_sold_items(self) -> list[SoldItem]:
        return list(self.sold_items.values())

    def get_sold_items_for_seller(self, seller_id: str) -> list[SoldItem]:
        return [s for s in self.sold_items.values() if s.seller_id == seller_id]

    def snapshot(self) -> Dataset:
        return Dataset(
            sellers=self.list_sellers(),
            quick_items=self.list_quick_items(),
            sold_items=self.list_sold_items(),
        )

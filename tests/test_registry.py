"""
Unit tests for seller, quick item and sold item maintenance.
"""

import json
from decimal import Decimal

import pytest

from app.errors import GuardedDeleteError, InvalidFormatError, NotFoundError
from app.models import QuickItem, Seller, SoldItem
from app.registry import DELETE_SELLER_PROMPT, Registry
from app.store import (
    QUICK_ITEMS_SLOT,
    SELLERS_SLOT,
    DataStore,
    MemorySlotStorage,
)


# ── fixtures ──────────────────────────────────────────────────────────────────

class Clock:
    def __init__(self, start: int = 1_767_225_600_000) -> None:
        self.now = start

    def __call__(self) -> int:
        self.now += 1
        return self.now


def make_store() -> DataStore:
    s = DataStore(MemorySlotStorage(), clock=Clock())
    s.put_seller(Seller(id="s1", name="Alice"))
    return s


def quick(id, seller, amount, name=""):
    return QuickItem(id=id, name=name, amount=Decimal(str(amount)), seller_id=seller)


def sold(id, seller, amount, ts=1):
    return SoldItem(id=id, name="", amount=Decimal(str(amount)), seller_id=seller, timestamp=ts)


def yes(_prompt):
    return True


def no(_prompt):
    return False


# ── tests ─────────────────────────────────────────────────────────────────────

class TestSellers:
    def test_add_seller_trims_and_appends(self):
        store = make_store()
        seller = Registry(store).add_seller("  Bob  ")
        assert seller.name == "Bob"
        assert seller.id.startswith("seller-")
        assert [s.name for s in store.list_sellers()] == ["Alice", "Bob"]

    def test_blank_seller_is_ignored(self):
        store = make_store()
        reg = Registry(store)
        assert reg.add_seller("   ") is None
        assert reg.add_seller("") is None
        assert len(store.sellers) == 1

    def test_seller_ids_are_unique(self):
        store = DataStore(clock=lambda: 42)
        reg = Registry(store)
        a = reg.add_seller("A")
        b = reg.add_seller("B")
        assert a.id != b.id

    def test_edit_seller_renames_in_place(self):
        store = make_store()
        Registry(store).edit_seller("s1", "  Alice B. ")
        assert store.get_seller("s1").name == "Alice B."

    def test_duplicate_names_allowed(self):
        store = make_store()
        reg = Registry(store)
        reg.add_seller("Alice")
        assert [s.name for s in store.list_sellers()] == ["Alice", "Alice"]

    def test_edit_unknown_seller_raises(self):
        with pytest.raises(NotFoundError, match="not found"):
            Registry(make_store()).edit_seller("nope", "X")

    def test_add_seller_writes_through(self):
        store = make_store()
        Registry(store).add_seller("Bob")
        saved = json.loads(store.storage.read(SELLERS_SLOT))
        assert [s["name"] for s in saved] == ["Alice", "Bob"]


class TestSellerDelete:
    def test_sold_items_block_delete(self):
        store = make_store()
        store.put_quick_item(quick("q1", "s1", 1))
        store.add_sold_items([sold("x1", "s1", 5)])
        before = dict(store.storage.slots)
        asked = []

        with pytest.raises(GuardedDeleteError, match="remove them first"):
            Registry(store).delete_seller("s1", lambda p: asked.append(p) or True)

        assert store.storage.slots == before
        assert "s1" in store.sellers
        assert "q1" in store.quick_items
        assert asked == []

    def test_delete_cascades_to_quick_items_only(self):
        store = make_store()
        store.put_seller(Seller(id="s2", name="Bob"))
        store.put_quick_item(quick("q1", "s1", 1))
        store.put_quick_item(quick("q2", "s2", 2))
        store.add_sold_items([sold("x1", "s2", 5)])

        assert Registry(store).delete_seller("s1", yes) is True

        assert list(store.sellers) == ["s2"]
        assert list(store.quick_items) == ["q2"]
        assert list(store.sold_items) == ["x1"]
        saved = json.loads(store.storage.read(QUICK_ITEMS_SLOT))
        assert [q["id"] for q in saved] == ["q2"]

    def test_declined_confirmation_changes_nothing(self):
        store = make_store()
        store.put_quick_item(quick("q1", "s1", 1))
        asked = []
        deleted = Registry(store).delete_seller("s1", lambda p: asked.append(p) or False)
        assert deleted is False
        assert asked == [DELETE_SELLER_PROMPT]
        assert "s1" in store.sellers and "q1" in store.quick_items

    def test_listener_told_about_deleted_seller(self):
        store = make_store()
        seen = []
        Registry(store, on_seller_deleted=seen.append).delete_seller("s1", yes)
        assert seen == ["s1"]

    def test_mug_example(self):
        store = make_store()
        reg = Registry(store)
        item = reg.add_quick_item("Mug", "2.5", "s1")
        assert (item.name, item.amount, item.seller_id) == ("Mug", Decimal("2.50"), "s1")
        assert store.list_quick_items() == [item]

        reg.delete_seller("s1", yes)
        assert store.list_sellers() == []
        assert store.list_quick_items() == []

    def test_seller_deletable_after_its_sold_items_removed(self):
        store = make_store()
        store.add_sold_items([sold("x1", "s1", 5)])
        reg = Registry(store)
        reg.delete_sold_item("x1")
        assert reg.delete_seller("s1", yes) is True


class TestQuickItems:
    @pytest.mark.parametrize("amount", ["0", "-1", "", "abc", None, "NaN"])
    def test_amount_must_be_positive(self, amount):
        store = make_store()
        assert Registry(store).add_quick_item("Mug", amount, "s1") is None
        assert store.quick_items == {}

    def test_seller_required(self):
        store = make_store()
        reg = Registry(store)
        assert reg.add_quick_item("Mug", "1", "") is None
        assert reg.add_quick_item("Mug", "1", None) is None
        assert reg.add_quick_item("Mug", "1", "ghost") is None
        assert store.quick_items == {}

    def test_amount_rounded_half_up(self):
        item = Registry(make_store()).add_quick_item("", "2.555", "s1")
        assert item.amount == Decimal("2.56")
        assert item.name == ""

    def test_edit_replaces_fields(self):
        store = make_store()
        store.put_seller(Seller(id="s2", name="Bob"))
        store.put_quick_item(quick("q1", "s1", 1, "Mug"))
        updated = Registry(store).edit_quick_item("q1", " Cup ", "1.499", "s2")
        assert (updated.name, updated.amount, updated.seller_id) == ("Cup", Decimal("1.50"), "s2")
        assert store.get_quick_item("q1") == updated

    def test_edit_with_bad_amount_is_ignored(self):
        store = make_store()
        store.put_quick_item(quick("q1", "s1", 1, "Mug"))
        assert Registry(store).edit_quick_item("q1", "Mug", "-3", "s1") is None
        assert store.get_quick_item("q1").amount == Decimal("1.00")

    def test_delete_needs_confirmation(self):
        store = make_store()
        store.put_quick_item(quick("q1", "s1", 1))
        reg = Registry(store)
        assert reg.delete_quick_item("q1", no) is False
        assert "q1" in store.quick_items
        assert reg.delete_quick_item("q1", yes) is True
        assert store.quick_items == {}

    def test_delete_unknown_raises(self):
        with pytest.raises(NotFoundError):
            Registry(make_store()).delete_quick_item("q9", yes)


class TestSoldItems:
    def test_edit_keeps_timestamp(self):
        store = make_store()
        store.add_sold_items([sold("x1", "s1", 5, ts=123)])
        updated = Registry(store).edit_sold_item("x1", "Lamp", "7", "s1")
        assert updated.timestamp == 123
        assert updated.amount == Decimal("7.00")
        assert updated.name == "Lamp"

    def test_delete_unknown_raises(self):
        with pytest.raises(NotFoundError):
            Registry(make_store()).delete_sold_item("x9")

    def test_quick_item_draft_from_sold_item(self):
        store = make_store()
        store.add_sold_items([SoldItem(id="x1", name="Vase", amount=Decimal("2.5"), seller_id="s1", timestamp=1)])
        draft = Registry(store).quick_item_draft_from_sold_item("x1")
        assert (draft.name, draft.amount, draft.seller_id) == ("Vase", "2.50", "s1")


class TestEditSessions:
    def test_seller_edit_commits_draft(self):
        store = make_store()
        reg = Registry(store)
        session = reg.start_edit_seller("s1")
        assert session.draft.name == "Alice"
        session.draft.name = "Alicia"
        reg.save_edit_seller()
        assert store.get_seller("s1").name == "Alicia"
        assert reg.seller_edit is None

    def test_cancel_discards_draft(self):
        store = make_store()
        reg = Registry(store)
        reg.start_edit_seller("s1").draft.name = "Changed"
        reg.cancel_edit_seller()
        assert reg.save_edit_seller() is None
        assert store.get_seller("s1").name == "Alice"

    def test_quick_item_edit_session(self):
        store = make_store()
        store.put_quick_item(quick("q1", "s1", 1, "Mug"))
        reg = Registry(store)
        session = reg.start_edit_quick_item("q1")
        assert session.draft.amount == "1.00"
        session.draft.amount = "3"
        assert reg.save_edit_quick_item().amount == Decimal("3.00")

    def test_deleting_seller_drops_its_edit_sessions(self):
        store = make_store()
        store.put_quick_item(quick("q1", "s1", 1))
        reg = Registry(store)
        reg.start_edit_seller("s1")
        reg.start_edit_quick_item("q1")
        reg.delete_seller("s1", yes)
        assert reg.seller_edit is None
        assert reg.quick_item_edit is None

    def test_sold_item_edit_session(self):
        store = make_store()
        store.add_sold_items([sold("x1", "s1", 5)])
        reg = Registry(store)
        reg.start_edit_sold_item("x1").draft.name = "Chair"
        assert reg.save_edit_sold_item().name == "Chair"


class TestSlotLoad:
    def test_slots_round_trip(self):
        store = make_store()
        store.put_quick_item(quick("q1", "s1", 2))
        reloaded = DataStore(MemorySlotStorage(store.storage.slots))
        reloaded.load()
        assert list(reloaded.sellers) == ["s1"]
        assert reloaded.quick_items["q1"].amount == Decimal("2.00")

    def test_duplicate_ids_in_slot_rejected(self):
        row = {"id": "s1", "name": "Alice"}
        storage = MemorySlotStorage({SELLERS_SLOT: json.dumps([row, dict(row, name="Bob")])})
        with pytest.raises(InvalidFormatError, match="duplicate ids: s1"):
            DataStore(storage).load()

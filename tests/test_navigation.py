"""
Unit tests for screen navigation and the session wiring around it.
"""

from decimal import Decimal

from app.models import QuickItem, Screen, Seller, SoldItem
from app.navigation import NO_SELLERS_MESSAGE
from app.session import Session
from app.store import DataStore, MemorySlotStorage


# ── fixtures ──────────────────────────────────────────────────────────────────

def make_session(with_seller: bool = True) -> Session:
    store = DataStore(MemorySlotStorage())
    if with_seller:
        store.put_seller(Seller(id="s1", name="Alice"))
        store.put_quick_item(QuickItem(id="q1", name="Mug", amount=Decimal("2.50"), seller_id="s1"))
    return Session(store)


def yes(_prompt):
    return True


# ── tests ─────────────────────────────────────────────────────────────────────

class TestInitialScreen:
    def test_home_when_sellers_exist(self):
        nav = make_session().navigator
        assert nav.screen == Screen.HOME
        assert nav.title == "Sales Reports"

    def test_settings_when_no_sellers(self):
        assert make_session(with_seller=False).navigator.screen == Screen.SETTINGS


class TestSettingsAndBack:
    def test_back_returns_home(self):
        nav = make_session().navigator
        nav.open_settings()
        assert nav.screen == Screen.SETTINGS
        assert nav.title == "Settings"
        nav.back()
        assert nav.screen == Screen.HOME
        assert nav.previous_screen is None

    def test_back_returns_to_transaction_with_items_kept(self):
        session = make_session()
        nav = session.navigator
        nav.start_transaction()
        session.transaction.add_quick_item("q1")
        nav.open_settings()
        nav.back()
        assert nav.screen == Screen.TRANSACTION
        assert len(session.transaction.pending_items) == 1

    def test_back_without_record_defaults_home(self):
        nav = make_session(with_seller=False).navigator
        nav.back()
        assert nav.screen == Screen.HOME

    def test_open_settings_twice_keeps_first_record(self):
        nav = make_session().navigator
        nav.start_transaction()
        nav.open_settings()
        nav.open_settings()
        nav.back()
        assert nav.screen == Screen.TRANSACTION


class TestTransactionFlow:
    def test_start_without_sellers_redirects(self):
        nav = make_session(with_seller=False).navigator
        nav.go_home()
        assert nav.start_transaction() is False
        assert nav.screen == Screen.SETTINGS
        assert nav.status_message == NO_SELLERS_MESSAGE

    def test_start_enters_with_empty_transaction(self):
        nav = make_session().navigator
        assert nav.start_transaction() is True
        assert nav.screen == Screen.TRANSACTION
        assert nav.title == "New Transaction"
        assert nav.transaction.pending_items == []

    def test_start_from_settings_is_refused(self):
        session = make_session()
        nav = session.navigator
        nav.start_transaction()
        session.transaction.add_line("2", "Mug", "s1")
        nav.open_settings()
        assert nav.start_transaction() is False
        assert nav.screen == Screen.SETTINGS
        assert nav.previous_screen == Screen.TRANSACTION
        assert len(session.transaction.pending_items) == 1
        nav.back()
        assert nav.screen == Screen.TRANSACTION

    def test_start_while_in_transaction_keeps_lines(self):
        session = make_session()
        nav = session.navigator
        nav.start_transaction()
        session.transaction.add_quick_item("q1")
        assert nav.start_transaction() is True
        assert len(session.transaction.pending_items) == 1

    def test_confirm_goes_home(self):
        session = make_session()
        nav = session.navigator
        nav.start_transaction()
        session.transaction.add_quick_item("q1")
        assert nav.confirm_purchase() == 1
        assert nav.screen == Screen.HOME
        assert nav.status_message == "Purchase confirmed! Items added to sales report."
        assert len(session.store.sold_items) == 1

    def test_confirm_with_nothing_pending_stays(self):
        nav = make_session().navigator
        nav.start_transaction()
        assert nav.confirm_purchase() == 0
        assert nav.screen == Screen.TRANSACTION

    def test_cancel_goes_home(self):
        session = make_session()
        nav = session.navigator
        nav.start_transaction()
        session.transaction.add_quick_item("q1")
        assert nav.cancel_transaction(lambda p: False) is False
        assert nav.screen == Screen.TRANSACTION
        assert nav.cancel_transaction(yes) is True
        assert nav.screen == Screen.HOME
        assert session.store.sold_items == {}

    def test_home_resets_transaction_state(self):
        session = make_session()
        nav, txn = session.navigator, session.transaction
        nav.start_transaction()
        txn.select_seller("s1")
        txn.add_quick_item("q1")
        txn.item_name = "typed"
        nav.status_message = "something"
        nav.go_home()
        assert (txn.selected_seller_id, txn.pending_items, txn.item_name) == (None, [], "")
        assert nav.status_message == ""


class TestSellerDeletion:
    def test_deleting_seller_clears_selection_and_filter(self):
        session = make_session()
        session.store.put_seller(Seller(id="s2", name="Bob"))
        session.navigator.toggle_filter("s1")
        session.navigator.start_transaction()
        session.transaction.select_seller("s1")

        session.registry.delete_seller("s1", yes)

        assert session.transaction.selected_seller_id is None
        assert session.navigator.filter_seller_id is None
        assert session.navigator.status_message.startswith("Seller and associated quick items deleted")

    def test_deleting_last_seller_forces_settings(self):
        session = make_session()
        session.registry.delete_seller("s1", yes)
        assert session.navigator.screen == Screen.SETTINGS


class TestHomeScreen:
    def test_filter_toggles(self):
        nav = make_session().navigator
        assert nav.toggle_filter("s1") == "s1"
        assert nav.toggle_filter("s1") is None

    def test_quick_item_from_sold_item(self):
        session = make_session()
        session.store.add_sold_items([
            SoldItem(id="x1", name="Vase", amount=Decimal("4"), seller_id="s1", timestamp=1),
        ])
        nav = session.navigator
        draft = nav.create_quick_item_from_sold_item("x1")
        assert nav.screen == Screen.SETTINGS
        assert nav.previous_screen == Screen.HOME
        assert (draft.name, draft.amount, draft.seller_id) == ("Vase", "4.00", "s1")
        assert nav.take_quick_item_prefill() == draft
        assert nav.take_quick_item_prefill() is None

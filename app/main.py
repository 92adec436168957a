import logging
from contextlib import asynccontextmanager
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query, Request

from app.config import Settings
from app.errors import GuardedDeleteError, NoSellerSelectedError, NotFoundError
from app.models import ImportIn, ItemIn, LineIn, SellerIn
from app.money import format_amount
from app.registry import DELETE_QUICK_ITEM_PROMPT, DELETE_SELLER_PROMPT
from app.reports import build_report, item_label
from app.session import Session
from app.transaction import CANCEL_PROMPT

logger = logging.getLogger("tracker.api")


def get_session(request: Request) -> Session:
    return request.app.state.session


SessionDep = Annotated[Session, Depends(get_session)]
ConfirmFlag = Annotated[bool, Query(description="User confirmed the destructive action")]

router = APIRouter(prefix="/api/v1")


def _dump(model) -> dict:
    return model.model_dump(mode="json", by_alias=True)


def _confirmed(flag: bool):
    return lambda _prompt: flag


def _needs_confirmation(prompt: str) -> HTTPException:
    return HTTPException(409, {"message": "confirmation required", "prompt": prompt})


def _state(session: Session) -> dict:
    nav, txn = session.navigator, session.transaction
    return {
        "screen": nav.screen.value,
        "title": nav.title,
        "previous_screen": nav.previous_screen.value if nav.previous_screen else None,
        "status_message": nav.status_message,
        "sellers": [_dump(s) for s in session.store.list_sellers()],
        "quick_items": [
            {**_dump(q), "label": format_amount(q.amount)} for q in session.store.list_quick_items()
        ],
        "transaction": {
            "selected_seller_id": txn.selected_seller_id,
            "pending_items": [
                {**_dump(i), "label": item_label(session.store, i)} for i in txn.pending_items
            ],
            "total": float(txn.total()),
        },
        "save_modal_text": session.gateway.save_modal_text,
        "load_modal_open": session.gateway.load_modal_open,
    }


# ── State & reports ──────────────────────────────────────────────────────────

@router.get("/state", summary="Current screen, catalogue and pending transaction")
def get_state(session: SessionDep):
    return _state(session)


@router.get("/reports/sales", summary="Per-seller and grand totals with the sold-items ledger")
def get_sales_report(session: SessionDep):
    report = build_report(session.store, session.navigator.filter_seller_id)
    return _dump(report)


@router.post("/reports/filter/{seller_id}", summary="Toggle the ledger filter for a seller")
def toggle_filter(seller_id: str, session: SessionDep):
    try:
        session.navigator.toggle_filter(seller_id)
    except NotFoundError as exc:
        raise HTTPException(404, str(exc))
    return _dump(build_report(session.store, session.navigator.filter_seller_id))


# ── Sellers ──────────────────────────────────────────────────────────────────

@router.post("/sellers", summary="Add a seller")
def add_seller(body: SellerIn, session: SessionDep):
    seller = session.registry.add_seller(body.name)
    if seller is None:
        raise HTTPException(422, "Seller name must not be blank")
    return _dump(seller)


@router.put("/sellers/{seller_id}", summary="Rename a seller")
def edit_seller(seller_id: str, body: SellerIn, session: SessionDep):
    try:
        return _dump(session.registry.edit_seller(seller_id, body.name))
    except NotFoundError as exc:
        raise HTTPException(404, str(exc))


@router.delete("/sellers/{seller_id}", summary="Delete a seller and its quick items")
def delete_seller(seller_id: str, session: SessionDep, confirm: ConfirmFlag = False):
    try:
        deleted = session.registry.delete_seller(seller_id, _confirmed(confirm))
    except NotFoundError as exc:
        raise HTTPException(404, str(exc))
    except GuardedDeleteError as exc:
        session.navigator.status_message = str(exc)
        raise HTTPException(409, str(exc))
    if not deleted:
        raise _needs_confirmation(DELETE_SELLER_PROMPT)
    return {"status": "deleted", "seller_id": seller_id}


# ── Quick items ──────────────────────────────────────────────────────────────

@router.post("/quick-items", summary="Add a quick item")
def add_quick_item(body: ItemIn, session: SessionDep):
    item = session.registry.add_quick_item(body.name, body.amount, body.seller_id)
    if item is None:
        raise HTTPException(422, "A seller and an amount above zero are required")
    return _dump(item)


@router.put("/quick-items/{item_id}", summary="Edit a quick item")
def edit_quick_item(item_id: str, body: ItemIn, session: SessionDep):
    try:
        item = session.registry.edit_quick_item(item_id, body.name, body.amount, body.seller_id)
    except NotFoundError as exc:
        raise HTTPException(404, str(exc))
    if item is None:
        raise HTTPException(422, "A known seller and a valid amount are required")
    return _dump(item)


@router.delete("/quick-items/{item_id}", summary="Delete a quick item")
def delete_quick_item(item_id: str, session: SessionDep, confirm: ConfirmFlag = False):
    try:
        deleted = session.registry.delete_quick_item(item_id, _confirmed(confirm))
    except NotFoundError as exc:
        raise HTTPException(404, str(exc))
    if not deleted:
        raise _needs_confirmation(DELETE_QUICK_ITEM_PROMPT)
    session.navigator.status_message = "Quick item deleted successfully."
    return {"status": "deleted", "item_id": item_id}


@router.get("/quick-items/prefill", summary="Take the pending quick item form prefill, if any")
def take_prefill(session: SessionDep):
    prefill = session.navigator.take_quick_item_prefill()
    return {"prefill": prefill.model_dump() if prefill else None}


# ── Sold items ───────────────────────────────────────────────────────────────

@router.put("/sold-items/{item_id}", summary="Correct a sold item")
def edit_sold_item(item_id: str, body: ItemIn, session: SessionDep):
    try:
        item = session.registry.edit_sold_item(item_id, body.name, body.amount, body.seller_id)
    except NotFoundError as exc:
        raise HTTPException(404, str(exc))
    if item is None:
        raise HTTPException(422, "A known seller and a valid amount are required")
    return _dump(item)


@router.delete("/sold-items/{item_id}", summary="Delete a sold item")
def delete_sold_item(item_id: str, session: SessionDep):
    try:
        session.registry.delete_sold_item(item_id)
    except NotFoundError as exc:
        raise HTTPException(404, str(exc))
    session.navigator.status_message = "Sold item deleted successfully."
    return {"status": "deleted", "item_id": item_id}


@router.post("/sold-items/{item_id}/quick-item", summary="Prefill a quick item from a sold item")
def quick_item_from_sold_item(item_id: str, session: SessionDep):
    try:
        draft = session.navigator.create_quick_item_from_sold_item(item_id)
    except NotFoundError as exc:
        raise HTTPException(404, str(exc))
    return {"prefill": draft.model_dump(), "screen": session.navigator.screen.value}


# ── Navigation ───────────────────────────────────────────────────────────────

@router.post("/navigation/settings", summary="Open settings")
def open_settings(session: SessionDep):
    session.navigator.open_settings()
    return _state(session)


@router.post("/navigation/back", summary="Leave settings")
def go_back(session: SessionDep):
    session.navigator.back()
    return _state(session)


@router.post("/navigation/home", summary="Go to the sales report")
def go_home(session: SessionDep):
    session.navigator.go_home()
    return _state(session)


@router.post("/navigation/transaction", summary="Start a transaction")
def start_transaction(session: SessionDep):
    session.navigator.start_transaction()
    return _state(session)


# ── Transaction ──────────────────────────────────────────────────────────────

@router.post("/transaction/seller/{seller_id}", summary="Toggle the selected seller")
def select_seller(seller_id: str, session: SessionDep):
    try:
        session.transaction.select_seller(seller_id)
    except NotFoundError as exc:
        raise HTTPException(404, str(exc))
    return _state(session)


@router.post("/transaction/lines", summary="Add a line to the pending transaction")
def add_line(body: LineIn, session: SessionDep):
    try:
        session.transaction.add_line(body.amount, body.name, body.seller_id)
    except NoSellerSelectedError as exc:
        session.navigator.status_message = str(exc)
        raise HTTPException(422, str(exc))
    session.navigator.status_message = ""
    return _state(session)


@router.post("/transaction/quick-items/{item_id}", summary="Add a quick item to the transaction")
def add_quick_item_line(item_id: str, session: SessionDep):
    try:
        session.transaction.add_quick_item(item_id)
    except NotFoundError as exc:
        raise HTTPException(404, str(exc))
    except NoSellerSelectedError as exc:
        raise HTTPException(422, str(exc))
    return _state(session)


@router.delete("/transaction/lines/{line_id}", summary="Remove a pending line")
def remove_line(line_id: str, session: SessionDep):
    session.transaction.remove_line(line_id)
    return _state(session)


@router.post("/transaction/confirm", summary="Commit the pending transaction")
def confirm_purchase(session: SessionDep):
    count = session.navigator.confirm_purchase()
    return {"sold_count": count, **_state(session)}


@router.post("/transaction/cancel", summary="Discard the pending transaction")
def cancel_transaction(session: SessionDep, confirm: ConfirmFlag = False):
    if not session.navigator.cancel_transaction(_confirmed(confirm)):
        raise _needs_confirmation(CANCEL_PROMPT)
    return _state(session)


# ── Save / load ──────────────────────────────────────────────────────────────

@router.post("/data/save", summary="Export the dataset")
def save_data(session: SessionDep):
    return _dump(session.save_data())


@router.post("/data/load", summary="Import the dataset from the export file")
def load_data(session: SessionDep):
    result = session.load_data()
    return {"status": result.status.value, "message": result.message, **_state(session)}


@router.post("/data/import", summary="Import pasted JSON")
def import_data(body: ImportIn, session: SessionDep):
    result = session.load_pasted(body.text)
    if result.dataset is None:
        raise HTTPException(422, result.message)
    return {"status": result.status.value, "message": result.message, **_state(session)}


@router.post("/data/copy", summary="Copy the export text to the clipboard")
def copy_data(session: SessionDep):
    return {"message": session.copy_to_clipboard()}


@router.post("/data/modal/close", summary="Close the copy and paste boxes")
def close_modals(session: SessionDep):
    session.gateway.close_save_modal()
    session.gateway.close_load_modal()
    return _state(session)


# ── Admin ─────────────────────────────────────────────────────────────────────

@router.post("/admin/seed", summary="Replace all data with the demo dataset")
def reseed(session: SessionDep):
    from scripts.seed_data import seed
    session.store.clear()
    seed(session.store)
    session.drop_view_state()
    session.navigator.go_home()
    return {
        "status": "seeded",
        "sellers": len(session.store.sellers),
        "quick_items": len(session.store.quick_items),
        "sold_items": len(session.store.sold_items),
    }


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logging.basicConfig(
            level=settings.log_level,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
        session = Session.from_settings(settings)
        if settings.seed_demo and not session.store.sellers:
            from scripts.seed_data import seed
            seed(session.store)
            session.navigator.go_home()
        app.state.session = session
        logger.info("tracker ready on screen %s", session.navigator.screen.value)
        yield

    app = FastAPI(
        title="Yard Sale Tracker",
        version="1.0.0",
        description="Cash sales tracking for a multi-seller yard sale",
        lifespan=lifespan,
    )
    app.include_router(router)
    return app


app = create_app()

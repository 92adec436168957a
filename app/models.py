from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, PlainSerializer, model_validator
from enum import Enum
from decimal import Decimal
from typing import Annotated, Generic, Optional, TypeVar, Union

from app.money import to_amount

# Stored and exported as a JSON number, always 2 dp in memory
Amount = Annotated[
    Decimal,
    BeforeValidator(to_amount),
    PlainSerializer(float, return_type=float, when_used="json"),
]


class Screen(str, Enum):
    HOME = "home"
    SETTINGS = "settings"
    TRANSACTION = "transaction"


SCREEN_TITLES = {
    Screen.HOME: "Sales Reports",
    Screen.SETTINGS: "Settings",
    Screen.TRANSACTION: "New Transaction",
}


class _Record(BaseModel):
    # camelCase on the wire, snake_case in Python
    model_config = ConfigDict(populate_by_name=True)


class Seller(_Record):
    id: str
    name: str


class QuickItem(_Record):
    id: str
    name: str = ""
    amount: Amount = Field(ge=0)
    seller_id: str = Field(alias="sellerId")


class SoldItem(_Record):
    id: str
    name: str = ""
    amount: Amount
    seller_id: str = Field(alias="sellerId")
    timestamp: int  # ms since epoch


class TransactionLineItem(_Record):
    id: str
    name: str = ""
    amount: Amount
    seller_id: str = Field(alias="sellerId")


class Dataset(_Record):
    """The persisted unit: every key is required, nothing is merged."""

    sellers: list[Seller]
    quick_items: list[QuickItem] = Field(alias="quickItems")
    sold_items: list[SoldItem] = Field(alias="soldItems")

    @model_validator(mode="after")
    def _unique_ids(self):
        for label, records in (
            ("sellers", self.sellers),
            ("quickItems", self.quick_items),
            ("soldItems", self.sold_items),
        ):
            dupes = duplicate_ids(records)
            if dupes:
                raise ValueError(f"duplicate ids in {label}: {', '.join(dupes)}")
        return self


def duplicate_ids(records) -> list[str]:
    seen, dupes = set(), []
    for record in records:
        if record.id in seen and record.id not in dupes:
            dupes.append(record.id)
        seen.add(record.id)
    return dupes


# ── Edit drafts ──────────────────────────────────────────────────────────────

class SellerDraft(BaseModel):
    name: str = ""


class ItemDraft(BaseModel):
    """Form fields for a quick item or sold item; amount is kept as typed."""

    name: str = ""
    amount: str = ""
    seller_id: str = ""


D = TypeVar("D", bound=BaseModel)


class EditSession(BaseModel, Generic[D]):
    entity_id: str
    draft: D


# ── Request models ───────────────────────────────────────────────────────────

class SellerIn(BaseModel):
    name: str


class ItemIn(_Record):
    name: str = ""
    amount: Union[str, float]
    seller_id: str = Field(default="", alias="sellerId")


class LineIn(_Record):
    amount: Union[str, float]
    name: str = ""
    seller_id: Optional[str] = Field(default=None, alias="sellerId")


class ImportIn(BaseModel):
    text: str


# ── Response models ──────────────────────────────────────────────────────────

class SellerTotal(BaseModel):
    seller_id: str
    seller_name: str
    total: Amount
    item_count: int


class SalesReport(BaseModel):
    grand_total: Amount
    per_seller: list[SellerTotal]
    filter_seller_id: Optional[str] = None
    title: str
    sold_items: list[SoldItem]

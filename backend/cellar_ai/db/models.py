"""SQLAlchemy ORM models for users, CellarTracker credentials and wine inventory."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import DeclarativeBase


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class User(Base):
    """Application user. Guests are created on first visit."""

    __tablename__ = "User"

    id = Column(String(36), primary_key=True, default=_new_id)
    email = Column(String(64), nullable=False)
    password = Column(String(64))
    is_guest = Column("isGuest", Boolean, nullable=False, default=False)
    created_at = Column("createdAt", DateTime(timezone=True), default=_utcnow)


class CellarTrackerCredentials(Base):
    """Stored CellarTracker login used to refresh the inventory export."""

    __tablename__ = "CellarTrackerCredentials"

    user_id = Column("userId", String(36), ForeignKey("User.id"), primary_key=True)
    username = Column(Text, nullable=False)
    password = Column(Text, nullable=False)
    created_at = Column("createdAt", DateTime(timezone=True), default=_utcnow)
    updated_at = Column("updatedAt", DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)


# CellarTracker CSV header -> (ORM attribute, database column)
WINE_CSV_COLUMNS = {
    "iWine": ("i_wine", "iWine"),
    "Barcode": ("barcode", "barcode"),
    "Location": ("location", "location"),
    "Bin": ("bin", "bin"),
    "Size": ("size", "size"),
    "Currency": ("currency", "currency"),
    "ExchangeRate": ("exchange_rate", "exchangeRate"),
    "Valuation": ("valuation", "valuation"),
    "Price": ("price", "price"),
    "NativePrice": ("native_price", "nativePrice"),
    "NativePriceCurrency": ("native_price_currency", "nativePriceCurrency"),
    "StoreName": ("store_name", "storeName"),
    "PurchaseDate": ("purchase_date", "purchaseDate"),
    "BottleNote": ("bottle_note", "bottleNote"),
    "Vintage": ("vintage", "vintage"),
    "Wine": ("wine", "wine"),
    "Locale": ("locale", "locale"),
    "Country": ("country", "country"),
    "Region": ("region", "region"),
    "SubRegion": ("sub_region", "subRegion"),
    "Appellation": ("appellation", "appellation"),
    "Producer": ("producer", "producer"),
    "SortProducer": ("sort_producer", "sortProducer"),
    "Type": ("type", "type"),
    "Color": ("color", "color"),
    "Category": ("category", "category"),
    "Varietal": ("varietal", "varietal"),
    "MasterVarietal": ("master_varietal", "masterVarietal"),
    "Designation": ("designation", "designation"),
    "Vineyard": ("vineyard", "vineyard"),
    "CT": ("ct", "ct"),
    "CNotes": ("c_notes", "cNotes"),
    "BeginConsume": ("begin_consume", "beginConsume"),
    "EndConsume": ("end_consume", "endConsume"),
}


class Wine(Base):
    """One bottle from a user's CellarTracker inventory export.

    Values are kept as the export's text, including prices and dates.
    """

    __tablename__ = "Wine"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column("userId", String(36), ForeignKey("User.id"), nullable=False, index=True)
    i_wine = Column("iWine", String(32))
    barcode = Column("barcode", String(64))
    location = Column("location", Text)
    bin = Column("bin", Text)
    size = Column("size", String(32))
    currency = Column("currency", String(8))
    exchange_rate = Column("exchangeRate", String(32))
    valuation = Column("valuation", String(32))
    price = Column("price", String(32))
    native_price = Column("nativePrice", String(32))
    native_price_currency = Column("nativePriceCurrency", String(8))
    store_name = Column("storeName", Text)
    purchase_date = Column("purchaseDate", String(32))
    bottle_note = Column("bottleNote", Text)
    vintage = Column("vintage", String(16))
    wine = Column("wine", Text)
    locale = Column("locale", Text)
    country = Column("country", String(64))
    region = Column("region", String(128))
    sub_region = Column("subRegion", String(128))
    appellation = Column("appellation", String(128))
    producer = Column("producer", Text)
    sort_producer = Column("sortProducer", Text)
    type = Column("type", String(64))
    color = Column("color", String(32))
    category = Column("category", String(64))
    varietal = Column("varietal", String(128))
    master_varietal = Column("masterVarietal", String(128))
    designation = Column("designation", Text)
    vineyard = Column("vineyard", Text)
    ct = Column("ct", String(16))
    c_notes = Column("cNotes", Text)
    begin_consume = Column("beginConsume", String(16))
    end_consume = Column("endConsume", String(16))
    fetched_at = Column("fetchedAt", DateTime(timezone=True), default=_utcnow, nullable=False)

    def to_dict(self) -> dict:
        """Serialize using the export's camelCase column names."""
        data = {"id": self.id, "userId": self.user_id}
        for attr, column in WINE_CSV_COLUMNS.values():
            data[column] = getattr(self, attr)
        data["fetchedAt"] = self.fetched_at.isoformat() if self.fetched_at else None
        return data


WINE_SCHEMA_PROMPT = """## Table: "Wine"
One row per bottle in the user's cellar. Identifiers are case-sensitive camelCase and
MUST be double-quoted (e.g. "masterVarietal", "userId").

### Columns:
- "userId" (text): owner of the bottle. Every query MUST filter with "userId" = :owner_id
- "iWine" (text): CellarTracker wine id (same wine appears once per bottle)
- "wine" (text): full wine name
- "producer" (text), "sortProducer" (text)
- "vintage" (text): 4-digit year, or 1001 for non-vintage. Cast to integer for ranges
- "country", "region", "subRegion", "appellation", "locale" (text)
- "type" (text): e.g. Red, White, Rosé, Sparkling, Dessert
- "color" (text), "category" (text)
- "varietal" (text), "masterVarietal" (text)
- "designation", "vineyard" (text)
- "location", "bin" (text): where the bottle is stored
- "size" (text): bottle size, e.g. 750ml
- "price" (text): purchase price per bottle, numeric stored as text. CAST("price" AS NUMERIC)
- "valuation" (text): current estimated value, numeric stored as text
- "currency" (text), "nativePrice" (text), "nativePriceCurrency" (text), "exchangeRate" (text)
- "purchaseDate" (text): M/D/YYYY
- "storeName" (text)
- "ct" (text): community tasting score, numeric stored as text
- "beginConsume", "endConsume" (text): drinking window years
- "bottleNote", "cNotes" (text): personal notes
- "fetchedAt" (timestamp): when the inventory was imported

Empty values are stored as empty strings; use NULLIF("price", '') before casting.
"""

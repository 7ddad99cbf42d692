"""Shared data models for the ingestion pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional
import uuid


class ItemCategory(str, Enum):
    ANTIQUES = "antiques"
    ART = "art"
    BOOKS = "books"
    CERAMICS = "ceramics"
    CHINA = "china"
    CLOTHING = "clothing"
    COINS = "coins"
    COLLECTIBLES = "collectibles"
    ELECTRONICS = "electronics"
    FURNITURE = "furniture"
    GLASS = "glass"
    JEWELRY = "jewelry"
    LINENS = "linens"
    MEMORABILIA = "memorabilia"
    MUSICAL = "musical"
    POTTERY = "pottery"
    SILVER = "silver"
    STAMPS = "stamps"
    TOOLS = "tools"
    TOYS = "toys"
    VINTAGE = "vintage"
    OTHER = "other"


class ItemCondition(str, Enum):
    MINT = "mint"
    EXCELLENT = "excellent"
    VERY_GOOD = "very_good"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"
    RESTORATION = "restoration"
    PARTS = "parts"
    UNKNOWN = "unknown"


class DocumentStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SUCCEEDED = "succeeded"
    FAILED_EMPTY = "failed_empty"
    FAILED_ERROR = "failed_error"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class RawTextLine:
    """One line of extractor output, ordered by page then line position."""

    page: int
    line_no: int
    text: str


@dataclass(frozen=True)
class RawItem:
    description: str
    price: Decimal


@dataclass(frozen=True)
class AuctionMetadata:
    document_id: str
    auction_id: int
    date: datetime
    premium_percent: Decimal
    tax_percent: Decimal


@dataclass(frozen=True)
class InventoryLineItem:
    """A fully built, persistable lot.

    ``total_cost`` and ``cost_per_item`` are produced by
    :func:`auction_ingest.financials.compute_costs`; the record is never
    mutated after construction.
    """

    lot_id: uuid.UUID
    invoice_id: str
    auction_id: int
    item_name: str
    description: str
    category: ItemCategory
    condition: ItemCondition
    bid_amount: Decimal
    buyers_premium: Decimal
    sales_tax: Decimal
    total_cost: Decimal
    cost_per_item: Decimal
    acquisition_date: datetime
    quantity: int = 1
    shipping_cost: Decimal = Decimal("0.00")
    keywords: tuple[str, ...] = ()


@dataclass
class IngestionCheckpoint:
    """Durable record of documents that were fully persisted."""

    processed_invoices: list[str] = field(default_factory=list)
    processed_count: int = 0
    last_update: Optional[datetime] = None

    def __post_init__(self) -> None:
        self._seen = set(self.processed_invoices)

    def __contains__(self, document_id: object) -> bool:
        return document_id in self._seen

    def mark_processed(self, document_id: str) -> None:
        if document_id not in self._seen:
            self._seen.add(document_id)
            self.processed_invoices.append(document_id)
        self.processed_count = len(self.processed_invoices)
        self.last_update = datetime.now(timezone.utc)


@dataclass
class DocumentOutcome:
    """Tracks the result of ingesting a single document."""

    document_id: str
    path: str
    status: DocumentStatus = DocumentStatus.PENDING
    item_count: int = 0
    inserted_count: int = 0
    elapsed_s: float = 0.0
    error: Optional[str] = None

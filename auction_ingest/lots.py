"""Turn reconstructed raw items into persistable inventory records."""

from __future__ import annotations

import logging
import uuid
from typing import Optional, Sequence

from .cleaning import generate_item_name
from .financials import compute_costs
from .models import AuctionMetadata, InventoryLineItem, RawItem
from .nlp import ItemClassifier, extract_keywords

log = logging.getLogger(__name__)

LOT_NAMESPACE = uuid.UUID("5d1f3c2e-8a4b-4f0e-9c6d-2b7a1e9f4c30")


def lot_id_for(document_id: str, index: int, raw: RawItem) -> uuid.UUID:
    """Stable lot id so a re-run of the same invoice yields the same rows."""
    key = f"{document_id}|{index}|{raw.description}|{raw.price}"
    return uuid.uuid5(LOT_NAMESPACE, key)


def build_line_item(
    raw: RawItem,
    index: int,
    metadata: AuctionMetadata,
    classifier: ItemClassifier,
) -> InventoryLineItem:
    costs = compute_costs(raw.price, metadata.premium_percent, metadata.tax_percent)
    category, condition = classifier.classify(raw.description)
    return InventoryLineItem(
        lot_id=lot_id_for(metadata.document_id, index, raw),
        invoice_id=metadata.document_id,
        auction_id=metadata.auction_id,
        item_name=generate_item_name(raw.description),
        description=raw.description,
        category=category,
        condition=condition,
        bid_amount=raw.price,
        buyers_premium=costs.premium,
        sales_tax=costs.tax,
        total_cost=costs.total_cost,
        cost_per_item=costs.cost_per_item,
        acquisition_date=metadata.date,
        keywords=tuple(extract_keywords(raw.description)),
    )


def build_line_items(
    raw_items: Sequence[RawItem],
    metadata: AuctionMetadata,
    classifier: Optional[ItemClassifier] = None,
) -> list[InventoryLineItem]:
    """Build one record per raw item, in invoice order."""
    classifier = classifier or ItemClassifier()
    items = [
        build_line_item(raw, idx, metadata, classifier)
        for idx, raw in enumerate(raw_items)
    ]
    log.debug(
        "Built %s line item(s) for invoice %s", len(items), metadata.document_id
    )
    return items

"""Auction invoice -> inventory line item ingestion.

Public API -- all symbols that tests and external code import live here.
Internally the code is split across focused submodules; this file
re-exports the stable public surface so ``from auction_ingest import X`` works.
"""

from .cleaning import clean_description, generate_item_name, strip_trailing_codes
from .config import IngestSettings, load_settings
from .conversion import TextExtractor, create_pdf_converter, lines_from_text
from .errors import (
    DocumentReadError,
    EmptyExtractionError,
    IngestError,
    PersistenceError,
    StartupError,
)
from .financials import CostBreakdown, compute_costs, round2
from .ingestion import IngestionDriver, RunSummary
from .lots import build_line_item, build_line_items, lot_id_for
from .models import (
    AuctionMetadata,
    DocumentOutcome,
    DocumentStatus,
    IngestionCheckpoint,
    InventoryLineItem,
    ItemCategory,
    ItemCondition,
    RawItem,
    RawTextLine,
)
from .nlp import DEFAULT_TAXONOMY, ItemClassifier, Taxonomy, extract_keywords
from .reconstruct import LineReconstructor, ReconstructorState, reconstruct_items
from .registry import AuctionMetadataRegistry
from .report import OperatorReport
from .sources import discover_documents, document_id_for
from .store import InventoryStore, PersistenceSink
from .utils import load_checkpoint, save_checkpoint, save_run_report

__all__ = [
    # Models
    "AuctionMetadata",
    "DocumentOutcome",
    "DocumentStatus",
    "IngestionCheckpoint",
    "InventoryLineItem",
    "ItemCategory",
    "ItemCondition",
    "RawItem",
    "RawTextLine",
    # Errors
    "IngestError",
    "StartupError",
    "DocumentReadError",
    "EmptyExtractionError",
    "PersistenceError",
    # Config
    "IngestSettings",
    "load_settings",
    # Utils
    "load_checkpoint",
    "save_checkpoint",
    "save_run_report",
    # Sources
    "discover_documents",
    "document_id_for",
    # Conversion
    "create_pdf_converter",
    "lines_from_text",
    "TextExtractor",
    # Reconstruction
    "LineReconstructor",
    "ReconstructorState",
    "reconstruct_items",
    "clean_description",
    "generate_item_name",
    "strip_trailing_codes",
    # Classification
    "DEFAULT_TAXONOMY",
    "Taxonomy",
    "ItemClassifier",
    "extract_keywords",
    # Financials
    "CostBreakdown",
    "compute_costs",
    "round2",
    # Line items
    "lot_id_for",
    "build_line_item",
    "build_line_items",
    # Metadata
    "AuctionMetadataRegistry",
    # Persistence
    "InventoryStore",
    "PersistenceSink",
    # Driver
    "IngestionDriver",
    "RunSummary",
    "OperatorReport",
]

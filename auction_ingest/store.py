"""Inventory persistence using SQLAlchemy Core.

One invoice is written per transaction. Each row is inserted with
"on conflict do nothing" keyed by ``lot_id``; any failing row rolls the
whole invoice back.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Protocol, Sequence

from sqlalchemy import (
    Column,
    DateTime,
    Integer,
    MetaData,
    Numeric,
    String,
    Table,
    Text,
    create_engine,
    func,
    select,
    text,
)
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from .errors import PersistenceError, StartupError
from .models import InventoryLineItem

log = logging.getLogger(__name__)

metadata = MetaData()

inventory_table = Table(
    "inventory",
    metadata,
    Column("lot_id", String(36), primary_key=True),
    Column("invoice_id", String(50), nullable=False, index=True),
    Column("auction_id", Integer),
    Column("item_name", String(255), nullable=False),
    Column("description", Text),
    Column("category", String(32), nullable=False, server_default="other"),
    Column("condition", String(32), nullable=False, server_default="unknown"),
    Column("quantity", Integer, nullable=False, server_default="1"),
    Column("bid_amount", Numeric(10, 2), nullable=False),
    Column("buyers_premium", Numeric(10, 2), nullable=False),
    Column("sales_tax", Numeric(10, 2), nullable=False),
    Column("shipping_cost", Numeric(10, 2), nullable=False),
    Column("total_cost", Numeric(10, 2), nullable=False),
    Column("cost_per_item", Numeric(10, 2), nullable=False),
    Column("acquisition_date", DateTime(timezone=True), nullable=False),
    Column("keywords", Text),
    Column("created_at", DateTime(timezone=True), server_default=func.now()),
)


class PersistenceSink(Protocol):
    """The only contract the ingestion driver needs from storage."""

    def save_batch(self, items: Sequence[InventoryLineItem]) -> int:
        ...


def _row_for(item: InventoryLineItem) -> dict[str, Any]:
    return {
        "lot_id": str(item.lot_id),
        "invoice_id": item.invoice_id,
        "auction_id": item.auction_id,
        "item_name": item.item_name,
        "description": item.description,
        "category": item.category.value,
        "condition": item.condition.value,
        "quantity": item.quantity,
        "bid_amount": item.bid_amount,
        "buyers_premium": item.buyers_premium,
        "sales_tax": item.sales_tax,
        "shipping_cost": item.shipping_cost,
        "total_cost": item.total_cost,
        "cost_per_item": item.cost_per_item,
        "acquisition_date": item.acquisition_date,
        "keywords": ",".join(item.keywords),
    }


class InventoryStore:
    def __init__(self, dsn: str, timeout: float = 30.0):
        driver_dsn = _ensure_psycopg_driver(dsn)
        engine_kwargs: dict[str, Any] = {}
        if not driver_dsn.startswith("sqlite"):
            engine_kwargs["pool_timeout"] = timeout
        try:
            self.engine: Engine = create_engine(
                driver_dsn,
                future=True,
                pool_pre_ping=True,
                connect_args=_connect_args(driver_dsn, timeout),
                **engine_kwargs,
            )
        except (SQLAlchemyError, ImportError) as exc:
            # Bad URLs and missing DBAPI drivers surface here.
            raise StartupError(f"Cannot open inventory database: {exc}") from exc

    def dispose(self) -> None:
        self.engine.dispose()

    def close(self) -> None:
        self.dispose()

    def ping(self) -> None:
        """Fail fast when the database cannot be reached."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError as exc:
            raise StartupError(f"Cannot reach inventory database: {exc}") from exc

    def ensure_schema(self) -> None:
        try:
            metadata.create_all(self.engine)
        except SQLAlchemyError as exc:
            raise StartupError(f"Cannot create inventory schema: {exc}") from exc

    def _insert_ignoring_conflicts(self):
        dialect = self.engine.dialect.name
        if dialect == "postgresql":
            from sqlalchemy.dialects.postgresql import insert
        elif dialect == "sqlite":
            from sqlalchemy.dialects.sqlite import insert
        else:
            raise PersistenceError(f"Unsupported database dialect: {dialect}")
        return insert(inventory_table).on_conflict_do_nothing(index_elements=["lot_id"])

    def save_batch(self, items: Sequence[InventoryLineItem]) -> int:
        """Insert *items* atomically; return how many rows were new.

        Raises:
            PersistenceError: when any row fails; nothing is committed.
        """
        if not items:
            return 0

        stmt = self._insert_ignoring_conflicts()
        inserted = 0
        try:
            with self.engine.begin() as conn:
                for position, item in enumerate(items):
                    try:
                        result = conn.execute(stmt, _row_for(item))
                    except SQLAlchemyError as exc:
                        raise PersistenceError(
                            f"failed to insert item {position} (lot {item.lot_id}): {exc}",
                            position=position,
                            lot_id=item.lot_id,
                        ) from exc
                    inserted += max(result.rowcount or 0, 0)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"failed to commit batch: {exc}") from exc

        log.info(
            "Saved items: invoice=%s batch=%s inserted=%s",
            items[0].invoice_id,
            len(items),
            inserted,
        )
        return inserted

    def count_items(self, invoice_id: Optional[str] = None) -> int:
        stmt = select(func.count()).select_from(inventory_table)
        if invoice_id is not None:
            stmt = stmt.where(inventory_table.c.invoice_id == invoice_id)
        with self.engine.connect() as conn:
            return int(conn.execute(stmt).scalar_one())

    def fetch_items(self, invoice_id: str) -> list[dict[str, Any]]:
        stmt = (
            select(inventory_table)
            .where(inventory_table.c.invoice_id == invoice_id)
            .order_by(inventory_table.c.lot_id)
        )
        with self.engine.connect() as conn:
            return [dict(row) for row in conn.execute(stmt).mappings()]


def _ensure_psycopg_driver(dsn: str) -> str:
    if dsn.startswith("postgresql://") and "+psycopg" not in dsn:
        return dsn.replace("postgresql://", "postgresql+psycopg://", 1)
    if dsn.startswith("postgres://") and "+psycopg" not in dsn:
        return dsn.replace("postgres://", "postgresql+psycopg://", 1)
    return dsn


def _connect_args(dsn: str, timeout: float) -> dict[str, Any]:
    if dsn.startswith("sqlite"):
        return {"timeout": timeout}
    if dsn.startswith("postgresql"):
        return {"connect_timeout": max(1, int(timeout))}
    return {}

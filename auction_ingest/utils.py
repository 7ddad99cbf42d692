"""Cross-cutting helpers: constants, checkpoint and run-report I/O."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .models import IngestionCheckpoint

log = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DEFAULT_INVOICES_DIR = Path("invoices")
DEFAULT_AUCTIONS_FILE = Path("auctions.xlsx")
DEFAULT_STATE_FILE = Path(".seed_state.json")
MAX_ERROR_CHARS = 500


# ---------------------------------------------------------------------------
# Atomic JSON writes
# ---------------------------------------------------------------------------


def atomic_write_json(path: Path, payload: Any) -> Path:
    """Write *payload* to a sibling temp file, then rename over *path*."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent)
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump(payload, fh, indent=2, ensure_ascii=False, default=str)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise
    return path


# ---------------------------------------------------------------------------
# Checkpoint I/O
# ---------------------------------------------------------------------------


def _parse_timestamp(value: Any) -> datetime | None:
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def load_checkpoint(path: Path) -> IngestionCheckpoint:
    """Load the checkpoint at *path*; a missing or corrupt file starts fresh."""
    if not path.exists():
        return IngestionCheckpoint()
    try:
        with open(path, "r", encoding="utf-8") as fh:
            state = json.load(fh)
    except (json.JSONDecodeError, OSError, ValueError) as exc:
        log.warning("Ignoring unreadable checkpoint %s: %s", path, exc)
        return IngestionCheckpoint()

    if not isinstance(state, dict):
        return IngestionCheckpoint()

    processed = state.get("processed_invoices")
    if not isinstance(processed, list):
        processed = []
    processed = [str(item) for item in processed if item is not None]

    return IngestionCheckpoint(
        processed_invoices=processed,
        processed_count=len(processed),
        last_update=_parse_timestamp(state.get("last_update")),
    )


def checkpoint_payload(checkpoint: IngestionCheckpoint) -> dict[str, Any]:
    last_update = checkpoint.last_update or datetime.now(timezone.utc)
    return {
        "processed_invoices": list(checkpoint.processed_invoices),
        "processed_count": checkpoint.processed_count,
        "last_update": last_update.isoformat(),
    }


def save_checkpoint(path: Path, checkpoint: IngestionCheckpoint) -> Path:
    """Persist the checkpoint atomically and return its path."""
    return atomic_write_json(path, checkpoint_payload(checkpoint))


# ---------------------------------------------------------------------------
# Run report
# ---------------------------------------------------------------------------


def save_run_report(path: Path, summary: Any) -> Path:
    """Write the JSON form of a :class:`RunSummary` and return its path."""
    report = summary.to_dict()
    report["generated_at"] = datetime.now(timezone.utc).isoformat()
    return atomic_write_json(path, report)

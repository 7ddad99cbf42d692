"""CLI shim -- delegates to auction_ingest.cli.main().

Usage:
    python seed_inventory.py --invoices ./invoices --auctions ./auctions.xlsx
    python seed_inventory.py --dry-run
"""

from auction_ingest.cli import main

if __name__ == "__main__":
    raise SystemExit(main())

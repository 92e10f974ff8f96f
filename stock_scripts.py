"""
Stock maintenance script.

This script:
1. Recomputes the cached stock / quantity sold of every product
2. Creates products for sales that match no product
3. Exports the (optionally historical) stock view to Excel

Usage:
    # Refresh cached stock from the sales ledger
    python stock_scripts.py --refresh

    # Create missing products from sales (preview only)
    python stock_scripts.py --sync-from-sales --dry-run

    # Export stock as of a date
    python stock_scripts.py --export exports/stock.xlsx --as-of 2024-01-31
"""
# Load .env FIRST before any other imports
from pathlib import Path
from dotenv import load_dotenv
_project_root = Path(__file__).resolve().parent
load_dotenv(_project_root / ".env")

import argparse
import sys
from stocktrack.config.config import SettingsManager
from stocktrack.utils.logger import setup_logger
from stocktrack.orchestrator.stock_workflow import StockWorkflow
from stocktrack.services.stock_view_service import ViewState
from stocktrack.utils.errors import StockTrackError
from loguru import logger


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Stock maintenance script")
    parser.add_argument(
        "--refresh",
        action="store_true",
        help="Recompute cached stock and quantity sold from the sales ledger"
    )
    parser.add_argument(
        "--sync-from-sales",
        action="store_true",
        help="Create products for sales that match no product"
    )
    parser.add_argument(
        "--export",
        type=str,
        default=None,
        metavar="PATH",
        help="Export the stock view to an Excel file"
    )
    parser.add_argument(
        "--as-of",
        type=str,
        default=None,
        metavar="DATE",
        help="Historical export date (YYYY-MM-DD)"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Dry run mode (don't save to database)"
    )
    return parser


def main(argv=None) -> bool:
    """Run the selected maintenance steps."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not (args.refresh or args.sync_from_sales or args.export):
        parser.error("nothing to do: use --refresh, --sync-from-sales or --export")
    if args.as_of and not args.export:
        parser.error("--as-of only applies to --export")

    settings = SettingsManager()

    # Setup logging
    setup_logger(log_file=settings.log_file, level=settings.log_level)

    logger.info("=" * 50)
    logger.info("Starting stock_scripts.py")
    logger.info("=" * 50)

    workflow = StockWorkflow(settings=settings)
    if not workflow.is_connected:
        logger.error("Supabase not connected, check SUPABASE_URL / SUPABASE_KEY")
        return False

    try:
        if args.sync_from_sales:
            logger.info("Mode: sync products from sales")
            if args.dry_run:
                logger.info("Dry run mode, nothing will be saved")
            products = workflow.sync_products_from_sales(dry_run=args.dry_run)
            for product in products:
                logger.info(f"  {product.name} ({product.category}) sold {product.quantity_sold}")

        if args.refresh:
            logger.info("Mode: refresh cached stock")
            workflow.refresh_derived_fields(dry_run=args.dry_run)

        if args.export:
            state = ViewState(date_end=args.as_of, items_per_page=settings.items_per_page)
            Path(args.export).parent.mkdir(parents=True, exist_ok=True)
            path, _ = workflow.export_stock(state, args.export)
            logger.success(f"Stock exported to {path}")

    except (StockTrackError, ValueError) as e:
        logger.error(f"stock_scripts.py failed: {e}")
        return False

    logger.success("stock_scripts.py finished")
    return True


if __name__ == "__main__":
    sys.exit(0 if main() else 1)

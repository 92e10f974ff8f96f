"""
Stock workflow orchestrator.
Coordinates the repositories with the reconciliation core for the API and CLI.
"""
from datetime import datetime
from typing import Any, BinaryIO, Dict, List, Optional, Sequence, Tuple, Union

from loguru import logger

from stocktrack.config.config import SettingsManager
from stocktrack.models.product import Product
from stocktrack.models.sale import Sale
from stocktrack.repositories.supabase_repository import ProductRepository, SaleRepository
from stocktrack.services import excel_service
from stocktrack.services.product_sync_service import (
    apply_initial_stock_change,
    build_products_from_sales,
    find_missing_products,
    product_from_form,
)
from stocktrack.services.reconciliation_service import needs_refresh, reconcile, refresh_product
from stocktrack.services.stock_view_service import (
    StockView,
    ViewState,
    apply_view,
    distinct_values,
    filter_sales,
)
from stocktrack.utils.dates import DateLike, parse_calendar_date
from stocktrack.utils.errors import ProductNotFoundError


class StockWorkflow:
    """
    Orchestrates stock operations.

    Every read operation loads a fresh snapshot of products and sales and
    recomputes derived stock; nothing derived is cached between calls.
    """

    def __init__(
        self,
        product_repo: Optional[ProductRepository] = None,
        sale_repo: Optional[SaleRepository] = None,
        settings: Optional[SettingsManager] = None,
    ):
        """
        Initialize stock workflow.

        Args:
            product_repo: Product repository (Supabase by default)
            sale_repo: Sales ledger repository (Supabase by default)
            settings: Settings (environment by default)
        """
        self.settings = settings or SettingsManager()
        self.product_repo = product_repo or ProductRepository(settings=self.settings)
        self.sale_repo = sale_repo or SaleRepository(client=self.product_repo.client, settings=self.settings)

    @property
    def is_connected(self) -> bool:
        return self.product_repo.is_connected and self.sale_repo.is_connected

    def load_ledger(self) -> Tuple[List[Product], List[Sale]]:
        """Load the current products and the full sales ledger."""
        products = self.product_repo.list_products()
        sales = self.sale_repo.list_sales()
        logger.info(f"Loaded {len(products)} product(s) and {len(sales)} sale(s)")
        return products, sales

    def get_stock_view(self, state: ViewState) -> StockView:
        """Filtered, sorted, paginated stock view with statistics."""
        products, sales = self.load_ledger()
        return apply_view(products, sales, state)

    def get_sales(self, state: ViewState) -> List[Sale]:
        """Ledger entries within the date range, register and seller of a view."""
        return filter_sales(self.sale_repo.list_sales(), state)

    def get_filter_options(self) -> Dict[str, List[str]]:
        products, sales = self.load_ledger()
        return distinct_values(products, sales)

    def get_product_stock(self, product_id: str, as_of: Optional[DateLike] = None) -> Dict[str, Any]:
        """
        Reconcile a single product, optionally as of a calendar day.

        Raises:
            ProductNotFoundError: If the id is unknown
            ValueError: If as_of is not a valid date
        """
        day = parse_calendar_date(as_of) if as_of else None
        product = self._get_existing(product_id)
        sales = self.sale_repo.list_sales()
        result = reconcile(product, sales, day)
        return {
            "product": product.to_dict(),
            "asOf": day.isoformat() if day else None,
            "reconciliation": result.to_dict(),
        }

    def refresh_derived_fields(self, dry_run: bool = False) -> int:
        """
        Recompute and persist the stock / quantitySold caches.

        Args:
            dry_run: Only report what would change

        Returns:
            Number of products whose cached fields were (or would be) updated
        """
        products, sales = self.load_ledger()
        changed = 0

        for product in products:
            refreshed = refresh_product(product, sales)
            if not needs_refresh(product, refreshed):
                continue

            changed += 1
            logger.info(
                f"{product.name}: stock {product.stock} -> {refreshed.stock}, "
                f"sold {product.quantity_sold} -> {refreshed.quantity_sold}"
            )
            if dry_run:
                continue
            self.product_repo.update_product(product.id, {
                "stock": refreshed.stock,
                "quantitySold": refreshed.quantity_sold,
            })

        if dry_run:
            logger.info(f"[DRY RUN] {changed} product(s) would be refreshed")
        else:
            logger.success(f"Refreshed {changed}/{len(products)} product(s)")
        return changed

    def find_missing_products(self) -> List[str]:
        products, sales = self.load_ledger()
        return find_missing_products(products, sales)

    def sync_products_from_sales(self, dry_run: bool = False) -> List[Product]:
        """
        Create products for sales that match no existing product.

        Returns:
            The created products (the would-be products in dry-run mode)
        """
        products, sales = self.load_ledger()
        candidates = build_products_from_sales(products, sales, self.settings.default_min_stock)

        if not candidates:
            logger.info("Sync complete - no new product to create")
            return []
        if dry_run:
            logger.info(f"[DRY RUN] {len(candidates)} product(s) would be created")
            return candidates

        created = self.product_repo.create_products(candidates)
        logger.success(f"{len(created)} new product(s) synchronized from sales")
        return created

    def update_initial_stock(self, product_id: str, new_initial_stock: int) -> Dict[str, int]:
        """
        Change a product's initial stock and its cached current stock.

        Raises:
            ProductNotFoundError: If the id is unknown
            ProductValidationError: If the value is negative
        """
        product = self._get_existing(product_id)
        updates = apply_initial_stock_change(product, new_initial_stock)
        if not self.product_repo.update_product(product_id, updates):
            raise RuntimeError(f"Failed to update initial stock of {product.name}")
        logger.success(f"Initial stock updated: {product.name} -> {new_initial_stock}")
        return updates

    def save_product(self, data: Dict[str, Any], product_id: Optional[str] = None) -> Product:
        """
        Create or update a product from a form payload.

        The derived stock / quantitySold are recomputed from the ledger before
        writing, so the stored caches always follow the new baseline.

        Raises:
            ProductValidationError: If the form is invalid
            ProductNotFoundError: If product_id is unknown
        """
        existing = self._get_existing(product_id) if product_id else None
        product = product_from_form(data, existing)
        product = refresh_product(product, self.sale_repo.list_sales())

        if existing is None:
            product = product.with_updates(created_at=datetime.now())
            created = self.product_repo.create_product(product)
            if created is None:
                raise RuntimeError(f"Failed to create product {product.name}")
            return created

        updates = product.to_dict()
        updates.pop("createdAt", None)
        if not self.product_repo.update_product(product_id, updates):
            raise RuntimeError(f"Failed to update product {product.name}")
        return product

    def delete_products(self, product_ids: Sequence[str]) -> bool:
        return self.product_repo.delete_products(product_ids)

    def import_sales(self, content: bytes) -> excel_service.ImportResult:
        """Append the sales of a workbook to the ledger."""
        result = excel_service.parse_sales_excel(content)
        if result.records:
            inserted = self.sale_repo.create_sales(result.records)
            if inserted < len(result.records):
                logger.warning(f"Only {inserted}/{len(result.records)} imported sale(s) were saved")
        return result

    def import_products(self, content: bytes) -> excel_service.ImportResult:
        """Create the products of a stock workbook, with caches computed from the ledger."""
        result = excel_service.parse_products_excel(content)
        if result.records:
            sales = self.sale_repo.list_sales()
            refreshed = [
                refresh_product(p, sales) if p.initial_stock_date else p
                for p in result.records
            ]
            result.records = self.product_repo.create_products(refreshed)
        return result

    def export_stock(self, state: ViewState, target: Union[str, BinaryIO, None] = None):
        """
        Export every line of a view (all pages) to Excel.

        Returns:
            (path or buffer, suggested filename)
        """
        view = self.get_stock_view(state)
        output = excel_service.export_stock_lines(view.lines, target)
        return output, excel_service.export_filename(view.as_of)

    def _get_existing(self, product_id: str) -> Product:
        product = self.product_repo.get_product(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        return product

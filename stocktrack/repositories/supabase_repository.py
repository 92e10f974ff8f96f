"""
Supabase repositories for products and the register sales ledger.
"""
from typing import Any, Dict, List, Optional, Sequence
from datetime import datetime
from loguru import logger
from supabase import create_client, Client

from stocktrack.config.config import SettingsManager
from stocktrack.models.product import Product
from stocktrack.models.sale import Sale
from stocktrack.utils.errors import RepositoryError
from stocktrack.utils.retry import retry_with_backoff


class SupabaseRepository:
    """
    Base repository holding the Supabase client.

    Environment variables:
        SUPABASE_URL: Supabase project URL
        SUPABASE_KEY: Supabase anon/service key
    """

    BATCH_SIZE = 100     # rows per insert request
    PAGE_SIZE = 1000     # rows per select request (PostgREST default cap)

    def __init__(self, client: Optional[Client] = None, settings: Optional[SettingsManager] = None):
        """
        Initialize the Supabase client.

        Args:
            client: Pre-built client (tests, scripts sharing one connection)
            settings: Settings; read from the environment when omitted
        """
        self.settings = settings or SettingsManager()
        self.client: Optional[Client] = client

        if self.client is not None:
            return

        if not self.settings.database_configured:
            logger.warning("Supabase credentials not configured")
            return

        try:
            self.client = create_client(self.settings.supabase_url, self.settings.supabase_key)
            logger.info("Supabase client initialized")
        except Exception as e:
            logger.error(f"Failed to initialize Supabase: {e}")

    @property
    def is_connected(self) -> bool:
        """Check if Supabase client is available."""
        return self.client is not None

    def _require_connection(self) -> None:
        if not self.is_connected:
            raise RepositoryError("Supabase not connected")

    @retry_with_backoff(max_retries=2, backoff_factor=0.5, reraise_as=RepositoryError)
    def _fetch_all(self, table: str, order_by: str) -> List[Dict[str, Any]]:
        """Page through a whole table with range(); id breaks ties so pages never overlap."""
        rows: List[Dict[str, Any]] = []
        start = 0
        while True:
            result = self.client.table(table) \
                .select("*") \
                .order(order_by) \
                .order("id") \
                .range(start, start + self.PAGE_SIZE - 1) \
                .execute()
            batch = result.data or []
            rows.extend(batch)
            if len(batch) < self.PAGE_SIZE:
                return rows
            start += self.PAGE_SIZE

    def _insert_batches(self, table: str, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Insert in batches; failed batches are logged and skipped."""
        inserted: List[Dict[str, Any]] = []
        for i in range(0, len(rows), self.BATCH_SIZE):
            batch = rows[i:i + self.BATCH_SIZE]
            try:
                result = self.client.table(table).insert(batch).execute()
                inserted.extend(result.data or [])
            except Exception as e:
                logger.error(f"Failed to insert {table} batch {i // self.BATCH_SIZE + 1}: {e}")
        return inserted


class ProductRepository(SupabaseRepository):
    """
    Product records.

    Tables:
        - products (camelCase columns, see models.db_models.ProductRecord)
    """

    @property
    def table(self) -> str:
        return self.settings.products_table

    def list_products(self) -> List[Product]:
        """
        Get every product, ordered by name.

        Raises:
            RepositoryError: If not connected or all attempts fail
        """
        self._require_connection()
        rows = self._fetch_all(self.table, order_by="name")

        products = []
        for row in rows:
            try:
                products.append(Product.from_record(row))
            except ValueError as e:
                logger.warning(f"Skipping product {row.get('id')}: {e}")
        logger.debug(f"Loaded {len(products)} product(s)")
        return products

    def get_product(self, product_id: str) -> Optional[Product]:
        """Get one product by id, or None."""
        self._require_connection()
        result = self.client.table(self.table) \
            .select("*") \
            .eq("id", product_id) \
            .limit(1) \
            .execute()
        return Product.from_record(result.data[0]) if result.data else None

    def create_product(self, product: Product) -> Optional[Product]:
        """
        Insert a product.

        Returns:
            The stored product (with its id) or None if failed
        """
        if not self.is_connected:
            logger.warning("Supabase not connected, skipping save")
            return None

        try:
            data = self._stamped(product.to_dict(), created=True)
            data.pop("id", None)
            result = self.client.table(self.table).insert(data).execute()
            if not result.data:
                logger.error(f"Failed to insert product {product.name}")
                return None
            created = Product.from_record(result.data[0])
            logger.success(f"Created product {created.id} ({created.name})")
            return created
        except Exception as e:
            logger.error(f"Failed to create product {product.name}: {e}")
            return None

    def create_products(self, products: Sequence[Product]) -> List[Product]:
        """Insert several products in batches."""
        if not self.is_connected:
            logger.warning("Supabase not connected, skipping save")
            return []

        rows = []
        for product in products:
            data = self._stamped(product.to_dict(), created=True)
            data.pop("id", None)
            rows.append(data)

        inserted = self._insert_batches(self.table, rows)
        logger.info(f"Created {len(inserted)}/{len(rows)} product(s)")
        return [Product.from_record(row) for row in inserted]

    def update_product(self, product_id: str, updates: Dict[str, Any]) -> bool:
        """
        Update fields of a product (camelCase keys).

        Returns:
            True if successful
        """
        if not self.is_connected:
            logger.warning("Supabase not connected, skipping update")
            return False

        try:
            data = self._stamped(dict(updates))
            data.pop("id", None)
            self.client.table(self.table) \
                .update(data) \
                .eq("id", product_id) \
                .execute()
            return True
        except Exception as e:
            logger.error(f"Failed to update product {product_id}: {e}")
            return False

    def delete_product(self, product_id: str) -> bool:
        """Delete one product."""
        return self.delete_products([product_id])

    def delete_products(self, product_ids: Sequence[str]) -> bool:
        """
        Delete several products.

        Returns:
            True if successful (an empty id list is a no-op)
        """
        if not product_ids:
            return True
        if not self.is_connected:
            logger.warning("Supabase not connected, skipping delete")
            return False

        try:
            self.client.table(self.table) \
                .delete() \
                .in_("id", list(product_ids)) \
                .execute()
            logger.info(f"Deleted {len(product_ids)} product(s)")
            return True
        except Exception as e:
            logger.error(f"Failed to delete products: {e}")
            return False

    @staticmethod
    def _stamped(data: Dict[str, Any], created: bool = False) -> Dict[str, Any]:
        now = datetime.now().isoformat()
        data["updatedAt"] = now
        if created and not data.get("createdAt"):
            data["createdAt"] = now
        return data


class SaleRepository(SupabaseRepository):
    """
    Register sales ledger (append-only).

    Tables:
        - register_sales (see models.db_models.RegisterSaleRecord)
    """

    @property
    def table(self) -> str:
        return self.settings.sales_table

    def list_sales(self) -> List[Sale]:
        """
        Get the full ledger, oldest first.

        Raises:
            RepositoryError: If not connected or all attempts fail
        """
        self._require_connection()
        rows = self._fetch_all(self.table, order_by="date")

        sales = []
        for row in rows:
            try:
                sales.append(Sale.from_record(row))
            except ValueError as e:
                logger.warning(f"Skipping sale {row.get('id')}: {e}")
        logger.debug(f"Loaded {len(sales)} sale(s)")
        return sales

    def create_sales(self, sales: Sequence[Sale]) -> int:
        """
        Append sales to the ledger.

        Returns:
            Number of rows inserted
        """
        if not self.is_connected:
            logger.warning("Supabase not connected, skipping save")
            return 0

        rows = []
        for sale in sales:
            data = sale.to_dict()
            data.pop("id", None)
            if not data.get("createdAt"):
                data["createdAt"] = datetime.now().isoformat()
            rows.append(data)

        inserted = self._insert_batches(self.table, rows)
        logger.info(f"Saved {len(inserted)}/{len(rows)} sale(s)")
        return len(inserted)

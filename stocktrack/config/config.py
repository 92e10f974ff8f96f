"""
Runtime settings, read from environment variables (.env supported).
"""
import os
from pathlib import Path

from dotenv import load_dotenv

_project_root = Path(__file__).resolve().parent.parent.parent
load_dotenv(_project_root / ".env")


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be an integer, got {raw!r}")


class SettingsManager:
    """
    Settings for the stock tracker.

    Environment variables:
        SUPABASE_URL / SUPABASE_KEY: hosted database credentials
        PRODUCTS_TABLE / SALES_TABLE: table names
        DEFAULT_MIN_STOCK: reorder threshold for products created from sales
        ITEMS_PER_PAGE: default page size of the stock view
        LOG_FILE / LOG_LEVEL: file sink settings
        PORT: API port
    """

    def __init__(self):
        self.supabase_url = os.getenv("SUPABASE_URL")
        self.supabase_key = os.getenv("SUPABASE_KEY")

        self.products_table = os.getenv("PRODUCTS_TABLE", "products")
        self.sales_table = os.getenv("SALES_TABLE", "register_sales")

        self.default_min_stock = _int_env("DEFAULT_MIN_STOCK", 5)
        self.items_per_page = _int_env("ITEMS_PER_PAGE", 50)

        self.log_file = os.getenv("LOG_FILE", "logs/stocktrack.log")
        self.log_level = os.getenv("LOG_LEVEL", "DEBUG")
        self.port = _int_env("PORT", 8080)

    @property
    def database_configured(self) -> bool:
        """True when both Supabase credentials are set."""
        return bool(self.supabase_url and self.supabase_key)

from .supabase_repository import SupabaseRepository, ProductRepository, SaleRepository

__all__ = [
    "SupabaseRepository",
    "ProductRepository",
    "SaleRepository",
]

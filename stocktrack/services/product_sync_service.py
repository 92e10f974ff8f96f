"""
Product maintenance: form validation, initial stock edits and creating
products for sales that match no existing product.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from loguru import logger

from stocktrack.models.product import Product
from stocktrack.models.sale import Sale
from stocktrack.services.matcher import normalize, product_key, sale_key
from stocktrack.utils.dates import parse_optional_datetime
from stocktrack.utils.errors import ProductValidationError


def validate_product(data: Dict[str, Any], require_initial_date: bool = True) -> Dict[str, str]:
    """
    Validate a product form payload (camelCase keys, as sent by the UI).

    Args:
        data: Form values
        require_initial_date: Whether initialStockDate must be present

    Returns:
        Mapping of field -> error message (empty when valid)
    """
    errors: Dict[str, str] = {}

    if not str(data.get("name") or "").strip():
        errors["name"] = "Product name is required"

    if not str(data.get("category") or "").strip():
        errors["category"] = "Category is required"

    for key, label in (("price", "Price"), ("initialStock", "Initial stock"), ("minStock", "Minimum stock")):
        value = data.get(key, 0)
        try:
            number = float(value if value is not None else 0)
        except (TypeError, ValueError):
            errors[key] = f"{label} must be a number"
            continue
        if number < 0:
            errors[key] = f"{label} must be zero or positive"

    raw_date = data.get("initialStockDate")
    if raw_date in (None, ""):
        if require_initial_date:
            errors["initialStockDate"] = "Initial stock date is required"
    else:
        try:
            parse_optional_datetime(raw_date)
        except ValueError:
            errors["initialStockDate"] = "Initial stock date is not a valid date"

    return errors


def product_from_form(data: Dict[str, Any], existing: Optional[Product] = None) -> Product:
    """
    Build a Product from a validated form payload.

    Raises:
        ProductValidationError: If the payload is invalid
    """
    errors = validate_product(data)
    if errors:
        raise ProductValidationError(errors)

    base = existing or Product(name="", category="")
    description = str(data.get("description") or "").strip()
    return base.with_updates(
        name=str(data["name"]).strip(),
        category=str(data["category"]).strip(),
        price=float(data.get("price") or 0),
        initial_stock=int(float(data.get("initialStock") or 0)),
        initial_stock_date=parse_optional_datetime(data.get("initialStockDate")),
        min_stock=int(float(data.get("minStock") or 0)),
        description=description or None,
    )


def apply_initial_stock_change(product: Product, new_initial_stock: int) -> Dict[str, int]:
    """
    Updates to persist when a user edits the initial stock inline.

    Returns:
        {"initialStock": ..., "stock": max(0, new_initial_stock - quantity_sold)}
    """
    if new_initial_stock < 0:
        raise ProductValidationError({"initialStock": "Initial stock must be zero or positive"})

    return {
        "initialStock": new_initial_stock,
        "stock": max(0, new_initial_stock - (product.quantity_sold or 0)),
    }


def find_missing_products(products: Sequence[Product], sales: Sequence[Sale]) -> List[str]:
    """
    Sale product names that no product carries (name only, normalized).

    Returns:
        Distinct names as first spelled in the ledger
    """
    known = {normalize(p.name) for p in products}
    missing: Dict[str, str] = {}
    for sale in sales:
        name = normalize(sale.product)
        if name not in known and name not in missing:
            missing[name] = sale.product.strip()
    return list(missing.values())


def build_products_from_sales(
    products: Sequence[Product],
    sales: Sequence[Sale],
    default_min_stock: int = 5,
    now: Optional[datetime] = None,
) -> List[Product]:
    """
    Create one product per unmatched (name, category) in the ledger.

    New products get the first spelling seen, the price of the most recent
    sale, no baseline (initial_stock 0) and the matched quantity as
    quantity_sold.
    """
    existing = {product_key(p) for p in products}
    grouped: Dict[tuple, List[Sale]] = {}
    for sale in sales:
        key = sale_key(sale)
        if key in existing:
            continue
        grouped.setdefault(key, []).append(sale)

    now = now or datetime.now()
    created = []
    for group in grouped.values():
        first = group[0]
        latest = max(group, key=lambda s: s.date)
        created.append(Product(
            name=first.product.strip(),
            category=first.category.strip(),
            price=latest.price,
            initial_stock=0,
            stock=0,
            min_stock=default_min_stock,
            quantity_sold=sum(s.quantity for s in group),
            description=None,
            created_at=now,
            updated_at=now,
        ))

    if created:
        logger.info(f"{len(created)} product(s) found in sales without a stock record")
    return created

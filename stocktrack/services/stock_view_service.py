"""
Stock view: filtering, sorting and pagination of reconciled products,
plus the per-screen view state store.

Everything here is a pure function of (products, sales, ViewState); the
only stateful object is ViewStateStore, which callers own explicitly.
"""
import math
from dataclasses import dataclass, field, fields, replace
from datetime import date
from typing import Any, Dict, List, Optional, Sequence

from loguru import logger

from stocktrack.models.product import Product
from stocktrack.models.sale import Sale
from stocktrack.models.stock import StockLine, StockStatistics
from stocktrack.services.matcher import product_key, sale_key
from stocktrack.services.reconciliation_service import reconcile
from stocktrack.services.statistics_service import aggregate
from stocktrack.utils.dates import end_of_day, parse_calendar_date, start_of_day

ALL = "all"

STATUS_FILTERS = (ALL, "in_stock", "low_stock", "out_of_stock")
STOCK_LEVEL_FILTERS = (ALL, "high", "medium", "low", "empty")
SORT_FIELDS = ("name", "category", "price", "stock", "min_stock", "quantity_sold", "revenue")
SORT_DIRECTIONS = ("asc", "desc")


@dataclass
class ViewState:
    """Filters, sort and pagination of one stock screen."""
    search_term: str = ""
    category: str = ALL
    status: str = ALL
    stock_level: str = ALL
    register: str = ALL
    seller: str = ALL
    date_start: Optional[str] = None
    date_end: Optional[str] = None
    sort_field: str = "name"
    sort_direction: str = "asc"
    page: int = 1
    items_per_page: int = 50

    def __post_init__(self):
        if self.status not in STATUS_FILTERS:
            raise ValueError(f"Unknown status filter: {self.status}")
        if self.stock_level not in STOCK_LEVEL_FILTERS:
            raise ValueError(f"Unknown stock level filter: {self.stock_level}")
        if self.sort_field not in SORT_FIELDS:
            raise ValueError(f"Unknown sort field: {self.sort_field}")
        if self.sort_direction not in SORT_DIRECTIONS:
            raise ValueError(f"Unknown sort direction: {self.sort_direction}")
        if self.items_per_page < 1:
            raise ValueError("items_per_page must be >= 1")
        # Malformed dates fail here, before any reconciliation runs
        for value in (self.date_start, self.date_end):
            if value:
                parse_calendar_date(value)

    @property
    def has_sales_filters(self) -> bool:
        return (
            self.register != ALL
            or self.seller != ALL
            or bool(self.date_start)
            or bool(self.date_end)
        )

    @property
    def has_active_filters(self) -> bool:
        return (
            bool(self.search_term)
            or self.category != ALL
            or self.status != ALL
            or self.stock_level != ALL
            or self.has_sales_filters
        )

    def cleared(self) -> 'ViewState':
        """Drop every filter, keep sort and page size, back to page 1."""
        return ViewState(
            sort_field=self.sort_field,
            sort_direction=self.sort_direction,
            items_per_page=self.items_per_page,
        )

    def to_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ViewState':
        """Build from query params / JSON; unknown keys are ignored."""
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known and v not in (None, "")}
        for int_field in ("page", "items_per_page"):
            if int_field in values:
                values[int_field] = int(values[int_field])
        return cls(**values)


@dataclass
class StockView:
    """Result of applying a ViewState."""
    lines: List[StockLine]
    page_lines: List[StockLine]
    page: int
    total_pages: int
    statistics: StockStatistics
    as_of: Optional[date] = None

    def to_dict(self) -> dict:
        return {
            "items": [line.to_dict() for line in self.page_lines],
            "page": self.page,
            "totalPages": self.total_pages,
            "totalItems": len(self.lines),
            "statistics": self.statistics.to_dict(),
            "asOf": self.as_of.isoformat() if self.as_of else None,
        }


def as_of_for(state: ViewState) -> Optional[date]:
    """Historical cutoff of a view: the range end, else the range start."""
    if state.date_end:
        return parse_calendar_date(state.date_end)
    if state.date_start:
        return parse_calendar_date(state.date_start)
    return None


def filter_sales(sales: Sequence[Sale], state: ViewState) -> List[Sale]:
    """Apply the date range (inclusive day boundaries), register and seller filters."""
    start = start_of_day(state.date_start) if state.date_start else None
    end = end_of_day(state.date_end) if state.date_end else None

    filtered = []
    for sale in sales:
        if start is not None and sale.date < start:
            continue
        if end is not None and sale.date > end:
            continue
        if state.register != ALL and sale.register != state.register:
            continue
        if state.seller != ALL and sale.seller != state.seller:
            continue
        filtered.append(sale)
    return filtered


def build_stock_lines(
    products: Sequence[Product],
    sales: Sequence[Sale],
    as_of: Optional[date] = None,
    revenue_sales: Optional[Sequence[Sale]] = None,
) -> List[StockLine]:
    """
    Reconcile every product for the view.

    Args:
        products: Products to display
        sales: Full ledger (reconciliation always sees every sale)
        as_of: Historical cutoff, or None for current stock
        revenue_sales: Sales counted in each line's revenue (defaults to `sales`)
    """
    revenue_by_key: Dict[tuple, float] = {}
    for sale in (sales if revenue_sales is None else revenue_sales):
        key = sale_key(sale)
        revenue_by_key[key] = revenue_by_key.get(key, 0.0) + sale.total

    lines = []
    for product in products:
        result = reconcile(product, sales, as_of)
        lines.append(StockLine(
            product=product,
            stock=result.stock,
            quantity_sold=result.quantity_sold,
            is_historical=result.is_historical,
            has_early_sales=result.has_early_sales,
            early_sales_quantity=result.early_sales_quantity,
            revenue=revenue_by_key.get(product_key(product), 0.0),
        ))
    return lines


def _matches_search(line: StockLine, term: str) -> bool:
    term = term.lower()
    return (
        term in line.name.lower()
        or term in line.category.lower()
        or (line.description is not None and term in line.description.lower())
    )


def _matches_status(line: StockLine, status: str) -> bool:
    if status == ALL:
        return True
    return line.stock_status.value == status


def _matches_stock_level(line: StockLine, level: str) -> bool:
    stock = line.stock
    if level == "high":
        return stock > 100
    if level == "medium":
        return 10 <= stock <= 100
    if level == "low":
        return 0 < stock < 10
    if level == "empty":
        return stock == 0
    return True


def _sort_value(line: StockLine, sort_field: str):
    value = getattr(line, sort_field)
    if isinstance(value, str):
        return value.lower()
    return value if value is not None else 0


def sort_lines(lines: List[StockLine], sort_field: str, direction: str) -> List[StockLine]:
    """Stable sort; strings compare case-insensitively, `stock` uses the display stock."""
    return sorted(lines, key=lambda line: _sort_value(line, sort_field), reverse=(direction == "desc"))


def total_pages_for(count: int, items_per_page: int) -> int:
    return math.ceil(count / items_per_page)


def clamp_page(page: int, total_pages: int) -> int:
    """Keep a requested page within [1, total_pages]."""
    return max(1, min(page, total_pages))


def paginate(lines: Sequence[StockLine], page: int, items_per_page: int) -> List[StockLine]:
    start = (page - 1) * items_per_page
    return list(lines[start:start + items_per_page])


def apply_view(products: Sequence[Product], sales: Sequence[Sale], state: ViewState) -> StockView:
    """
    Build the stock view for a screen.

    Steps:
        1. Reconcile every product (historical when a date range is set)
        2. With sales filters active, keep products sold within them
        3. Search, category, status and stock-level filters on display stock
        4. Sort, then paginate
        5. Statistics over all filtered lines (not just the current page)
    """
    as_of = as_of_for(state)
    filtered_sales = filter_sales(sales, state) if state.has_sales_filters else list(sales)

    lines = build_stock_lines(products, sales, as_of, revenue_sales=filtered_sales)

    if state.has_sales_filters:
        sold_keys = {sale_key(sale) for sale in filtered_sales}
        lines = [line for line in lines if product_key(line.product) in sold_keys]

    if state.search_term:
        lines = [line for line in lines if _matches_search(line, state.search_term)]
    if state.category != ALL:
        lines = [line for line in lines if line.category == state.category]
    lines = [line for line in lines if _matches_status(line, state.status)]
    lines = [line for line in lines if _matches_stock_level(line, state.stock_level)]

    lines = sort_lines(lines, state.sort_field, state.sort_direction)

    total_pages = total_pages_for(len(lines), state.items_per_page)
    page = clamp_page(state.page, total_pages)

    logger.debug(
        f"Stock view: {len(lines)}/{len(products)} products, page {page}/{total_pages}"
        + (f", as of {as_of.isoformat()}" if as_of else "")
    )

    return StockView(
        lines=lines,
        page_lines=paginate(lines, page, state.items_per_page),
        page=page,
        total_pages=total_pages,
        statistics=aggregate(lines),
        as_of=as_of,
    )


def distinct_values(products: Sequence[Product], sales: Sequence[Sale]) -> Dict[str, List[str]]:
    """Options for the category/register/seller selectors, first-seen order."""
    def unique(values) -> List[str]:
        return list(dict.fromkeys(v for v in values if v))

    return {
        "categories": unique(p.category for p in products),
        "registers": unique(s.register for s in sales),
        "sellers": unique(s.seller for s in sales),
    }


@dataclass
class ViewStateStore:
    """
    Per-screen view state, saved and restored by screen identifier.

    Restored states are copies: mutating one does not change the store.
    """
    default_items_per_page: int = 50
    _states: Dict[str, ViewState] = field(default_factory=dict)

    def save(self, screen: str, state: ViewState) -> None:
        self._states[screen] = replace(state)

    def restore(self, screen: str) -> ViewState:
        state = self._states.get(screen)
        if state is None:
            return ViewState(items_per_page=self.default_items_per_page)
        return replace(state)

    def reset(self, screen: str) -> None:
        self._states.pop(screen, None)

    def screens(self) -> List[str]:
        return list(self._states)

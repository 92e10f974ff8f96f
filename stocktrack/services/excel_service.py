"""
Excel export of stock views and Excel import of products / sales.
"""
import io
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, BinaryIO, Callable, Dict, List, Optional, Sequence, Union

import pandas as pd
from loguru import logger
from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill

from stocktrack.models.product import Product
from stocktrack.models.sale import Sale
from stocktrack.models.stock import StockLine
from stocktrack.utils.dates import parse_datetime, parse_optional_datetime

EXPORT_COLUMNS = [
    "Name",
    "Category",
    "Price",
    "Stock",
    "Current Stock",
    "Min Stock",
    "Quantity Sold",
    "Total Sold",
    "Revenue",
    "Historical View",
    "Early Sales",
    "Description",
]

# Import headers (English and French exports) -> field name
PRODUCT_COLUMN_MAPPING = {
    "name": "name",
    "nom": "name",
    "produit": "name",
    "product": "name",
    "category": "category",
    "catégorie": "category",
    "categorie": "category",
    "price": "price",
    "prix": "price",
    "stock": "stock",
    "initial stock": "initial_stock",
    "stock initial": "initial_stock",
    "initial stock date": "initial_stock_date",
    "date stock initial": "initial_stock_date",
    "min stock": "min_stock",
    "stock minimum": "min_stock",
    "description": "description",
}

SALE_COLUMN_MAPPING = {
    "product": "product",
    "produit": "product",
    "category": "category",
    "catégorie": "category",
    "categorie": "category",
    "register": "register",
    "caisse": "register",
    "date": "date",
    "seller": "seller",
    "vendeur": "seller",
    "quantity": "quantity",
    "quantité": "quantity",
    "quantite": "quantity",
    "price": "price",
    "prix": "price",
    "total": "total",
}


@dataclass
class ImportResult:
    """Parsed records plus the rows that could not be imported."""
    records: List[Any] = field(default_factory=list)
    errors: List[Dict[str, Any]] = field(default_factory=list)
    skipped: int = 0

    def to_dict(self) -> dict:
        return {
            "imported": len(self.records),
            "skipped": self.skipped,
            "errors": self.errors,
        }


def export_filename(as_of: Optional[date] = None, today: Optional[date] = None) -> str:
    """stock-YYYY-MM-DD.xlsx, dated by the as-of day when the view is historical."""
    day = as_of or today or date.today()
    return f"stock-{day.strftime('%Y-%m-%d')}.xlsx"


def stock_line_rows(lines: Sequence[StockLine]) -> List[Dict[str, Any]]:
    """One export row per stock line, keyed by EXPORT_COLUMNS."""
    return [
        {
            "Name": line.name,
            "Category": line.category,
            "Price": line.price,
            "Stock": line.stock,
            "Current Stock": line.current_stock,
            "Min Stock": line.min_stock,
            "Quantity Sold": line.quantity_sold,
            "Total Sold": line.current_quantity_sold,
            "Revenue": line.revenue,
            "Historical View": "Yes" if line.is_historical else "No",
            "Early Sales": line.early_sales_quantity,
            "Description": line.description or "",
        }
        for line in lines
    ]


def export_stock_lines(
    lines: Sequence[StockLine],
    target: Union[str, BinaryIO, None] = None,
    sheet_title: str = "Stock",
) -> Union[str, io.BytesIO]:
    """
    Write stock lines to an .xlsx workbook.

    Args:
        lines: Lines to export (already filtered/sorted)
        target: File path or binary buffer; a new BytesIO when omitted
        sheet_title: Worksheet name

    Returns:
        The path, or the buffer rewound to position 0
    """
    wb = Workbook()
    ws = wb.active
    ws.title = sheet_title

    ws.append(EXPORT_COLUMNS)
    for cell in ws[1]:
        cell.font = Font(bold=True, color="FFFFFF")
        cell.fill = PatternFill("solid", fgColor="1F4E78")
        cell.alignment = Alignment(horizontal="center", vertical="center")
    ws.freeze_panes = "A2"

    for row in stock_line_rows(lines):
        ws.append([row[column] for column in EXPORT_COLUMNS])

    _auto_adjust_widths(ws)

    output = target if target is not None else io.BytesIO()
    wb.save(output)
    if isinstance(output, io.BytesIO):
        output.seek(0)

    logger.info(f"Exported {len(lines)} stock line(s)")
    return output


def _auto_adjust_widths(sheet) -> None:
    # Min width 10, max 50, padding +2
    for column_cells in sheet.columns:
        longest = max((len(str(cell.value)) for cell in column_cells if cell.value is not None), default=0)
        sheet.column_dimensions[column_cells[0].column_letter].width = min(max(longest + 2, 10), 50)


def _read_excel(content: Union[bytes, str], mapping: Dict[str, str], required: Sequence[str]) -> pd.DataFrame:
    source = io.BytesIO(content) if isinstance(content, (bytes, bytearray)) else content
    df = pd.read_excel(source)

    df.columns = [str(c).strip().lower() for c in df.columns]
    df = df.rename(columns={c: mapping[c] for c in df.columns if c in mapping})

    missing = [col for col in required if col not in df.columns]
    if missing:
        raise ValueError(f"Excel is missing required columns: {missing}")

    logger.info(f"Read {len(df)} row(s), columns: {list(df.columns)}")
    return df


def _clean(val) -> Optional[Any]:
    if val is None or val is pd.NaT:
        return None
    if not isinstance(val, (str, datetime, date)) and pd.isna(val):
        return None
    if isinstance(val, str):
        val = val.strip()
        return val or None
    return val


def _to_int(val, default: int = 0) -> int:
    val = _clean(val)
    if val is None:
        return default
    return int(float(val))


def _to_float(val, default: float = 0.0) -> float:
    val = _clean(val)
    if val is None:
        return default
    return float(val)


def _parse_rows(df: pd.DataFrame, name_field: str, build: Callable[[Dict[str, Any]], Any]) -> ImportResult:
    result = ImportResult()
    for idx, row in df.iterrows():
        row_number = idx + 2  # header is row 1
        data = {k: _clean(v) for k, v in row.to_dict().items()}
        if not data.get(name_field):
            result.skipped += 1
            continue
        try:
            result.records.append(build(data))
        except (ValueError, TypeError) as e:
            logger.warning(f"Row {row_number} not imported: {e}")
            result.errors.append({"row": row_number, "error": str(e)})
    return result


def parse_products_excel(content: Union[bytes, str], now: Optional[datetime] = None) -> ImportResult:
    """
    Parse a stock import workbook into Products.

    A row without "Initial Stock" uses its "Stock" as the baseline; without
    "Stock" the baseline is also the current stock.
    """
    df = _read_excel(content, PRODUCT_COLUMN_MAPPING, required=("name", "category"))
    now = now or datetime.now()

    def build(data: Dict[str, Any]) -> Product:
        stock = _to_int(data.get("stock"))
        initial_stock = _to_int(data.get("initial_stock"), default=stock)
        if data.get("stock") is None:
            stock = initial_stock
        if min(stock, initial_stock) < 0:
            raise ValueError("Stock values must be zero or positive")
        price = _to_float(data.get("price"))
        if price < 0:
            raise ValueError("Price must be zero or positive")
        return Product(
            name=str(data["name"]),
            category=str(data.get("category") or ""),
            price=price,
            initial_stock=initial_stock,
            initial_stock_date=parse_optional_datetime(_date_text(data.get("initial_stock_date"))),
            stock=stock,
            min_stock=_to_int(data.get("min_stock")),
            description=data.get("description"),
            created_at=now,
            updated_at=now,
        )

    result = _parse_rows(df, "name", build)
    logger.success(f"Parsed {len(result.records)} product(s), {len(result.errors)} error(s)")
    return result


def parse_sales_excel(content: Union[bytes, str], now: Optional[datetime] = None) -> ImportResult:
    """Parse a register sales workbook into Sales; a missing total is price x quantity."""
    df = _read_excel(content, SALE_COLUMN_MAPPING, required=("product", "category", "date", "quantity"))
    now = now or datetime.now()

    def build(data: Dict[str, Any]) -> Sale:
        if data.get("date") is None:
            raise ValueError("Missing sale date")
        quantity = _to_int(data.get("quantity"))
        price = _to_float(data.get("price"))
        total = data.get("total")
        return Sale(
            product=str(data["product"]),
            category=str(data.get("category") or ""),
            date=parse_datetime(_date_text(data["date"])),
            quantity=quantity,
            price=price,
            total=_to_float(total) if total is not None else price * quantity,
            register=_optional_text(data.get("register")),
            seller=_optional_text(data.get("seller")),
            created_at=now,
        )

    result = _parse_rows(df, "product", build)
    logger.success(f"Parsed {len(result.records)} sale(s), {len(result.errors)} error(s)")
    return result


def _date_text(val):
    # Excel sometimes stores 20240131 as a number
    if isinstance(val, (int, float)) and not isinstance(val, bool):
        return str(int(val))
    return val


def _optional_text(val) -> Optional[str]:
    return str(val) if val is not None else None

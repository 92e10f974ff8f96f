"""
Flask application for the sales & stock tracker.

JSON API over the stock views, product maintenance and the sales ledger.
Every request builds its own workflow; the only process-level state is the
per-screen view state store.
"""
from flask import Flask, jsonify, request, send_file
from flask_cors import CORS

from stocktrack.config.config import SettingsManager
from stocktrack.orchestrator.stock_workflow import StockWorkflow
from stocktrack.services.stock_view_service import ViewState, ViewStateStore
from stocktrack.utils.errors import ProductNotFoundError, ProductValidationError
from stocktrack.utils.logger import setup_logger
from loguru import logger

settings = SettingsManager()

# Setup logging
setup_logger(log_file=settings.log_file, level=settings.log_level)

app = Flask(__name__)
CORS(app)  # Enable CORS for frontend

view_states = ViewStateStore(default_items_per_page=settings.items_per_page)

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def get_workflow() -> StockWorkflow:
    """Workflow for the current request."""
    return StockWorkflow(settings=settings)


def _error_response(e: Exception):
    """Map an exception raised inside a route to a JSON error response."""
    if isinstance(e, ProductValidationError):
        return jsonify({
            "success": False,
            "error": str(e),
            "errors": e.errors
        }), 400
    if isinstance(e, ProductNotFoundError):
        return jsonify({
            "success": False,
            "error": str(e)
        }), 404
    if isinstance(e, (ValueError, TypeError)):
        return jsonify({
            "success": False,
            "error": str(e)
        }), 400

    logger.exception(f"{request.method} {request.path} failed: {e}")
    return jsonify({
        "success": False,
        "error": str(e)
    }), 500


def _view_state_from_request() -> ViewState:
    """
    ViewState from query params.

    With `screen`, the params are applied on top of that screen's saved state
    and the result is saved back.
    """
    params = request.args.to_dict()
    screen = params.pop("screen", None)

    if not screen:
        return ViewState.from_dict({"items_per_page": settings.items_per_page, **params})

    values = view_states.restore(screen).to_dict()
    values.update(params)
    state = ViewState.from_dict(values)
    view_states.save(screen, state)
    return state


def _uploaded_content() -> bytes:
    upload = request.files.get("file")
    if upload is None or not upload.filename:
        raise ValueError("An Excel file is required (form field 'file')")
    return upload.read()


@app.route("/health", methods=["GET"])
def health_check():
    """Health check endpoint."""
    return jsonify({"status": "healthy"}), 200


@app.route("/", methods=["GET"])
def index():
    """Root endpoint."""
    return jsonify({
        "service": "Sales & Stock Tracker API",
        "status": "running",
        "endpoints": {
            "/health": "Health check",
            "/api/stock": "Stock view (filters, sort, pagination, as-of date)",
            "/api/stock/statistics": "Statistics of a stock view",
            "/api/stock/filters": "Category / register / seller options",
            "/api/stock/export": "Export a stock view to Excel",
            "/api/products": "List / create products",
            "/api/products/<id>": "Update / delete a product",
            "/api/products/<id>/stock": "Current or historical stock of one product",
            "/api/products/<id>/initial-stock": "Edit initial stock",
            "/api/products/bulk-delete": "Delete several products",
            "/api/products/sync-from-sales": "Create products found only in sales",
            "/api/products/missing": "Sale product names without a product",
            "/api/products/refresh": "Recompute cached stock / quantity sold",
            "/api/products/import": "Import products from Excel",
            "/api/sales": "List sales (date range, register, seller)",
            "/api/sales/import": "Import register sales from Excel",
            "/api/view-state/<screen>": "Get / save / reset a screen's view state",
        }
    }), 200


# ===========================================
# Stock API Endpoints
# ===========================================

@app.route("/api/stock", methods=["GET"])
def get_stock():
    """
    Get a page of the stock view.

    Query params:
        search_term, category, status, stock_level, register, seller,
        date_start, date_end (YYYY-MM-DD), sort_field, sort_direction,
        page, items_per_page, screen (restore/save that screen's state)

    Returns:
        JSON with page items, pagination and statistics
    """
    try:
        state = _view_state_from_request()
        view = get_workflow().get_stock_view(state)

        return jsonify({
            "success": True,
            "data": view.to_dict(),
            "viewState": state.to_dict()
        }), 200

    except Exception as e:
        return _error_response(e)


@app.route("/api/stock/statistics", methods=["GET"])
def get_stock_statistics():
    """Statistics over every line of a stock view (same params as /api/stock)."""
    try:
        state = _view_state_from_request()
        view = get_workflow().get_stock_view(state)

        return jsonify({
            "success": True,
            "data": view.statistics.to_dict()
        }), 200

    except Exception as e:
        return _error_response(e)


@app.route("/api/stock/filters", methods=["GET"])
def get_stock_filters():
    """Options for the category, register and seller selectors."""
    try:
        return jsonify({
            "success": True,
            "data": get_workflow().get_filter_options()
        }), 200

    except Exception as e:
        return _error_response(e)


@app.route("/api/stock/export", methods=["GET"])
def export_stock():
    """
    Export all lines of a stock view (not just one page) to .xlsx.

    Returns:
        The workbook as an attachment named stock-YYYY-MM-DD.xlsx
    """
    try:
        state = _view_state_from_request()
        buffer, filename = get_workflow().export_stock(state)

        return send_file(
            buffer,
            mimetype=XLSX_MIMETYPE,
            as_attachment=True,
            download_name=filename
        )

    except Exception as e:
        return _error_response(e)


# ===========================================
# Product API Endpoints
# ===========================================

@app.route("/api/products", methods=["GET"])
def get_products():
    """Get all products with their stored values."""
    try:
        products = get_workflow().product_repo.list_products()

        return jsonify({
            "success": True,
            "data": [p.to_dict() for p in products],
            "count": len(products)
        }), 200

    except Exception as e:
        return _error_response(e)


@app.route("/api/products", methods=["POST"])
def create_product():
    """
    Create a product.

    Body JSON:
        name, category, price, initialStock, initialStockDate, minStock,
        description
    """
    try:
        data = request.get_json(silent=True) or {}
        product = get_workflow().save_product(data)

        return jsonify({
            "success": True,
            "data": product.to_dict(),
            "message": f"Product {product.name} created"
        }), 201

    except Exception as e:
        return _error_response(e)


@app.route("/api/products/<product_id>", methods=["PUT"])
def update_product(product_id):
    """Update a product (same body as POST /api/products)."""
    try:
        data = request.get_json(silent=True) or {}
        product = get_workflow().save_product(data, product_id=product_id)

        return jsonify({
            "success": True,
            "data": product.to_dict(),
            "message": f"Product {product.name} updated"
        }), 200

    except Exception as e:
        return _error_response(e)


@app.route("/api/products/<product_id>", methods=["DELETE"])
def delete_product(product_id):
    """Delete a product."""
    try:
        success = get_workflow().delete_products([product_id])

        return jsonify({
            "success": success,
            "message": "Product deleted" if success else "Failed to delete product"
        }), 200 if success else 500

    except Exception as e:
        return _error_response(e)


@app.route("/api/products/bulk-delete", methods=["POST"])
def bulk_delete_products():
    """
    Delete several products.

    Body JSON:
        ids: List of product ids
    """
    try:
        data = request.get_json(silent=True) or {}
        ids = data.get("ids")
        if not isinstance(ids, list) or not ids:
            return jsonify({
                "success": False,
                "error": "ids must be a non-empty list"
            }), 400

        success = get_workflow().delete_products(ids)

        return jsonify({
            "success": success,
            "deleted_count": len(ids) if success else 0
        }), 200 if success else 500

    except Exception as e:
        return _error_response(e)


@app.route("/api/products/<product_id>/stock", methods=["GET"])
def get_product_stock(product_id):
    """
    Current or historical stock of one product.

    Query params:
        as_of: Calendar date YYYY-MM-DD (optional)
    """
    try:
        as_of = request.args.get("as_of") or None
        data = get_workflow().get_product_stock(product_id, as_of)

        return jsonify({
            "success": True,
            "data": data
        }), 200

    except Exception as e:
        return _error_response(e)


@app.route("/api/products/<product_id>/initial-stock", methods=["PUT"])
def update_initial_stock(product_id):
    """
    Edit the initial stock of a product.

    Body JSON:
        initialStock: New initial stock (integer >= 0)
    """
    try:
        data = request.get_json(silent=True) or {}
        raw = data.get("initialStock")
        # 12 and 12.0 are accepted; 3.7, "12", true and null are not
        if isinstance(raw, float) and raw.is_integer():
            raw = int(raw)
        if isinstance(raw, bool) or not isinstance(raw, int):
            raise ValueError("initialStock must be an integer")
        updates = get_workflow().update_initial_stock(product_id, raw)

        return jsonify({
            "success": True,
            "data": updates
        }), 200

    except Exception as e:
        return _error_response(e)


@app.route("/api/products/missing", methods=["GET"])
def get_missing_products():
    """Sale product names that no product carries."""
    try:
        names = get_workflow().find_missing_products()

        return jsonify({
            "success": True,
            "data": names,
            "count": len(names)
        }), 200

    except Exception as e:
        return _error_response(e)


@app.route("/api/products/sync-from-sales", methods=["POST"])
def sync_products_from_sales():
    """
    Create products for sales matching no product.

    Query params:
        dry_run: If true, don't save to database (default: false)
    """
    try:
        dry_run = request.args.get("dry_run", "false").lower() == "true"
        products = get_workflow().sync_products_from_sales(dry_run=dry_run)

        return jsonify({
            "success": True,
            "data": [p.to_dict() for p in products],
            "created_count": 0 if dry_run else len(products),
            "dry_run": dry_run
        }), 200

    except Exception as e:
        return _error_response(e)


@app.route("/api/products/refresh", methods=["POST"])
def refresh_products():
    """
    Recompute the cached stock / quantitySold of every product.

    Query params:
        dry_run: If true, only count the products that would change
    """
    try:
        dry_run = request.args.get("dry_run", "false").lower() == "true"
        count = get_workflow().refresh_derived_fields(dry_run=dry_run)

        return jsonify({
            "success": True,
            "updated_count": count,
            "dry_run": dry_run
        }), 200

    except Exception as e:
        return _error_response(e)


@app.route("/api/products/import", methods=["POST"])
def import_products():
    """Import products from an uploaded Excel file (form field `file`)."""
    try:
        result = get_workflow().import_products(_uploaded_content())

        return jsonify({
            "success": True,
            "data": result.to_dict()
        }), 200

    except Exception as e:
        return _error_response(e)


# ===========================================
# Sales API Endpoints
# ===========================================

@app.route("/api/sales", methods=["GET"])
def get_sales():
    """
    Get ledger entries.

    Query params:
        date_start, date_end (YYYY-MM-DD, inclusive), register, seller
    """
    try:
        state = ViewState.from_dict(request.args.to_dict())
        sales = get_workflow().get_sales(state)

        return jsonify({
            "success": True,
            "data": [s.to_dict() for s in sales],
            "count": len(sales)
        }), 200

    except Exception as e:
        return _error_response(e)


@app.route("/api/sales/import", methods=["POST"])
def import_sales():
    """Import register sales from an uploaded Excel file (form field `file`)."""
    try:
        result = get_workflow().import_sales(_uploaded_content())

        return jsonify({
            "success": True,
            "data": result.to_dict()
        }), 200

    except Exception as e:
        return _error_response(e)


# ===========================================
# View State API Endpoints
# ===========================================

@app.route("/api/view-state/<screen>", methods=["GET"])
def get_view_state(screen):
    """Saved view state of a screen (defaults when none saved)."""
    return jsonify({
        "success": True,
        "data": view_states.restore(screen).to_dict()
    }), 200


@app.route("/api/view-state/<screen>", methods=["PUT"])
def save_view_state(screen):
    """Save a screen's view state (body JSON uses ViewState field names)."""
    try:
        data = request.get_json(silent=True) or {}
        state = ViewState.from_dict({"items_per_page": settings.items_per_page, **data})
        view_states.save(screen, state)

        return jsonify({
            "success": True,
            "data": state.to_dict()
        }), 200

    except Exception as e:
        return _error_response(e)


@app.route("/api/view-state/<screen>", methods=["DELETE"])
def reset_view_state(screen):
    """Forget a screen's view state."""
    view_states.reset(screen)
    return jsonify({
        "success": True,
        "message": f"View state of {screen} reset"
    }), 200


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=settings.port)

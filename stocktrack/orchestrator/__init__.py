from stocktrack.orchestrator.stock_workflow import StockWorkflow

__all__ = ["StockWorkflow"]

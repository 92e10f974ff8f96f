"""
SQLAlchemy models for the products and register_sales tables.
Used by the Alembic migrations; runtime access goes through Supabase.
"""
from datetime import datetime
from sqlalchemy import Column, String, Float, Integer, DateTime, Text, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import declarative_base
import uuid

Base = declarative_base()


class ProductRecord(Base):
    """Inventory product with its declared baseline and cached derived fields."""

    __tablename__ = 'products'

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False, index=True)
    category = Column(String, nullable=False, index=True)
    price = Column(Float, nullable=False, default=0)
    initialStock = Column(Integer, nullable=False, default=0)
    initialStockDate = Column(DateTime, nullable=True)   # absent = no time boundary
    stock = Column(Integer, nullable=False, default=0)   # cache, see reconciliation_service
    minStock = Column(Integer, nullable=False, default=0)
    quantitySold = Column(Integer, nullable=False, default=0)  # cache
    description = Column(Text, nullable=True)
    createdAt = Column(DateTime, default=datetime.utcnow)
    updatedAt = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        CheckConstraint('price >= 0', name='ck_products_price_non_negative'),
        CheckConstraint('"initialStock" >= 0', name='ck_products_initial_stock_non_negative'),
        CheckConstraint('"minStock" >= 0', name='ck_products_min_stock_non_negative'),
    )

    def __repr__(self):
        return f"<ProductRecord(name={self.name}, category={self.category}, stock={self.stock})>"


class RegisterSaleRecord(Base):
    """Append-only sales ledger entry."""

    __tablename__ = 'register_sales'

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    product = Column(String, nullable=False, index=True)
    category = Column(String, nullable=False, index=True)
    register = Column(String, nullable=True, index=True)
    seller = Column(String, nullable=True, index=True)
    date = Column(DateTime, nullable=False, index=True)
    quantity = Column(Integer, nullable=False, default=0)
    price = Column(Float, nullable=False, default=0)
    total = Column(Float, nullable=False, default=0)
    createdAt = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        CheckConstraint('quantity >= 0', name='ck_register_sales_quantity_non_negative'),
    )

    def __repr__(self):
        return f"<RegisterSaleRecord(date={self.date}, product={self.product}, qty={self.quantity})>"

from .inventory import Product, StockAdjustment, ADJUSTMENT_ADD, ADJUSTMENT_REDUCE, ADJUSTMENT_TYPES
from .sales import Sale, SaleItem

__all__ = [
    'Product', 'StockAdjustment',
    'ADJUSTMENT_ADD', 'ADJUSTMENT_REDUCE', 'ADJUSTMENT_TYPES',
    'Sale', 'SaleItem',
]

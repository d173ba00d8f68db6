"""
Domain Layer - Business Entities

This layer contains Pydantic models representing business entities.
These models enforce type safety and validation across the application.

Author: TM3
"""
from comanda.domain.inventory import Category, InventoryItem, TodoItem, Transaction, TransactionType, stock_level
from comanda.domain.order import Order, OrderItemsView, OrderLine, OrderProductGroup
from comanda.domain.product import Product

__all__ = [
    'Category',
    'InventoryItem',
    'TodoItem',
    'Transaction',
    'TransactionType',
    'stock_level',
    'Order',
    'OrderItemsView',
    'OrderLine',
    'OrderProductGroup',
    'Product',
]

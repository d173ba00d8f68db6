"""
Repository Layer - Data Access

This layer handles all database queries and returns domain models.
Repositories abstract away SQL details from business logic.

Author: TM3
"""
from comanda.repositories.inventory_repository import InventoryRepository
from comanda.repositories.item_repository import ItemRepository
from comanda.repositories.mercadopago_repository import MercadoPagoRepository
from comanda.repositories.order_repository import OrderRepository
from comanda.repositories.product_repository import ProductRepository

__all__ = [
    'InventoryRepository',
    'ItemRepository',
    'MercadoPagoRepository',
    'OrderRepository',
    'ProductRepository',
]

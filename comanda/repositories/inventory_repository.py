"""
Inventory Repository - Data Access Layer for the inventory ledger

Categories, inventory items and their transactions. Transactions are an
append-only ledger; this repository only reads it.

Author: TM3
"""
from typing import List, Optional

from comanda.core.database import get_db_connection_dict
from comanda.domain.inventory import Category, InventoryItem, Transaction


class InventoryRepository:
    """
    Repository for inventory data access

    All SQL queries for categories, items and transactions are centralized here.
    """

    def get_categories(self) -> List[Category]:
        """
        Get all categories

        Returns:
            List of categories ordered by name
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT id, name, tenant_id, created
                FROM categories
                WHERE deleted IS NULL
                ORDER BY name
            """)
            return [Category(**row) for row in cursor.fetchall()]

        finally:
            cursor.close()
            conn.close()

    def get_items(self, category: Optional[str] = None) -> List[InventoryItem]:
        """
        Get inventory items with their current stock

        Stock is the sum of signed ledger deltas (IN adds, OUT subtracts).

        Args:
            category: Only items linked to this category ID

        Returns:
            List of inventory items ordered by name
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            conditions = ["i.deleted IS NULL"]
            params = []

            if category:
                conditions.append("""EXISTS (
                    SELECT 1 FROM category_inventory_item ci
                    WHERE ci.item_id = i.id AND ci.category_id = %s
                )""")
                params.append(category)

            where_clause = " AND ".join(conditions)

            cursor.execute(f"""
                SELECT
                    i.id, i.name, i.status, i.quantity_type_key, i.min_stock, i.created,
                    COALESCE(SUM(
                        CASE WHEN t.type = 'IN' THEN t.quantity ELSE -t.quantity END
                    ), 0) AS stock
                FROM inventory_items i
                LEFT JOIN transactions t ON t.item_id = i.id
                WHERE {where_clause}
                GROUP BY i.id
                ORDER BY i.name
            """, params)

            return [InventoryItem(**row) for row in cursor.fetchall()]

        finally:
            cursor.close()
            conn.close()

    def get_transactions(self, item_id: str) -> List[Transaction]:
        """
        Get the ledger of one inventory item

        Args:
            item_id: Inventory item ID

        Returns:
            Transactions in chronological order, empty list if none
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT id, item_id, type, price, quantity, quantity_type_value, created
                FROM transactions
                WHERE item_id = %s
                ORDER BY created, id
            """, (item_id,))

            return [Transaction(**row) for row in cursor.fetchall()]

        finally:
            cursor.close()
            conn.close()

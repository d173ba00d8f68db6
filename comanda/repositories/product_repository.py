"""
Product Repository - Data Access Layer for Products

Handles all database queries for products and returns Product domain models.

Author: TM3
"""
from typing import List, Optional

from comanda.core.database import get_db_connection_dict
from comanda.domain.product import Product


class ProductRepository:
    """
    Repository for Product data access

    All SQL queries for products are centralized here.
    Returns Product domain models, not raw dictionaries.
    """

    def find_all(
        self,
        tenant_id: str,
        search: Optional[str] = None,
        tags: Optional[List[str]] = None,
    ) -> List[Product]:
        """
        Find products of a tenant with filters

        Args:
            tenant_id: Owning tenant
            search: Case-insensitive match on the product name
            tags: Every tag must match (substring, case-insensitive)

        Returns:
            Products ordered newest first, soft-deleted ones excluded
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            conditions = ["tenant_id = %s", "deleted IS NULL"]
            params = [tenant_id]

            if search:
                conditions.append("name ILIKE %s")
                params.append(f"%{search}%")

            for tag in tags or []:
                conditions.append("array_to_string(tags, ',') ILIKE %s")
                params.append(f"%{tag}%")

            where_clause = " AND ".join(conditions)

            cursor.execute(f"""
                SELECT id, tenant_id, name, price, tags, created, updated
                FROM products
                WHERE {where_clause}
                ORDER BY created DESC
            """, params)

            return [Product(**row) for row in cursor.fetchall()]

        finally:
            cursor.close()
            conn.close()

    def get_unique_tags(self) -> List[str]:
        """
        Get every distinct tag used by any product

        Returns:
            Sorted list of tags without duplicates
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT DISTINCT unnest(tags) AS tag
                FROM products
                ORDER BY tag
            """)
            rows = cursor.fetchall()

            # dict.fromkeys keeps order and drops repeats
            return list(dict.fromkeys(row['tag'] for row in rows if row['tag']))

        finally:
            cursor.close()
            conn.close()

"""
Order Repository - Data Access Layer for Orders

Handles all database queries for orders and returns Order domain models.

Author: TM3
"""
from typing import Dict, Iterable, List, Optional, Tuple

from comanda.core.config import settings
from comanda.core.database import get_db_connection_dict
from comanda.core.exceptions import OrderNotFoundError
from comanda.domain.order import Order, OrderItemsView, OrderLine, OrderProductGroup

ORDER_COLUMNS = "id, tenant_id, position, total, created, updated, closed, deleted"


def group_order_lines(rows: Iterable[dict]) -> List[OrderProductGroup]:
    """
    Group flat order line rows by (product, unit price)

    Groups keep the order in which their first line appears.
    """
    groups: Dict[Tuple[str, int], OrderProductGroup] = {}

    for row in rows:
        key = (row['product_id'], row['price'])
        if key not in groups:
            groups[key] = OrderProductGroup(
                product_id=row['product_id'],
                name=row['name'],
                price=row['price'],
            )
        groups[key].items.append(OrderLine(
            id=row['id'],
            is_takeaway=bool(row.get('is_takeaway')),
            payment_option_id=row.get('payment_option_id'),
        ))

    return list(groups.values())


class OrderRepository:
    """
    Repository for Order data access

    All SQL queries for orders are centralized here.
    """

    def get_order_items_view(self, order_id: str) -> OrderItemsView:
        """
        Compose an order with its lines grouped per product

        Each line carries the unit price recorded when it was ordered; lines
        recorded before prices were snapshotted fall back to the catalog price.

        Args:
            order_id: Order ID

        Returns:
            OrderItemsView with header fields and product groups

        Raises:
            OrderNotFoundError if the order does not exist
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                SELECT {ORDER_COLUMNS}
                FROM orders
                WHERE id = %s
            """, (order_id,))

            order_row = cursor.fetchone()
            if not order_row:
                raise OrderNotFoundError(order_id)

            cursor.execute("""
                SELECT
                    oi.id, oi.product_id, oi.is_takeaway, oi.payment_option_id,
                    p.name,
                    COALESCE(oi.unit_price, p.price) AS price
                FROM order_items oi
                JOIN products p ON p.id = oi.product_id
                WHERE oi.order_id = %s
                ORDER BY oi.id
            """, (order_id,))

            products = group_order_lines(cursor.fetchall())

            return OrderItemsView(**order_row, products=products)

        finally:
            cursor.close()
            conn.close()

    def find_all(
        self,
        tenant_id: str,
        date: Optional[str] = None,
        status: Optional[str] = None,
        time_zone: Optional[str] = None,
    ) -> List[Order]:
        """
        Find orders of a tenant that have at least one line

        Args:
            tenant_id: Owning tenant
            date: Day to list (YYYY-MM-DD) in `time_zone`, defaults to today
            status: 'opened' or 'closed'
            time_zone: IANA zone used to cut days (default from settings)

        Returns:
            Orders newest first
        """
        time_zone = time_zone or settings.DEFAULT_TIME_ZONE
        status = status or ""

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            conditions = [
                "o.tenant_id = %s",
                "o.deleted IS NULL",
                """EXISTS (
                    SELECT 1 FROM order_items oi
                    WHERE oi.order_id = o.id AND oi.tenant_id = %s
                )""",
            ]
            params = [tenant_id, tenant_id]

            if date:
                conditions.append("timezone(%s, o.created) >= %s::date")
                conditions.append("timezone(%s, o.created) < %s::date + interval '1 day'")
                params.extend([time_zone, date, time_zone, date])
            else:
                conditions.append("timezone(%s, o.created) >= timezone(%s, now())::date")
                conditions.append("timezone(%s, o.created) < timezone(%s, now() + interval '1 day')::date")
                params.extend([time_zone, time_zone, time_zone, time_zone])

            if status == "opened":
                conditions.append("o.closed IS NULL")
            elif status == "closed":
                conditions.append("o.closed IS NOT NULL")

            where_clause = " AND ".join(conditions)

            cursor.execute(f"""
                SELECT
                    o.id, o.tenant_id, o.position, o.total,
                    o.created, o.updated, o.closed, o.deleted
                FROM orders o
                WHERE {where_clause}
                ORDER BY o.created DESC
            """, params)

            return [Order(**row) for row in cursor.fetchall()]

        finally:
            cursor.close()
            conn.close()

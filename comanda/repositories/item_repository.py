"""
Item Repository - legacy todo/shopping list

Author: TM3
"""
from typing import List

from comanda.core.database import get_db_connection_dict
from comanda.domain.inventory import TodoItem


class ItemRepository:

    def get_all_items(self) -> List[TodoItem]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT id, name, status, created
                FROM items
                ORDER BY created
            """)
            return [TodoItem(**row) for row in cursor.fetchall()]

        finally:
            cursor.close()
            conn.close()

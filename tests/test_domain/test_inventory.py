"""
Unit tests for the inventory ledger models
"""
from datetime import datetime

import pytest

from comanda.domain.inventory import InventoryItem, Transaction, TransactionType, stock_level


def _tx(tx_id, tx_type, quantity):
    return Transaction(
        id=tx_id,
        item_id="item-1",
        type=tx_type,
        quantity=quantity,
        created=datetime(2025, 3, 1, 9, tx_id),
    )


class TestStockLevel:

    def test_sum_of_signed_deltas(self):
        ledger = [_tx(1, "IN", 10), _tx(2, "OUT", 3), _tx(3, "IN", 2.5), _tx(4, "OUT", 4)]

        assert [t.delta for t in ledger] == [10, -3, 2.5, -4]
        assert stock_level(ledger) == pytest.approx(5.5)

    def test_empty_ledger_is_zero(self):
        assert stock_level([]) == 0

    def test_type_is_parsed_from_row_value(self):
        assert _tx(1, "OUT", 1).type is TransactionType.OUT

    def test_negative_quantity_is_rejected(self):
        with pytest.raises(ValueError):
            _tx(1, "IN", -1)


class TestInventoryItem:

    def test_low_stock_only_with_threshold(self):
        assert InventoryItem(id="a", name="Tortillas", stock=2, min_stock=5).is_low_stock
        assert not InventoryItem(id="b", name="Sal", stock=2, min_stock=None).is_low_stock
        assert not InventoryItem(id="c", name="Limones", stock=8, min_stock=5).is_low_stock

    def test_to_dict_includes_low_stock_flag(self):
        data = InventoryItem(id="a", name="Tortillas", stock=2, min_stock=5).to_dict()
        assert data["is_low_stock"] is True
        assert data["stock"] == 2

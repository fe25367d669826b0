"""Per-warehouse stock ledger: totals, guards, transfers and the append-only log."""
import pytest

from exceptions import (
    ImmutableRecordError, InsufficientStockError, InvalidQuantityError,
    InvalidRestockError, InvalidTransferError,
)
from database import SessionLocal
from models.stock import StockLog, StockReason
from models.warehouse import Warehouse
from services import stock_ledger


def _logs(db, product):
    return db.query(StockLog).filter(StockLog.product_id == product.id).order_by(StockLog.id).all()


class TestTotalInvariant:

    def test_total_equals_sum_after_every_call(self, db, make_product, main_warehouse, branch_warehouse):
        product = make_product()
        steps = [
            ("set", main_warehouse, 10),
            ("adjust", branch_warehouse, 4),
            ("adjust", main_warehouse, -3),
            ("set", branch_warehouse, 0),
            ("set", main_warehouse, 25),
            ("adjust", branch_warehouse, 7),
        ]
        for kind, wh, value in steps:
            if kind == "set":
                total = stock_ledger.set_quantity(db, product, wh, value)
            else:
                total = stock_ledger.adjust_quantity(db, product, wh, value)
            assert total == sum(product.stock_by_warehouse.values()) == product.stock

        db.commit()
        db.refresh(product)
        assert product.stock_by_warehouse == {main_warehouse.id: 25, branch_warehouse.id: 7}
        assert product.stock == 32

    def test_missing_warehouse_entry_reads_as_zero(self, db, make_product, branch_warehouse):
        product = make_product(stock=5)
        assert product.stock_by_warehouse.get(branch_warehouse.id, 0) == 0
        assert product.stock == 5


class TestGuards:

    def test_negative_result_is_rejected_without_change(self, db, make_product, main_warehouse):
        product = make_product(stock=10)
        logs_before = len(_logs(db, product))

        with pytest.raises(InsufficientStockError):
            stock_ledger.adjust_quantity(db, product, main_warehouse, -100)

        assert product.stock_by_warehouse[main_warehouse.id] == 10
        db.commit()
        assert len(_logs(db, product)) == logs_before

    def test_deducting_from_empty_warehouse(self, db, make_product, branch_warehouse):
        product = make_product(stock=10)
        with pytest.raises(InsufficientStockError):
            stock_ledger.adjust_quantity(db, product, branch_warehouse, -1)
        assert branch_warehouse.id not in product.stock_by_warehouse

    def test_zero_delta_is_rejected(self, db, make_product, main_warehouse):
        product = make_product(stock=3)
        with pytest.raises(InvalidQuantityError):
            stock_ledger.adjust_quantity(db, product, main_warehouse, 0)

    def test_negative_set_is_rejected(self, db, make_product, main_warehouse):
        product = make_product(stock=3)
        with pytest.raises(InvalidQuantityError):
            stock_ledger.set_quantity(db, product, main_warehouse, -1)
        assert product.stock == 3

    def test_replace_map_validates_everything_first(self, db, make_product, main_warehouse, branch_warehouse):
        product = make_product(stock=8)
        with pytest.raises(InvalidQuantityError):
            stock_ledger.replace_stock_map(db, product, {main_warehouse: 2, branch_warehouse: -5})
        assert product.stock_by_warehouse == {main_warehouse.id: 8}


class TestRestock:

    def test_restock_updates_quantity_cost_and_log(self, db, make_product, main_warehouse):
        product = make_product(stock=10, cost=1000)
        update = stock_ledger.restock(db, product, main_warehouse, 10, 1200)
        db.commit()
        db.refresh(product)

        assert (update.quantity, update.unit_cost) == (20, 1100)
        assert product.stock == 20
        assert product.purchase_price == 1100
        last = _logs(db, product)[-1]
        assert (last.prev_quantity, last.new_quantity, last.delta) == (10, 20, 10)
        assert (last.prev_cost, last.new_cost) == (1000, 1100)
        assert last.reason == StockReason.STOCK_IN

    def test_cost_blends_against_total_across_warehouses(self, db, make_product, main_warehouse, branch_warehouse):
        product = make_product(stock=10, cost=1000)
        stock_ledger.restock(db, product, branch_warehouse, 10, 1200)
        assert product.purchase_price == 1100
        assert product.stock_by_warehouse == {main_warehouse.id: 10, branch_warehouse.id: 10}

    def test_invalid_restock_leaves_product_untouched(self, db, make_product, main_warehouse):
        product = make_product(stock=4, cost=900)
        with pytest.raises(InvalidRestockError):
            stock_ledger.restock(db, product, main_warehouse, 0, 1000)
        with pytest.raises(InvalidRestockError):
            stock_ledger.restock(db, product, main_warehouse, 5, 0)
        assert product.stock == 4
        assert product.purchase_price == 900


class TestTransfer:

    def test_transfer_moves_stock_and_keeps_total(self, db, make_product, main_warehouse, branch_warehouse):
        product = make_product(stock=12)
        total = stock_ledger.transfer(db, product, main_warehouse, branch_warehouse, 5)
        db.commit()

        assert total == 12
        assert product.stock_by_warehouse == {main_warehouse.id: 7, branch_warehouse.id: 5}
        reasons = [log.reason for log in _logs(db, product)][-2:]
        assert reasons == [StockReason.TRANSFER_OUT, StockReason.TRANSFER_IN]

    def test_same_warehouse_is_rejected(self, db, make_product, main_warehouse):
        product = make_product(stock=12)
        with pytest.raises(InvalidTransferError):
            stock_ledger.transfer(db, product, main_warehouse, main_warehouse, 1)

    def test_insufficient_source(self, db, make_product, main_warehouse, branch_warehouse):
        product = make_product(stock=2)
        with pytest.raises(InsufficientStockError):
            stock_ledger.transfer(db, product, main_warehouse, branch_warehouse, 3)
        assert product.stock_by_warehouse == {main_warehouse.id: 2}


class TestStockLogImmutability:

    def test_update_is_rejected(self, db, make_product):
        product = make_product(stock=5)
        log = _logs(db, product)[0]
        log.note = "rewritten"
        with pytest.raises(ImmutableRecordError):
            db.flush()
        db.rollback()

    def test_delete_is_rejected(self, db, make_product):
        product = make_product(stock=5)
        log = _logs(db, product)[0]
        db.delete(log)
        with pytest.raises(ImmutableRecordError):
            db.flush()
        db.rollback()


class TestRowLock:

    def test_lock_reloads_rows_changed_by_another_session(self, db, make_product, main_warehouse):
        product = make_product(stock=10)
        assert product.stock == 10

        other = SessionLocal()
        try:
            theirs = stock_ledger.lock_product(other, product.id)
            stock_ledger.adjust_quantity(other, theirs, other.get(Warehouse, main_warehouse.id), -3)
            other.commit()
        finally:
            other.close()

        mine = stock_ledger.lock_product(db, product.id)
        assert mine is product
        assert mine.stock == 7

        stock_ledger.adjust_quantity(db, mine, main_warehouse, -5)
        db.commit()
        db.refresh(product)
        assert product.stock == 2

    def test_lock_reloads_cost(self, db, make_product, main_warehouse):
        product = make_product(stock=10, cost=1000)
        assert product.purchase_price == 1000

        other = SessionLocal()
        try:
            theirs = stock_ledger.lock_product(other, product.id)
            stock_ledger.restock(other, theirs, other.get(Warehouse, main_warehouse.id), 10, 1200)
            other.commit()
        finally:
            other.close()

        mine = stock_ledger.lock_product(db, product.id)
        assert (mine.stock, mine.purchase_price) == (20, 1100)

"""Integration tests for the product order use cases."""

import threading

import pytest

from ims.application.change_product_order_status import ChangeProductOrderStatusHandler
from ims.application.delete_product_order import DeleteProductOrderHandler
from ims.application.show_product_order import (
    ListProductOrdersHandler,
    ShowProductOrderHandler,
)
from ims.domain.exceptions import (
    EntityNotFoundError,
    InsufficientMaterialsError,
    InvalidTransitionError,
    PersistenceError,
    ValidationError,
)


def _status_handler(shop):
    return ChangeProductOrderStatusHandler(
        shop.orders, shop.products, shop.consumption, activity_log=shop.activity
    )


class TestCreateProductOrder:

    def test_create_deducts_materials(self, shop):
        dto = shop.create_order(1, 5, (1, 6), (2, 2))

        assert dto.status == "pending"
        assert dto.product_name == "Canvas Tote"
        assert [m.material_name for m in dto.materials] == ["Canvas", "Thread"]
        assert dto.material_cost == "$26.50"
        assert shop.materials.quantity_of(1) == 14
        assert shop.materials.quantity_of(2) == 3
        assert shop.products.stock_of(1) == 10

    def test_duplicate_material_lines_are_merged(self, shop):
        dto = shop.create_order(1, 1, (1, 2), (1, 3))
        assert [(m.material_id, m.quantity) for m in dto.materials] == [(1, 5)]
        assert shop.materials.quantity_of(1) == 15

    def test_short_materials_change_nothing(self, shop):
        with pytest.raises(InsufficientMaterialsError) as exc_info:
            shop.create_order(1, 5, (1, 6), (2, 9))

        shortfall = exc_info.value.shortfalls[0]
        assert (shortfall.material_id, shortfall.requested, shortfall.available) == (2, 9, 5)
        assert "Thread: need 9 spool, have 5" in str(exc_info.value)
        assert shop.materials.quantity_of(1) == 20
        assert len(shop.orders) == 0

    def test_unknown_product(self, shop):
        with pytest.raises(EntityNotFoundError, match="Product #99"):
            shop.create_order(99, 1, (1, 1))

    def test_unknown_material(self, shop):
        with pytest.raises(EntityNotFoundError, match="Material #7"):
            shop.create_order(1, 1, (7, 1))

    def test_needs_materials(self, shop):
        with pytest.raises(ValidationError):
            shop.create_order(1, 1)

    def test_header_save_failure_returns_materials(self, shop):
        shop.orders.fail_insert_header = True

        with pytest.raises(PersistenceError):
            shop.create_order(1, 1, (1, 4))

        assert shop.materials.quantity_of(1) == 20
        assert len(shop.orders) == 0

    def test_material_save_failure_removes_order_and_returns_materials(self, shop):
        shop.orders.fail_insert_materials = True

        with pytest.raises(PersistenceError, match="Could not save materials"):
            shop.create_order(1, 1, (1, 4), (2, 1))

        assert shop.materials.quantity_of(1) == 20
        assert shop.materials.quantity_of(2) == 5
        assert len(shop.orders) == 0

    def test_activity_is_recorded(self, shop):
        shop.create_order(1, 2, (1, 1))
        assert shop.activity.kinds() == ["material_deduction", "create"]


class TestProductOrderStatus:

    def test_complete_adds_finished_stock(self, shop):
        dto = shop.create_order(1, 5, (1, 6))

        result = _status_handler(shop).handle(dto.id, "completed")

        assert result.previous_status == "pending"
        assert result.new_product_stock == 15
        assert result.order.completed_at is not None
        assert shop.products.stock_of(1) == 15
        assert shop.materials.quantity_of(1) == 14

    def test_start_then_complete(self, shop):
        dto = shop.create_order(3, 4, (1, 1))
        handler = _status_handler(shop)

        handler.handle(dto.id, "in-progress")
        handler.handle(dto.id, "completed")

        assert shop.products.stock_of(3) == 44

    def test_completed_order_is_final(self, shop):
        dto = shop.create_order(1, 5, (1, 6))
        handler = _status_handler(shop)
        handler.handle(dto.id, "completed")

        with pytest.raises(InvalidTransitionError):
            handler.handle(dto.id, "cancelled")

        assert shop.products.stock_of(1) == 15
        assert shop.materials.quantity_of(1) == 14

    def test_cancel_returns_materials(self, shop):
        dto = shop.create_order(1, 5, (1, 6), (2, 2))

        result = _status_handler(shop).handle(dto.id, "cancelled")

        assert result.unreturned_material_ids == []
        assert shop.materials.quantity_of(1) == 20
        assert shop.materials.quantity_of(2) == 5
        assert shop.products.stock_of(1) == 10

    def test_completing_order_for_removed_product(self, shop):
        dto = shop.create_order(2, 3, (1, 1))
        shop.products.remove(2)

        result = _status_handler(shop).handle(dto.id, "completed")

        assert result.order.status == "completed"
        assert result.new_product_stock is None

    def test_failed_status_save_touches_no_stock(self, shop):
        dto = shop.create_order(1, 5, (1, 6))
        shop.orders.fail_update_status = True

        with pytest.raises(PersistenceError):
            _status_handler(shop).handle(dto.id, "completed")

        assert shop.products.stock_of(1) == 10
        assert shop.orders.get_by_id(dto.id).status.value == "pending"

    def test_unknown_status(self, shop):
        dto = shop.create_order(1, 1, (1, 1))
        with pytest.raises(ValidationError, match="Unknown product order status"):
            _status_handler(shop).handle(dto.id, "shipped")

    def test_concurrent_completions_restock_once(self, shop):
        dto = shop.create_order(1, 5, (1, 6))
        shop.orders.hold_reads(2)
        handler = _status_handler(shop)
        outcomes: list[str] = []
        lock = threading.Lock()

        def complete() -> None:
            try:
                handler.handle(dto.id, "completed")
                result = "ok"
            except InvalidTransitionError:
                result = "conflict"
            with lock:
                outcomes.append(result)

        threads = [threading.Thread(target=complete) for _ in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sorted(outcomes) == ["conflict", "ok"]
        assert shop.products.stock_of(1) == 15


class TestDeleteProductOrder:

    def test_delete_open_order_returns_materials(self, shop):
        dto = shop.create_order(1, 5, (1, 6))

        result = DeleteProductOrderHandler(shop.orders, shop.consumption).handle(dto.id)

        assert result.order_id == dto.id
        assert shop.materials.quantity_of(1) == 20
        assert len(shop.orders) == 0

    def test_delete_completed_order_keeps_stock(self, shop):
        dto = shop.create_order(1, 5, (1, 6))
        _status_handler(shop).handle(dto.id, "completed")

        DeleteProductOrderHandler(shop.orders, shop.consumption).handle(dto.id)

        assert shop.materials.quantity_of(1) == 14
        assert shop.products.stock_of(1) == 15

    def test_delete_cancelled_order_does_not_return_twice(self, shop):
        dto = shop.create_order(1, 5, (1, 6))
        _status_handler(shop).handle(dto.id, "cancelled")

        DeleteProductOrderHandler(shop.orders, shop.consumption).handle(dto.id)

        assert shop.materials.quantity_of(1) == 20

    def test_unreturned_material_is_reported(self, shop):
        dto = shop.create_order(1, 5, (1, 6), (2, 1))
        shop.materials.fail_restock_for.add(2)

        result = DeleteProductOrderHandler(shop.orders, shop.consumption).handle(dto.id)

        assert result.unreturned_material_ids == [2]
        assert shop.materials.quantity_of(1) == 20

    def test_unknown_order(self, shop):
        with pytest.raises(EntityNotFoundError):
            DeleteProductOrderHandler(shop.orders, shop.consumption).handle(42)


class TestProductOrderQueries:

    def test_list_hides_completed_by_default(self, shop):
        done = shop.create_order(1, 1, (1, 1))
        open_order = shop.create_order(3, 1, (1, 1))
        _status_handler(shop).handle(done.id, "completed")
        handler = ListProductOrdersHandler(shop.orders)

        assert [o.id for o in handler.handle()] == [open_order.id]
        assert {o.id for o in handler.handle(include_completed=True)} == {done.id, open_order.id}

    def test_show(self, shop):
        dto = shop.create_order(1, 2, (2, 1))
        shown = ShowProductOrderHandler(shop.orders).handle(dto.id)
        assert shown.materials[0].material_name == "Thread"
        assert shown.materials[0].unit == "spool"

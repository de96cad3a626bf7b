"""Application service: Show / List Product Orders use cases (queries)."""

from __future__ import annotations

from ims.application.dto import ProductOrderDTO, product_order_to_dto
from ims.domain.exceptions import (
    DomainException,
    EntityNotFoundError,
    InvalidTransitionError,
    ValidationError,
)
from ims.domain.model.product_order import ProductOrder, ProductOrderStatus
from ims.domain.repository.product_order_repository import ProductOrderRepository


def find_product_order(order_repo: ProductOrderRepository, order_id: int) -> ProductOrder:
    order = order_repo.get_by_id(order_id)
    if order is None:
        raise EntityNotFoundError(f"Product order #{order_id} not found")
    return order


def order_conflict(order: ProductOrder, current: ProductOrder | None) -> DomainException:
    if current is None:
        return EntityNotFoundError(f"Product order {order.label} not found")
    return InvalidTransitionError(
        f"Product order {order.label} was changed to {current.status.value} "
        "by another request"
    )


def parse_order_status(raw: str | ProductOrderStatus) -> ProductOrderStatus:
    if isinstance(raw, ProductOrderStatus):
        return raw
    try:
        return ProductOrderStatus(raw.strip().lower())
    except ValueError as exc:
        raise ValidationError(f"Unknown product order status '{raw}'") from exc


class ShowProductOrderHandler:

    def __init__(self, order_repo: ProductOrderRepository) -> None:
        self._order_repo = order_repo

    def handle(self, order_id: int) -> ProductOrderDTO:
        return product_order_to_dto(find_product_order(self._order_repo, order_id))


class ListProductOrdersHandler:

    def __init__(self, order_repo: ProductOrderRepository) -> None:
        self._order_repo = order_repo

    def handle(self, include_completed: bool = False) -> list[ProductOrderDTO]:
        """Active orders newest first; completed ones only on request."""
        orders = self._order_repo.list_all(include_completed=include_completed)
        return [product_order_to_dto(o) for o in orders]

"""Application services: Add / List / Set Raw Materials use cases."""

from __future__ import annotations

from ims.domain.exceptions import EntityNotFoundError, ValidationError
from ims.domain.model.raw_material import RawMaterial
from ims.domain.model.value_objects import Money
from ims.domain.repository.activity_log import ActivityLog
from ims.domain.repository.material_repository import MaterialRepository
from ims.domain.service.audit import record_activity


class AddMaterialHandler:

    def __init__(self, material_repo: MaterialRepository) -> None:
        self._material_repo = material_repo

    def handle(
        self,
        name: str,
        unit: str = "pcs",
        quantity: int = 0,
        cost_per_unit: str = "0",
    ) -> RawMaterial:
        if not name or not name.strip():
            raise ValidationError("Material name is required")
        if self._material_repo.get_by_name(name) is not None:
            raise ValidationError(f"A material named '{name.strip()}' already exists")

        material = RawMaterial(
            id=self._material_repo.next_id(),
            name=name.strip(),
            unit=unit.strip() or "pcs",
            quantity=quantity,
            cost_per_unit=Money.of(cost_per_unit),
        )
        self._material_repo.save(material)
        return material


class ListMaterialsHandler:

    def __init__(self, material_repo: MaterialRepository) -> None:
        self._material_repo = material_repo

    def handle(self) -> list[RawMaterial]:
        return self._material_repo.list_all()


class SetMaterialQuantityHandler:

    def __init__(
        self,
        material_repo: MaterialRepository,
        activity_log: ActivityLog | None = None,
    ) -> None:
        self._material_repo = material_repo
        self._activity_log = activity_log

    def handle(self, material_id: int, quantity: int) -> None:
        """Set a material's quantity after a count."""
        material = self._material_repo.get_by_id(material_id)
        if material is None:
            raise EntityNotFoundError(f"Material #{material_id} not found")

        previous = material.quantity
        material.set_quantity(quantity)
        self._material_repo.save(material)
        record_activity(
            self._activity_log,
            "update",
            f"Quantity of {material.name} adjusted from {previous} to {quantity}",
        )

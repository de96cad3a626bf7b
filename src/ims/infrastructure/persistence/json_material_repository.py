"""JSON-file-backed implementation of MaterialRepository."""

from __future__ import annotations

from decimal import Decimal
from pathlib import Path

from ims.domain.model.raw_material import RawMaterial
from ims.domain.model.value_objects import Money
from ims.domain.repository.material_repository import MaterialRepository
from ims.infrastructure.persistence.json_file import JsonFile


class JsonMaterialRepository(MaterialRepository):

    def __init__(self, file_path: Path) -> None:
        self._file = JsonFile(file_path, default=[])

    # --- MaterialRepository interface -----------------------------------------

    def next_id(self) -> int:
        return 1 + max((r["id"] for r in self._file.load()), default=0)

    def get_by_id(self, material_id: int) -> RawMaterial | None:
        for raw in self._file.load():
            if raw["id"] == material_id:
                return self._to_domain(raw)
        return None

    def get_by_name(self, name: str) -> RawMaterial | None:
        wanted = name.strip().lower()
        for raw in self._file.load():
            if raw["name"].lower() == wanted:
                return self._to_domain(raw)
        return None

    def list_all(self) -> list[RawMaterial]:
        return sorted((self._to_domain(r) for r in self._file.load()), key=lambda m: m.id)

    def save(self, material: RawMaterial) -> None:
        with self._file.locked():
            records = self._file.load()
            for i, raw in enumerate(records):
                if raw["id"] == material.id:
                    records[i] = self._to_raw(material)
                    break
            else:
                records.append(self._to_raw(material))
            self._file.persist(records)

    def try_deduct(self, material_id: int, quantity: int) -> bool:
        with self._file.locked():
            records = self._file.load()
            for i, raw in enumerate(records):
                if raw["id"] == material_id:
                    material = self._to_domain(raw)
                    if not material.deduct(quantity):
                        return False
                    records[i] = self._to_raw(material)
                    self._file.persist(records)
                    return True
            return False

    def restock(self, material_id: int, quantity: int) -> int | None:
        with self._file.locked():
            records = self._file.load()
            for i, raw in enumerate(records):
                if raw["id"] == material_id:
                    material = self._to_domain(raw)
                    material.restock(quantity)
                    records[i] = self._to_raw(material)
                    self._file.persist(records)
                    return material.quantity
            return None

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(material: RawMaterial) -> dict:
        return {
            "id": material.id,
            "name": material.name,
            "unit": material.unit,
            "quantity": material.quantity,
            "cost_per_unit": str(material.cost_per_unit.amount),
            "currency": material.cost_per_unit.currency,
        }

    @staticmethod
    def _to_domain(raw: dict) -> RawMaterial:
        return RawMaterial(
            id=raw["id"],
            name=raw["name"],
            unit=raw.get("unit", "pcs"),
            quantity=raw.get("quantity", 0),
            cost_per_unit=Money(Decimal(raw.get("cost_per_unit", "0")), raw.get("currency", "USD")),
        )

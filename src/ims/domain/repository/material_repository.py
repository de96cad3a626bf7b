"""Abstract repository for RawMaterial aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod

from ims.domain.model.raw_material import RawMaterial


class MaterialRepository(ABC):

    @abstractmethod
    def next_id(self) -> int:
        """Generate the next unique material ID."""

    @abstractmethod
    def get_by_id(self, material_id: int) -> RawMaterial | None:
        """Return a material by its ID, or None if not found."""

    @abstractmethod
    def get_by_name(self, name: str) -> RawMaterial | None:
        """Return a material by name (case-insensitive), or None."""

    @abstractmethod
    def list_all(self) -> list[RawMaterial]:
        """Return every material, ordered by ID."""

    @abstractmethod
    def save(self, material: RawMaterial) -> None:
        """Persist a new or updated material."""

    @abstractmethod
    def try_deduct(self, material_id: int, quantity: int) -> bool:
        """Atomically take *quantity* out if at least that much is there.

        Equivalent to ``UPDATE ... SET quantity = quantity - n WHERE id = ?
        AND quantity >= n``.  Returns False when the material is missing or
        short.
        """

    @abstractmethod
    def restock(self, material_id: int, quantity: int) -> int | None:
        """Atomically add *quantity*; return the new level or None if missing."""

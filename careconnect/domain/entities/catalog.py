from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class CatalogEntry:
    id: int
    name: str
    specialty: str | None = None  # doctors only


@dataclass(frozen=True)
class Catalog:
    hospitals: tuple[CatalogEntry, ...] = field(default_factory=tuple)
    doctors: tuple[CatalogEntry, ...] = field(default_factory=tuple)

    def doctors_for_specialty(self, specialty: str | None) -> tuple[CatalogEntry, ...]:
        """Doctors offering a specialty; all doctors when no specialty is chosen."""
        if not specialty:
            return self.doctors
        wanted = specialty.strip().lower()
        return tuple(d for d in self.doctors if (d.specialty or "").strip().lower() == wanted)

    @property
    def is_empty(self) -> bool:
        return not self.hospitals and not self.doctors

from __future__ import annotations

from abc import ABC, abstractmethod

from careconnect.domain.entities.catalog import Catalog


class CatalogPort(ABC):
    @abstractmethod
    async def load(self) -> Catalog:
        """Load approved hospitals and doctors. Missing lists come back empty."""
        raise NotImplementedError

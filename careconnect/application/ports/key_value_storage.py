from abc import ABC, abstractmethod


class KeyValueStoragePort(ABC):
    """Durable string storage shared by one browser session (localStorage-like)."""

    @abstractmethod
    def get_item(self, key: str) -> str | None:
        raise NotImplementedError

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def remove_item(self, key: str) -> None:
        raise NotImplementedError

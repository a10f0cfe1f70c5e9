from abc import ABC, abstractmethod
from typing import Optional


class IKeyValueStore(ABC):
    """
    Almacenamiento local durable de blobs por clave.
    Las implementaciones lanzan StorageError ante fallos de I/O.
    """
    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    def remove(self, key: str) -> None:
        pass

# platelog/domain/Interfaces/deduplicator.py
from typing import Protocol


class IDeduplicator(Protocol):
    """
    Contrato para deduplicación de detecciones consecutivas.

    is_duplicate devuelve True si la lectura debe considerarse duplicada
    (y por tanto **no** notificarse). Si no lo es, la implementación
    la recuerda para la siguiente llamada.
    """
    def is_duplicate(self, plate_text: str) -> bool:
        ...

    def reset(self) -> None:
        ...

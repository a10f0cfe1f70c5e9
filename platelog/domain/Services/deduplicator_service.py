# platelog/domain/Services/deduplicator_service.py
from __future__ import annotations
from typing import Optional

from platelog.domain.Interfaces.deduplicator import IDeduplicator


class LastPlateDeduplicator(IDeduplicator):
    """
    Servicio de deduplicación de un solo slot.

    - recuerda únicamente la última placa confirmada (no un set, no TTL)
    - A, B, A -> tres detecciones; A, A -> una
    - reset() explícito cuando cambia el contexto de captura
    """

    def __init__(self):
        self._last: Optional[str] = None

    @property
    def last_plate(self) -> Optional[str]:
        return self._last

    def is_duplicate(self, plate_text: str) -> bool:
        if plate_text == self._last:
            return True
        self._last = plate_text
        return False

    def reset(self) -> None:
        self._last = None

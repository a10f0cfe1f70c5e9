from abc import ABC, abstractmethod
from typing import List
from platelog.domain.Models.cached_plate import PlateSighting
from platelog.domain.Models.session_record import PlateLogEntry


class IPlateHistory(ABC):
    """
    Almacén relacional remoto de placas registradas.
    """
    @abstractmethod
    def recent_plates(self, days: int = 30, limit: int = 500) -> List[PlateSighting]:
        """Placas vistas en los últimos `days` días, más recientes primero."""
        pass

    @abstractmethod
    def append(self, entry: PlateLogEntry) -> None:
        """Agrega una fila al log remoto (append-only)."""
        pass

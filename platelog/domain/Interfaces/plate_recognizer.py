from abc import ABC, abstractmethod
from typing import List, Optional
from platelog.domain.Models.frame import CapturedFrame
from platelog.domain.Models.plate import RecognizedPlate


class IPlateRecognizer(ABC):
    """
    Servicio remoto de reconocimiento de placas (OCR).
    """
    @abstractmethod
    def recognize(self, frame: CapturedFrame, region: Optional[str] = None) -> List[RecognizedPlate]:
        """
        Envía el frame al servicio y devuelve los candidatos.
        Lanza TransportError o ServiceError.
        """
        pass

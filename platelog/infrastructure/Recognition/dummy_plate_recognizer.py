from typing import List, Optional
from platelog.domain.Models.frame import CapturedFrame
from platelog.domain.Models.plate import RecognizedPlate
from platelog.domain.Interfaces.plate_recognizer import IPlateRecognizer


class DummyPlateRecognizer(IPlateRecognizer):
    """
    Implementación dummy que simplemente devuelve el mismo texto fijo.
    """

    def __init__(self, plate: str = "FAK1E23", confidence: float = 0.99):
        self.plate = plate
        self.confidence = confidence

    def recognize(self, frame: CapturedFrame, region: Optional[str] = None) -> List[RecognizedPlate]:
        return [RecognizedPlate(text=self.plate, confidence=self.confidence, region=region or "br")]

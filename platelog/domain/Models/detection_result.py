# platelog/domain/Models/detection_result.py
from dataclasses import dataclass, field
from typing import List, Optional
from platelog.domain.Models.plate import RecognizedPlate


@dataclass
class DetectionEvent:
    """
    Placa confirmada por el coordinador (una vez por valor nuevo).
    """
    event_id: str
    plate: str
    confidence: float
    region: str
    cache_hit: bool            # informativo: ya estaba en la caché
    detected_at: float
    source: Optional[str] = None
    candidates: List[RecognizedPlate] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Convierte a dict serializable."""
        return {
            "event_id": self.event_id,
            "plate": self.plate,
            "confidence": self.confidence,
            "region": self.region,
            "cache_hit": self.cache_hit,
            "detected_at": self.detected_at,
            "source": self.source,
            "candidates": [c.to_dict() for c in self.candidates],
        }

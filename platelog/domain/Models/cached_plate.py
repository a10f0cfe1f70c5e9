from dataclasses import dataclass
from datetime import datetime, timezone


@dataclass
class CachedPlateEntry:
    plate: str
    region: str
    last_seen: datetime
    confidence: float

    def to_dict(self) -> dict:
        return {
            "plate": self.plate,
            "region": self.region,
            "lastSeen": self.last_seen.isoformat(),
            "confidence": self.confidence,
        }

    @staticmethod
    def from_dict(data: dict) -> "CachedPlateEntry":
        last_seen = datetime.fromisoformat(str(data["lastSeen"]).replace("Z", "+00:00"))
        if last_seen.tzinfo is None:
            last_seen = last_seen.replace(tzinfo=timezone.utc)
        return CachedPlateEntry(
            plate=str(data["plate"]).upper(),
            region=data.get("region", "BR"),
            last_seen=last_seen,
            confidence=float(data.get("confidence", 1.0)),
        )


@dataclass(frozen=True)
class PlateSighting:
    """Placa vista recientemente según el almacén remoto."""
    plate: str
    seen_at: datetime

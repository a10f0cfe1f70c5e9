import base64
from dataclasses import dataclass
from typing import Optional


@dataclass
class CapturedFrame:
    """
    Snapshot codificado (JPEG) de la cámara.
    Efímero: no se retiene después del reconocimiento.
    """
    data: bytes               # imagen codificada
    timestamp: float          # momento en que se capturó
    source: str               # identificador de la cámara
    content_type: str = "image/jpeg"
    width: Optional[int] = None
    height: Optional[int] = None

    def to_base64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")

    def to_data_url(self) -> str:
        return f"data:{self.content_type};base64,{self.to_base64()}"

    def to_dict(self) -> dict:
        """
        Convierte el frame a un dict serializable (sin incluir la imagen).
        Ideal para logs.
        """
        return {
            "timestamp": self.timestamp,
            "source": self.source,
            "content_type": self.content_type,
            "size": len(self.data),
            "shape": (self.height, self.width) if self.width and self.height else None,
        }

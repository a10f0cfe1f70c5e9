from dataclasses import dataclass, asdict


@dataclass(frozen=True)
class RecognizedPlate:
    """
    Candidato devuelto por el servicio remoto de reconocimiento.
    """
    text: str          # texto normalizado (mayúsculas)
    confidence: float  # score del OCR en [0, 1]
    region: str        # tag de región (ej. "br")

    def to_dict(self) -> dict:
        return asdict(self)

# platelog/infrastructure/Normalizer/plate_normalizer.py
import re
from typing import Optional
from platelog.domain.Interfaces.text_normalizer import ITextNormalizer

_ALNUM = re.compile(r"[^A-Z0-9]")

# Mercosul: 3 letras + 1 dígito + 1 letra + 2 dígitos (ABC1D23)
MERCOSUL_PLATE = re.compile(r"^[A-Z]{3}[0-9][A-Z][0-9]{2}$")


def clean_plate_text(text: str) -> str:
    """Mayúsculas y solo A-Z0-9, sin validar longitud."""
    if not text:
        return ""
    return _ALNUM.sub("", text.strip().upper())


def is_mercosul_plate(text: str) -> bool:
    return bool(MERCOSUL_PLATE.match(clean_plate_text(text)))


class PlateNormalizer(ITextNormalizer):
    """
    Normaliza texto de placas:
    - Mayúsculas
    - Aceptar solo A-Z0-9
    - Rechazar ("") si fuera de rango [min_len, max_len] (max_len None = sin tope)
    """

    def __init__(self, min_len: int = 1, max_len: Optional[int] = None):
        self.min_len = min_len
        self.max_len = max_len

    def normalize(self, text: str) -> str:
        t = clean_plate_text(text)

        # validar longitudes
        if len(t) < self.min_len:
            return ""
        if self.max_len is not None and len(t) > self.max_len:
            return ""

        return t

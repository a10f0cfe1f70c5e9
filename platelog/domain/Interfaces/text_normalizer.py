from typing import Protocol


class ITextNormalizer(Protocol):
    """
    Convierte el texto crudo de una placa en su clave canónica.
    Devuelve "" cuando el texto no puede ser una placa válida.
    """
    def normalize(self, text: str) -> str: ...

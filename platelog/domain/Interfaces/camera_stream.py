from abc import ABC, abstractmethod
from platelog.domain.Models.frame import CapturedFrame


class ICameraStream(ABC):
    """
    Abstracción de la cámara del dispositivo.
    Estados: Idle -> Active (start) -> Idle (stop).
    """

    @property
    @abstractmethod
    def is_active(self) -> bool:
        pass

    @abstractmethod
    def start(self, facing_mode: str = "environment", ideal_width: int = 1280, ideal_height: int = 720) -> None:
        """
        Adquiere el stream. Lanza PermissionDenied, DeviceNotFound,
        DeviceBusy o Unsupported. Si ya está activo no hace nada.
        """
        pass

    @abstractmethod
    def stop(self) -> None:
        """Libera el stream. Idempotente."""
        pass

    @abstractmethod
    def capture_frame(self) -> CapturedFrame | None:
        """Snapshot codificado del frame actual, o None si no está activo."""
        pass

    @abstractmethod
    def set_torch(self, enabled: bool) -> bool:
        """Best-effort. Devuelve si se pudo aplicar. Nunca lanza."""
        pass

# platelog/domain/errors.py


class PlateLogError(Exception):
    """Excepción base del núcleo de registro de placas."""


# ==========================================================
# Cámara
# ==========================================================
class CameraError(PlateLogError):
    """Fallo al adquirir el stream de la cámara. Nunca se reintenta automáticamente."""
    reason = "camera_error"


class PermissionDenied(CameraError):
    reason = "permission_denied"


class DeviceNotFound(CameraError):
    reason = "device_not_found"


class DeviceBusy(CameraError):
    reason = "device_busy"


class Unsupported(CameraError):
    reason = "unsupported"


# ==========================================================
# Reconocimiento
# ==========================================================
class RecognitionError(PlateLogError):
    """Error recuperable del servicio remoto de reconocimiento."""


class TransportError(RecognitionError):
    """Red o servicio no disponible."""


class ServiceError(RecognitionError):
    """El servicio respondió con un payload de error."""

    def __init__(self, message: str, status: int | None = None, details: str | None = None):
        super().__init__(message)
        self.status = status
        self.details = details


# ==========================================================
# Persistencia local
# ==========================================================
class StorageError(PlateLogError):
    """Fallo leyendo o escribiendo el almacenamiento local."""

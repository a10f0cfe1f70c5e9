# platelog/infrastructure/Camera/camera_factory.py
import logging
from platelog.core.config import Settings, settings as default_settings
from platelog.domain.Interfaces.camera_stream import ICameraStream

logger = logging.getLogger(__name__)


def create_camera_stream(settings: Settings = default_settings) -> ICameraStream:
    """
    Factory responsable de crear el stream correcto (OpenCV o FakeCameraStream).
    """

# ==========================================================
# 🧪 1) Fake camera para pruebas y desarrollo
# ==========================================================
    if settings.camera_backend == "fake":
        from platelog.infrastructure.Camera.fake_camera_stream import FakeCameraStream

        source = settings.camera_fake_source
        video_path = source.replace("fake://", "") if source else None
        logger.info(f"Usando cámara fake ({video_path or 'frames negros'})")
        return FakeCameraStream(video_path=video_path, jpeg_quality=settings.camera_jpeg_quality)

# ==========================================================
# 📷 2) OpenCV (cámara del dispositivo / RTSP / archivo)
# ==========================================================
    from platelog.infrastructure.Camera.opencv_camera_stream import OpenCVCameraStream
    from platelog.infrastructure.Camera.sysfs_torch import SysfsTorch

    devices = {"environment": settings.camera_environment_device}
    if settings.camera_user_device:
        devices["user"] = settings.camera_user_device

    torch = SysfsTorch(settings.camera_torch_path) if settings.camera_torch_path else None

    return OpenCVCameraStream(
        devices=devices,
        jpeg_quality=settings.camera_jpeg_quality,
        torch=torch,
    )

import time
import logging
from itertools import cycle
from typing import List, Optional

import cv2
import numpy as np

from platelog.domain.errors import CameraError
from platelog.domain.Interfaces.camera_stream import ICameraStream
from platelog.domain.Models.frame import CapturedFrame
from platelog.infrastructure.Camera.opencv_camera_stream import encode_jpeg

logger = logging.getLogger(__name__)


class FakeCameraStream(ICameraStream):
    """
    Simula la cámara del dispositivo usando imágenes en memoria o un archivo
    de video en loop. Mismo contrato que OpenCVCameraStream.
    """

    def __init__(
        self,
        images: Optional[List[np.ndarray]] = None,
        video_path: Optional[str] = None,
        camera_id: str = "fake",
        fail_with: Optional[CameraError] = None,
        torch_supported: bool = False,
        jpeg_quality: int = 80,
    ):
        self.images = images
        self.video_path = video_path
        self.camera_id = camera_id
        self.fail_with = fail_with
        self.torch_supported = torch_supported
        self.jpeg_quality = jpeg_quality

        self.torch_on = False
        self.start_calls = 0
        self.facing_mode: Optional[str] = None

        self.cap = None
        self._images = None
        self._active = False

    @property
    def is_active(self) -> bool:
        return self._active

    # ==========================================================
    # START
    # ==========================================================
    def start(self, facing_mode: str = "environment", ideal_width: int = 1280, ideal_height: int = 720) -> None:
        if self._active:
            return
        self.start_calls += 1

        if self.fail_with is not None:
            raise self.fail_with

        if self.video_path:
            self.cap = cv2.VideoCapture(self.video_path)
            if not self.cap.isOpened():
                self.cap = None
                raise CameraError(f"No se pudo abrir video {self.video_path}")
        else:
            images = self.images or [np.zeros((ideal_height, ideal_width, 3), dtype=np.uint8)]
            self._images = cycle(images)

        self.facing_mode = facing_mode
        self._active = True

    # ==========================================================
    # CAPTURE FRAME (loop infinito del video)
    # ==========================================================
    def capture_frame(self) -> Optional[CapturedFrame]:
        if not self._active:
            return None

        image = self._next_image()
        if image is None:
            return None

        data = encode_jpeg(image, self.jpeg_quality)
        if data is None:
            return None
        h, w = image.shape[:2]
        return CapturedFrame(data=data, timestamp=time.time(), source=self.camera_id, width=w, height=h)

    def _next_image(self) -> Optional[np.ndarray]:
        if self.cap is None:
            return next(self._images)

        ok, frame = self.cap.read()
        if ok:
            return frame

        # Si llega al final del video -> reiniciar
        self._restart_video()
        ok, frame = self.cap.read()
        return frame if ok else None

    def _restart_video(self):
        """Reinicia el archivo simulando un stream continuo."""
        if self.cap:
            self.cap.release()
        self.cap = cv2.VideoCapture(self.video_path)

    # ==========================================================
    # TORCH
    # ==========================================================
    def set_torch(self, enabled: bool) -> bool:
        if not self._active or not self.torch_supported:
            return False
        self.torch_on = enabled
        return True

    # ==========================================================
    # STOP
    # ==========================================================
    def stop(self) -> None:
        if self.cap:
            self.cap.release()
            self.cap = None
        self._images = None
        self.torch_on = False
        self._active = False

import os
import sys
import time
import logging
import threading
from typing import Dict, Optional, Union

import cv2
import numpy as np

from platelog.domain.errors import DeviceBusy, DeviceNotFound, PermissionDenied, Unsupported
from platelog.domain.Interfaces.camera_stream import ICameraStream
from platelog.domain.Models.frame import CapturedFrame
from platelog.infrastructure.Camera.sysfs_torch import SysfsTorch

logger = logging.getLogger(__name__)

Source = Union[int, str]


def encode_jpeg(image: np.ndarray, quality: int = 80) -> Optional[bytes]:
    ok, buf = cv2.imencode(".jpg", image, [int(cv2.IMWRITE_JPEG_QUALITY), int(quality)])
    return buf.tobytes() if ok else None


class OpenCVCameraStream(ICameraStream):
    """
    Implementación de ICameraStream usando OpenCV con lectura en hilo separado.
    - facing_mode ("environment" / "user") se resuelve a un dispositivo configurado.
    - Un hilo interno (_update_frames) lee continuamente y mantiene SOLO el último frame.
    - capture_frame() codifica a JPEG el último frame disponible.
    - start() con la cámara ya activa no hace nada (hay que llamar stop() antes
      para cambiar de dispositivo o resolución).
    """

    def __init__(
        self,
        devices: Dict[str, Source],
        jpeg_quality: int = 80,
        torch: Optional[SysfsTorch] = None,
        camera_id: str = "device",
    ):
        """
        :param devices: facing_mode -> índice de cámara, nodo /dev/videoN o URL.
        :param jpeg_quality: calidad del JPEG de capture_frame.
        :param torch: control de linterna (opcional).
        """
        self.devices = devices
        self.jpeg_quality = jpeg_quality
        self.torch = torch
        self.camera_id = camera_id

        self.cap = None
        self.source: Optional[Source] = None

        # control del hilo interno
        self._frame_lock = threading.Lock()
        self._latest_frame: Optional[np.ndarray] = None
        self._running = False
        self._thread: Optional[threading.Thread] = None

    @property
    def is_active(self) -> bool:
        return self._running

    # ==========================================================
    # START
    # ==========================================================
    def start(self, facing_mode: str = "environment", ideal_width: int = 1280, ideal_height: int = 720) -> None:
        if self._running:
            logger.debug(f"[{self.camera_id}] start() ignorado: la cámara ya está activa")
            return

        source = self._resolve_source(facing_mode)
        self._check_device_node(source)

        try:
            cap = cv2.VideoCapture(source)
        except cv2.error as e:
            raise Unsupported(f"OpenCV no puede abrir {source}: {e}") from e

        if cap is None or not cap.isOpened():
            if cap is not None:
                cap.release()
            if self._is_local_device(source):
                raise DeviceBusy(f"Cámara {source} en uso por otro proceso")
            raise DeviceNotFound(f"No se pudo abrir el stream: {source}")

        # Resolución ideal: el driver puede ajustarla a la más cercana
        try:
            cap.set(cv2.CAP_PROP_FRAME_WIDTH, ideal_width)
            cap.set(cv2.CAP_PROP_FRAME_HEIGHT, ideal_height)
        except cv2.error:
            logger.debug(f"[{self.camera_id}] El driver no acepta {ideal_width}x{ideal_height}")

        self.cap = cap
        self.source = source

        logger.info(f"🎥 Cámara {self.camera_id} activa ({facing_mode}: {source})")

        # Lanzar hilo de lectura continua
        self._running = True
        self._thread = threading.Thread(target=self._update_frames, name=f"camera-{self.camera_id}", daemon=True)
        self._thread.start()

    def _resolve_source(self, facing_mode: str) -> Source:
        source = self.devices.get(facing_mode)
        if source is None or source == "":
            raise DeviceNotFound(f"No hay cámara configurada para facing_mode={facing_mode}")
        if isinstance(source, str) and source.isdigit():
            return int(source)
        return source

    @staticmethod
    def _is_local_device(source: Source) -> bool:
        return isinstance(source, int) or str(source).startswith("/dev/")

    @staticmethod
    def _check_device_node(source: Source) -> None:
        """En Linux, clasifica ausencia / permisos del nodo /dev/videoN antes de abrir."""
        if not sys.platform.startswith("linux"):
            return
        node = f"/dev/video{source}" if isinstance(source, int) else str(source)
        if not node.startswith("/dev/"):
            return
        if not os.path.exists(node):
            raise DeviceNotFound(f"Nodo de cámara inexistente: {node}")
        if not os.access(node, os.R_OK | os.W_OK):
            raise PermissionDenied(f"Permiso de cámara denegado: {node}")

    # ==========================================================
    # THREAD QUE LEE FRAMES CONTINUAMENTE
    # ==========================================================
    def _update_frames(self):
        """ Hilo que lee continuamente frames y mantiene solo el más reciente. """
        failures = 0
        while self._running:
            cap = self.cap
            if cap is None:
                break

            ret, frame = cap.read()
            if not ret:
                failures += 1
                if failures % 30 == 1:
                    logger.warning(f"[{self.camera_id}] Error al leer frame ({failures})")
                time.sleep(0.05)
                continue

            failures = 0
            with self._frame_lock:
                self._latest_frame = frame

    # ==========================================================
    # CAPTURE FRAME
    # ==========================================================
    def capture_frame(self) -> Optional[CapturedFrame]:
        if not self._running:
            return None

        with self._frame_lock:
            image = self._latest_frame

        if image is None:
            return None

        data = encode_jpeg(image, self.jpeg_quality)
        if data is None:
            logger.warning(f"[{self.camera_id}] No se pudo codificar el frame a JPEG")
            return None

        h, w = image.shape[:2]
        return CapturedFrame(data=data, timestamp=time.time(), source=self.camera_id, width=w, height=h)

    # ==========================================================
    # TORCH
    # ==========================================================
    def set_torch(self, enabled: bool) -> bool:
        if not self._running or self.torch is None:
            return False
        return self.torch.set(enabled)

    # ==========================================================
    # STOP
    # ==========================================================
    def stop(self) -> None:
        was_running = self._running
        self._running = False

        if self._thread and self._thread.is_alive() and self._thread is not threading.current_thread():
            self._thread.join(timeout=2.0)
        self._thread = None

        if self.torch is not None and was_running:
            self.torch.set(False)

        if self.cap is not None:
            try:
                self.cap.release()
            except cv2.error:
                logger.exception(f"[{self.camera_id}] Error liberando la cámara")
            self.cap = None

        with self._frame_lock:
            self._latest_frame = None

        if was_running:
            logger.info(f"🔌 Cámara cerrada ({self.camera_id}).")

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.stop()

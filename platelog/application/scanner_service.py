import logging
import threading
from typing import Any, Dict, List, Optional

from platelog.monitoring.metrics import session_plates, ledger_plates_total

from platelog.domain.errors import CameraError
from platelog.domain.Interfaces.camera_stream import ICameraStream
from platelog.domain.Models.detection_result import DetectionEvent
from platelog.domain.Models.plate import RecognizedPlate
from platelog.domain.Models.report import PhysicalCountReport
from platelog.domain.Models.session_record import Checkpoint, SessionPlateRecord, SessionStats
from platelog.domain.Services.plate_cache import PlateCache
from platelog.domain.Services.session_ledger import SessionLedger
from platelog.application.recognition_coordinator import RecognitionCoordinator
from platelog.infrastructure.Messaging.queue_publisher import QueueEventPublisher

logger = logging.getLogger(__name__)


class ScannerService:
    """
    Sesión de escaneo: cámara -> coordinador -> ledger.

    Todas las mutaciones del ledger pasan por un único lock, así el hilo de
    escaneo continuo y la API pueden convivir.
    """

    def __init__(
        self,
        camera: ICameraStream,
        coordinator: RecognitionCoordinator,
        ledger: SessionLedger,
        cache: PlateCache,
        events: QueueEventPublisher,
        scan_interval: float = 2.0,
        facing_mode: str = "environment",
        width: int = 1280,
        height: int = 720,
    ):
        self.camera = camera
        self.coordinator = coordinator
        self.ledger = ledger
        self.cache = cache
        self.events = events

        self.scan_interval = scan_interval
        self.facing_mode = facing_mode
        self.width = width
        self.height = height

        self.camera_error: Optional[CameraError] = None
        self.torch_on = False

        self._ledger_lock = threading.RLock()
        self.stop_event = threading.Event()
        self._scan_thread: Optional[threading.Thread] = None

    # ---------------------------------------------------------
    # CÁMARA
    # ---------------------------------------------------------
    def start_camera(self) -> bool:
        self.camera_error = None
        try:
            self.camera.start(self.facing_mode, self.width, self.height)
        except CameraError as e:
            self.camera_error = e
            logger.error(f"❌ No se pudo iniciar la cámara ({e.reason}): {e}")
            return False
        return True

    def stop_camera(self) -> None:
        self.camera.stop()
        self.torch_on = False

    def set_torch(self, enabled: bool) -> bool:
        ok = self.camera.set_torch(enabled)
        if ok:
            self.torch_on = enabled
        return ok

    # ---------------------------------------------------------
    # CHECKPOINT
    # ---------------------------------------------------------
    @property
    def active_checkpoint(self) -> Optional[Checkpoint]:
        return self.ledger.active_checkpoint

    def set_checkpoint(self, checkpoint: "Checkpoint | str | None") -> Optional[Checkpoint]:
        with self._ledger_lock:
            self.ledger.set_active_checkpoint(checkpoint)
        # Cambió el contexto de captura: la misma placa vuelve a notificarse
        self.coordinator.reset_last_plate()
        return self.ledger.active_checkpoint

    # ---------------------------------------------------------
    # ESCANEO
    # ---------------------------------------------------------
    def scan_once(self) -> List[RecognizedPlate]:
        """
        Captura un frame, lo reconoce y registra en el ledger las placas
        confirmadas. Devuelve los candidatos válidos del reconocimiento.
        """
        frame = self.camera.capture_frame()
        if frame is None:
            return []

        plates = self.coordinator.recognize(frame)
        self.process_events()
        return plates

    def process_events(self) -> int:
        """Consume las detecciones publicadas y las registra en el ledger."""
        added = 0
        for event in self.events.drain():
            if self._record_detection(event):
                added += 1
        return added

    def _record_detection(self, event: DetectionEvent) -> bool:
        with self._ledger_lock:
            checkpoint = self.ledger.active_checkpoint
            ok = self.ledger.add_plate(event.plate, checkpoint)
            self._update_gauges()
        ledger_plates_total.labels(result="added" if ok else "rejected").inc()
        return ok

    def start_scanning(self) -> bool:
        """Escaneo continuo cada scan_interval. Requiere checkpoint activo."""
        if self.ledger.active_checkpoint is None:
            logger.warning("Selecciona Loja o Lava Jato antes de escanear")
            return False
        if self._scan_thread and self._scan_thread.is_alive():
            return True
        if not self.camera.is_active and not self.start_camera():
            return False

        self.stop_event.clear()
        self._scan_thread = threading.Thread(target=self._scan_loop, name="scanner", daemon=True)
        self._scan_thread.start()
        logger.info(f"📷 Escaneo iniciado ({self.ledger.active_checkpoint.value})")
        return True

    def stop_scanning(self) -> None:
        self.stop_event.set()
        if self._scan_thread and self._scan_thread is not threading.current_thread():
            self._scan_thread.join(timeout=self.scan_interval + 2)
        self._scan_thread = None

    @property
    def is_scanning(self) -> bool:
        return bool(self._scan_thread and self._scan_thread.is_alive())

    def _scan_loop(self) -> None:
        while not self.stop_event.is_set():
            try:
                self.scan_once()
            except Exception:
                logger.exception("Error en el ciclo de escaneo")
            self.stop_event.wait(self.scan_interval)
        logger.info("Ciclo de escaneo terminado")

    def shutdown(self) -> None:
        self.stop_scanning()
        self.stop_camera()
        self.coordinator.reset_last_plate()

    # ---------------------------------------------------------
    # LEDGER
    # ---------------------------------------------------------
    def add_manual_plate(self, raw_text: str, checkpoint: "Checkpoint | str | None" = None) -> bool:
        with self._ledger_lock:
            ok = self.ledger.add_plate(raw_text, checkpoint)
            self._update_gauges()
        ledger_plates_total.labels(result="added" if ok else "rejected").inc()
        return ok

    def remove_plate(self, record_id: str) -> bool:
        with self._ledger_lock:
            ok = self.ledger.remove_plate(record_id)
            self._update_gauges()
        return ok

    def update_record(self, record_id: str, updates: Dict[str, Any]) -> bool:
        with self._ledger_lock:
            return self.ledger.update_record(record_id, updates)

    def fill_checkpoint(self, checkpoint: "Checkpoint | str") -> int:
        with self._ledger_lock:
            return self.ledger.fill_checkpoint(checkpoint)

    def clear_session(self) -> None:
        with self._ledger_lock:
            self.ledger.clear()
            self._update_gauges()
        self.coordinator.reset_last_plate()

    def finalize(self, created_by: str = "Sistema", notes: Optional[str] = None) -> Optional[PhysicalCountReport]:
        with self._ledger_lock:
            report = self.ledger.finalize(created_by=created_by, notes=notes)
            self._update_gauges()
        if report is not None:
            self.coordinator.reset_last_plate()
        return report

    def records(self) -> List[SessionPlateRecord]:
        with self._ledger_lock:
            return self.ledger.records

    def stats(self) -> SessionStats:
        with self._ledger_lock:
            return self.ledger.stats()

    def _update_gauges(self) -> None:
        session_plates.set(len(self.ledger.records))

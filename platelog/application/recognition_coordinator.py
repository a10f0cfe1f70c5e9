import logging
import threading
import time
import uuid
from typing import List, Optional

from platelog.monitoring.metrics import (
    recognition_requests_total, recognition_latency,
    plates_detected_total, duplicate_detections_total,
    cache_hits_total, cache_size,
)

from platelog.domain.errors import RecognitionError, ServiceError
from platelog.domain.Interfaces.deduplicator import IDeduplicator
from platelog.domain.Interfaces.event_publisher import IEventPublisher
from platelog.domain.Interfaces.feedback import IFeedback
from platelog.domain.Interfaces.plate_recognizer import IPlateRecognizer
from platelog.domain.Interfaces.text_normalizer import ITextNormalizer
from platelog.domain.Models.detection_result import DetectionEvent
from platelog.domain.Models.frame import CapturedFrame
from platelog.domain.Models.plate import RecognizedPlate
from platelog.domain.Services.deduplicator_service import LastPlateDeduplicator
from platelog.domain.Services.plate_cache import PlateCache
from platelog.infrastructure.Normalizer.plate_normalizer import PlateNormalizer

logger = logging.getLogger(__name__)


class RecognitionCoordinator:
    """
    Convierte un frame en una detección confirmada, una vez por placa nueva.

    - como máximo un reconocimiento en curso: una llamada concurrente
      devuelve [] de inmediato (no se encola ni cancela la anterior)
    - filtra por confidence >= threshold y toma el candidato de mayor score;
      solo su texto se normaliza (clave de caché y dedup), la lista
      devuelta es la del servicio sin modificar
    - caché: hit es informativo, miss inserta
    - si la placa es igual a la última confirmada no se publica evento
      ni se reproduce feedback, pero igual se devuelven los candidatos
    - errores del servicio quedan en last_error; nunca se propagan
    """

    def __init__(
        self,
        recognizer: IPlateRecognizer,
        cache: PlateCache,
        publisher: Optional[IEventPublisher] = None,
        feedback: Optional[IFeedback] = None,
        deduplicator: Optional[IDeduplicator] = None,
        normalizer: Optional[ITextNormalizer] = None,
        confidence_threshold: float = 0.7,
        region: Optional[str] = None,
    ):
        self.recognizer = recognizer
        self.cache = cache
        self.publisher = publisher
        self.feedback = feedback
        self.deduplicator = deduplicator or LastPlateDeduplicator()
        self.normalizer = normalizer or PlateNormalizer()
        self.confidence_threshold = confidence_threshold
        self.region = region

        self.last_error: Optional[RecognitionError] = None
        self.last_detected_plate: Optional[str] = None

        self._in_flight = threading.Lock()

    @property
    def is_processing(self) -> bool:
        return self._in_flight.locked()

    # ---------------------------------------------------------
    # RECOGNIZE
    # ---------------------------------------------------------
    def recognize(self, frame: CapturedFrame) -> List[RecognizedPlate]:
        if not self._in_flight.acquire(blocking=False):
            recognition_requests_total.labels(outcome="busy").inc()
            logger.debug("Reconocimiento en curso, frame ignorado")
            return []

        try:
            self.last_error = None
            plates = self._call_service(frame)
            if plates is None:
                return []

            valid = [p for p in plates if p.confidence >= self.confidence_threshold]
            if not valid:
                recognition_requests_total.labels(outcome="below_threshold" if plates else "empty").inc()
                return []

            recognition_requests_total.labels(outcome="ok").inc()
            best = max(valid, key=lambda p: p.confidence)
            self._confirm(best, valid, frame)
            return valid
        finally:
            self._in_flight.release()

    def reset_last_plate(self) -> None:
        self.deduplicator.reset()
        self.last_detected_plate = None

    # ---------------------------------------------------------
    # HELPERS
    # ---------------------------------------------------------
    def _call_service(self, frame: CapturedFrame) -> Optional[List[RecognizedPlate]]:
        t0 = time.perf_counter()
        try:
            return self.recognizer.recognize(frame, self.region)
        except RecognitionError as e:
            self.last_error = e
            outcome = type(e).__name__.replace("Error", "").lower() + "_error"
            recognition_requests_total.labels(outcome=outcome).inc()
            logger.warning(f"Error de reconocimiento ({type(e).__name__}): {e}")
            return None
        except Exception as e:
            self.last_error = ServiceError(f"Respuesta inválida del reconocedor: {e}")
            recognition_requests_total.labels(outcome="service_error").inc()
            logger.exception("Error inesperado en el reconocedor")
            return None
        finally:
            recognition_latency.set(time.perf_counter() - t0)

    def _confirm(self, best: RecognizedPlate, valid: List[RecognizedPlate], frame: CapturedFrame) -> None:
        plate = self.normalizer.normalize(best.text)
        if not plate:
            logger.debug(f"Candidato sin texto de placa: {best.text!r}")
            return

        cache_hit = self.cache.has(plate)
        if cache_hit:
            cache_hits_total.inc()
        else:
            self.cache.put(plate, best.region, best.confidence)
            cache_size.set(len(self.cache))

        if self.deduplicator.is_duplicate(plate):
            duplicate_detections_total.inc()
            logger.debug(f"Placa {plate} repetida, sin notificar")
            return

        self.last_detected_plate = plate
        plates_detected_total.inc()
        logger.info(f"🚗 Placa detectada: {plate} ({best.confidence:.2f}{', caché' if cache_hit else ''})")

        event = DetectionEvent(
            event_id=str(uuid.uuid4()),
            plate=plate,
            confidence=best.confidence,
            region=best.region,
            cache_hit=cache_hit,
            detected_at=time.time(),
            source=getattr(frame, "source", None),
            candidates=list(valid),
        )
        if self.publisher is not None:
            try:
                self.publisher.publish(event)
            except Exception:
                logger.exception(f"Error publicando la detección de {plate}")

        self._play_feedback()

    def _play_feedback(self) -> None:
        if self.feedback is None:
            return
        try:
            self.feedback.beep()
        except Exception:
            logger.debug("Beep falló", exc_info=True)
        try:
            self.feedback.vibrate(200)
        except Exception:
            logger.debug("Vibración falló", exc_info=True)

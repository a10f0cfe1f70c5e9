import logging
import queue
from typing import List, Optional

from platelog.domain.Interfaces.event_publisher import IEventPublisher
from platelog.domain.Models.detection_result import DetectionEvent

logger = logging.getLogger(__name__)


class QueueEventPublisher(IEventPublisher):
    """
    Canal en proceso para DetectionEvent.
    Cola acotada en modo last-wins: si está llena se descarta el evento más viejo.
    """

    def __init__(self, maxsize: int = 50):
        self.queue: "queue.Queue[DetectionEvent]" = queue.Queue(maxsize=maxsize)

    def publish(self, event: DetectionEvent) -> None:
        try:
            self.queue.put_nowait(event)
        except queue.Full:
            try:
                dropped = self.queue.get_nowait()
                logger.warning(f"Cola de detecciones llena, descartando {dropped.plate}")
            except queue.Empty:
                pass
            self.queue.put_nowait(event)

    def get(self, timeout: Optional[float] = None) -> Optional[DetectionEvent]:
        try:
            if timeout is None:
                return self.queue.get_nowait()
            return self.queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def drain(self) -> List[DetectionEvent]:
        events = []
        while True:
            ev = self.get()
            if ev is None:
                return events
            events.append(ev)

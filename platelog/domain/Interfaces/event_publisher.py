from abc import ABC, abstractmethod
from platelog.domain.Models.detection_result import DetectionEvent


class IEventPublisher(ABC):
    """
    Canal por el que el coordinador publica placas confirmadas.
    """
    @abstractmethod
    def publish(self, event: DetectionEvent) -> None:
        """Publica un DetectionEvent."""
        pass

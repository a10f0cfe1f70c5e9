import logging
import os

logger = logging.getLogger(__name__)


class SysfsTorch:
    """
    Linterna vía la clase LED de Linux (/sys/class/leds/<led>/brightness).
    Best-effort: set() devuelve False si el LED no existe o no hay permisos.
    """

    def __init__(self, brightness_path: str):
        self.brightness_path = brightness_path

    @property
    def available(self) -> bool:
        return os.path.exists(self.brightness_path) and os.access(self.brightness_path, os.W_OK)

    def _max_brightness(self) -> str:
        max_path = os.path.join(os.path.dirname(self.brightness_path), "max_brightness")
        try:
            with open(max_path) as f:
                return f.read().strip() or "1"
        except OSError:
            return "1"

    def set(self, enabled: bool) -> bool:
        value = self._max_brightness() if enabled else "0"
        try:
            with open(self.brightness_path, "w") as f:
                f.write(value)
        except OSError as e:
            logger.debug("Linterna no disponible (%s): %s", self.brightness_path, e)
            return False
        return True

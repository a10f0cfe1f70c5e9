# platelog/infrastructure/Messaging/background_writer.py
import logging
import queue
import threading
import time
from typing import List, Optional

from platelog.domain.Interfaces.plate_history import IPlateHistory
from platelog.domain.Models.cached_plate import PlateSighting
from platelog.domain.Models.session_record import PlateLogEntry

logger = logging.getLogger(__name__)


class BackgroundHistoryWriter(IPlateHistory):
    """
    Wrapper fire-and-forget sobre un IPlateHistory.

    - append() solo encola; un hilo interno escribe en el almacén remoto
    - reintenta hasta N veces con backoff exponencial si el error parece
      transitorio (red, timeout, conexión)
    - recent_plates() se delega de forma síncrona
    """

    def __init__(
        self,
        inner: IPlateHistory,
        attempts: int = 3,
        base_delay: float = 0.5,
        maxsize: int = 200,
    ):
        self.inner = inner
        self.attempts = max(1, attempts)
        self.base_delay = base_delay

        self.write_queue: "queue.Queue[Optional[PlateLogEntry]]" = queue.Queue(maxsize=maxsize)
        self.stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

        self.metrics = {"written": 0, "failed": 0, "dropped": 0}

    # ---------------------------------------------------------
    # START / STOP
    # ---------------------------------------------------------
    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self.stop_event.clear()
        self._thread = threading.Thread(target=self._write_loop, name="history-writer", daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 5.0) -> None:
        self.stop_event.set()
        try:
            # Sentinela para despertar el loop
            self.write_queue.put_nowait(None)
        except queue.Full:
            pass
        if self._thread:
            self._thread.join(timeout=timeout)
        logger.info("History writer detenido. Métricas: %s", self.metrics)

    # ---------------------------------------------------------
    # IPlateHistory
    # ---------------------------------------------------------
    def recent_plates(self, days: int = 30, limit: int = 500) -> List[PlateSighting]:
        return self.inner.recent_plates(days=days, limit=limit)

    def append(self, entry: PlateLogEntry) -> None:
        try:
            self.write_queue.put_nowait(entry)
        except queue.Full:
            self.metrics["dropped"] += 1
            logger.warning("write_queue llena, descartando placa %s", entry.plate)

    def flush(self, timeout: float = 5.0) -> bool:
        """Espera a que la cola se vacíe (útil en tests y al apagar)."""
        deadline = time.time() + timeout
        while time.time() < deadline:
            if self.write_queue.unfinished_tasks == 0:
                return True
            time.sleep(0.01)
        return False

    # ---------------------------------------------------------
    # WRITE LOOP
    # ---------------------------------------------------------
    def _write_loop(self) -> None:
        while not self.stop_event.is_set():
            try:
                entry = self.write_queue.get(timeout=1)
            except queue.Empty:
                continue

            if entry is None:
                self.write_queue.task_done()
                break

            try:
                self._write_with_retry(entry)
            except Exception:
                self.metrics["failed"] += 1
                logger.exception("Error registrando la placa %s en el almacén remoto", entry.plate)
            finally:
                self.write_queue.task_done()

        logger.info("Write loop terminado")

    def _is_transient_error(self, exc: Exception) -> bool:
        """
        Determina si el error amerita reintento.
        Ejemplo: timeouts, desconexión de la BD, errores de red.
        """
        msg = str(exc).lower()
        transient_keywords = [
            "timeout",
            "timed out",
            "connection",
            "unreachable",
            "network",
            "database is locked",
            "server closed",
            "could not connect",
        ]
        return any(k in msg for k in transient_keywords)

    def _write_with_retry(self, entry: PlateLogEntry) -> None:
        last_exc = None
        for i in range(1, self.attempts + 1):
            try:
                self.inner.append(entry)
                self.metrics["written"] += 1
                logger.debug("Append OK (attempt %d/%d)", i, self.attempts)
                return
            except Exception as e:
                last_exc = e
                if not self._is_transient_error(e):
                    # error permanente -> no reintentar
                    logger.error("Non-retryable append error: %s", e)
                    raise
                if i == self.attempts:
                    break
                wait = self.base_delay * (2 ** (i - 1))
                logger.warning("Append attempt %d failed (transient), retrying in %.2fs: %s", i, wait, e)
                if self.stop_event.wait(wait):
                    break

        logger.error("❌ All append attempts failed after %d retries: %s", self.attempts, last_exc)
        raise last_exc

# platelog/domain/Services/plate_cache.py
from __future__ import annotations
import json
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Iterable, List, Optional

from platelog.domain.errors import StorageError
from platelog.domain.Interfaces.key_value_store import IKeyValueStore
from platelog.domain.Interfaces.plate_history import IPlateHistory
from platelog.domain.Models.cached_plate import CachedPlateEntry, PlateSighting

logger = logging.getLogger(__name__)

CACHE_KEY = "plate_cache_v1"
MAX_CACHE_SIZE = 500
CACHE_EXPIRY_DAYS = 30


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PlateCache:
    """
    Caché local de placas ya vistas, acotada en tiempo y tamaño.

    - clave: placa normalizada (mayúsculas, sin espacios)
    - expulsión por orden de inserción: un put() sobre una clave existente
      refresca la entrada pero no cambia su posición
    - cada mutación se persiste en el IKeyValueStore; si falla, se loguea
      y el estado en memoria sigue siendo el válido
    - la sincronización remota solo agrega placas que no existen
    """

    def __init__(
        self,
        store: IKeyValueStore,
        max_size: int = MAX_CACHE_SIZE,
        retention_days: int = CACHE_EXPIRY_DAYS,
        clock: Callable[[], datetime] = _utcnow,
        storage_key: str = CACHE_KEY,
    ):
        self.store = store
        self.max_size = max_size
        self.retention_days = retention_days
        self.clock = clock
        self.storage_key = storage_key

        self._entries: Dict[str, CachedPlateEntry] = {}

    # ---------------------------------------------------------
    #  CARGA / PERSISTENCIA
    # ---------------------------------------------------------
    def load(self) -> int:
        """
        Reconstruye la caché desde el almacenamiento local descartando
        las entradas expiradas. Devuelve el tamaño resultante.
        """
        self._entries = {}
        try:
            raw = self.store.get(self.storage_key)
        except StorageError:
            logger.exception("Error cargando la caché de placas")
            return 0

        if raw:
            try:
                parsed = json.loads(raw)
                for key, value in parsed.items():
                    entry = CachedPlateEntry.from_dict(value)
                    self._entries[self._key(key)] = entry
            except (ValueError, KeyError, TypeError, AttributeError):
                logger.exception("Caché de placas corrupta, se descarta")
                self._entries = {}

        expired = self._drop_expired()
        if expired:
            self._persist()

        logger.info(f"Caché de placas cargada: {len(self._entries)} entradas ({expired} expiradas)")
        return len(self._entries)

    def _persist(self) -> None:
        try:
            payload = json.dumps({k: e.to_dict() for k, e in self._entries.items()})
            self.store.set(self.storage_key, payload)
        except StorageError:
            logger.exception("Error guardando la caché de placas")

    # ---------------------------------------------------------
    #  LOOKUPS
    # ---------------------------------------------------------
    @staticmethod
    def _key(plate: str) -> str:
        return (plate or "").strip().upper()

    def has(self, plate: str) -> bool:
        return self._key(plate) in self._entries

    def get(self, plate: str) -> Optional[CachedPlateEntry]:
        return self._entries.get(self._key(plate))

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, plate: str) -> bool:
        return self.has(plate)

    def plates(self) -> List[str]:
        """Placas en orden de inserción (la primera es la próxima a expulsar)."""
        return list(self._entries.keys())

    # ---------------------------------------------------------
    #  MUTACIONES
    # ---------------------------------------------------------
    def put(self, plate: str, region: str = "BR", confidence: float = 1.0) -> CachedPlateEntry:
        key = self._key(plate)
        entry = CachedPlateEntry(
            plate=key,
            region=region,
            last_seen=self.clock(),
            confidence=confidence,
        )
        self._entries[key] = entry

        if len(self._entries) > self.max_size:
            oldest = next(iter(self._entries))
            self._entries.pop(oldest)
            logger.debug(f"Caché llena, expulsada {oldest}")

        self._persist()
        return entry

    def sync_from_remote(self, entries: Iterable[PlateSighting]) -> int:
        """
        Reconciliación aditiva: inserta las placas remotas que no existen
        localmente. Nunca sobrescribe ni elimina; deja de insertar cuando
        la caché llega a max_size. Devuelve cuántas se agregaron.
        """
        cutoff = self._cutoff()
        added = 0

        for sighting in entries:
            key = self._key(sighting.plate)
            if not key or key in self._entries:
                continue
            if len(self._entries) >= self.max_size:
                logger.debug("Caché llena durante la sincronización, se ignora el resto")
                break

            seen_at = sighting.seen_at
            if seen_at.tzinfo is None:
                seen_at = seen_at.replace(tzinfo=timezone.utc)
            if seen_at < cutoff:
                continue

            self._entries[key] = CachedPlateEntry(
                plate=key,
                region="BR",
                last_seen=seen_at,
                confidence=1.0,
            )
            added += 1

        if added:
            self._persist()
        return added

    def sync_with(self, history: IPlateHistory, days: int = 30, limit: int = MAX_CACHE_SIZE) -> int:
        """Lee las placas recientes del almacén remoto y las agrega."""
        try:
            sightings = history.recent_plates(days=days, limit=limit)
        except Exception:
            logger.exception("Error sincronizando la caché con el almacén remoto")
            return 0

        added = self.sync_from_remote(sightings)
        logger.info(f"Caché sincronizada: {added} placas nuevas de {len(sightings)} remotas")
        return added

    def evict_expired(self) -> int:
        removed = self._drop_expired()
        if removed:
            self._persist()
        return removed

    def clear(self) -> None:
        self._entries = {}
        try:
            self.store.remove(self.storage_key)
        except StorageError:
            logger.exception("Error limpiando la caché de placas")

    def stats(self) -> dict:
        return {
            "size": len(self._entries),
            "max_size": self.max_size,
            "expiry_days": self.retention_days,
        }

    # ---------------------------------------------------------
    #  HELPERS
    # ---------------------------------------------------------
    def _cutoff(self) -> datetime:
        return self.clock() - timedelta(days=self.retention_days)

    def _drop_expired(self) -> int:
        cutoff = self._cutoff()
        expired = [k for k, e in self._entries.items() if e.last_seen <= cutoff]
        for k in expired:
            self._entries.pop(k, None)
        return len(expired)

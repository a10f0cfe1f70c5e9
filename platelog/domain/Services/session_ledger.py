# platelog/domain/Services/session_ledger.py
from __future__ import annotations
import json
import logging
import re
import secrets
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from platelog.domain.errors import StorageError
from platelog.domain.Interfaces.key_value_store import IKeyValueStore
from platelog.domain.Interfaces.plate_history import IPlateHistory
from platelog.domain.Interfaces.report_repository import IReportRepository
from platelog.domain.Models.report import PhysicalCountReport
from platelog.domain.Models.session_record import (
    Checkpoint,
    PlateLogEntry,
    SessionPlateRecord,
    SessionStats,
    parse_timestamp,
    to_local_naive,
)

logger = logging.getLogger(__name__)

STORAGE_KEY = "baty-car-plates"
MIN_PLATE_LENGTH = 7

_NON_ALNUM = re.compile(r"[^A-Z0-9]")
_UPDATABLE_FIELDS = {"plate", "timestamp", "loja", "lava_jato"}


def _new_record_id(now: datetime) -> str:
    return f"{int(now.timestamp() * 1000)}-{uuid.uuid4().hex[:9]}"


class SessionLedger:
    """
    Registro autoritativo de las placas de la sesión de trabajo (el día).

    Reglas:
    - como máximo un registro por placa
    - add_plate es idempotente por checkpoint: si la placa ya tiene el flag
      del checkpoint activo, se rechaza
    - al cargar, una sesión persistida cuyo registro más antiguo es de otro
      día se descarta completa

    El append remoto es best-effort: si falla se loguea y el estado local
    no se revierte.
    """

    def __init__(
        self,
        store: IKeyValueStore,
        history: Optional[IPlateHistory] = None,
        reports: Optional[IReportRepository] = None,
        min_length: int = MIN_PLATE_LENGTH,
        clock: Callable[[], datetime] = datetime.now,
        storage_key: str = STORAGE_KEY,
    ):
        self.store = store
        self.history = history
        self.reports = reports
        self.min_length = min_length
        self.clock = clock
        self.storage_key = storage_key

        self.active_checkpoint: Optional[Checkpoint] = None
        self._records: List[SessionPlateRecord] = []

    # ---------------------------------------------------------
    #  CARGA / PERSISTENCIA
    # ---------------------------------------------------------
    def load(self) -> int:
        self._records = []
        try:
            raw = self.store.get(self.storage_key)
        except StorageError:
            logger.exception("Error cargando la sesión de placas")
            return 0

        if not raw:
            return 0

        try:
            self._records = [SessionPlateRecord.from_dict(d) for d in json.loads(raw)]
        except (ValueError, KeyError, TypeError):
            logger.exception("Sesión persistida corrupta, se descarta")
            self._records = []
            return 0

        if self._records:
            oldest = min(r.timestamp for r in self._records)
            today = to_local_naive(self.clock()).date()
            if oldest.date() != today:
                logger.info(
                    f"🗓️ Sesión del {oldest.date().isoformat()} descartada "
                    f"({len(self._records)} placas), hoy es {today.isoformat()}"
                )
                self.clear()
                return 0

        logger.info(f"Sesión cargada: {len(self._records)} placas")
        return len(self._records)

    def _save(self) -> None:
        try:
            self.store.set(self.storage_key, json.dumps([r.to_dict() for r in self._records]))
        except StorageError:
            logger.exception("Error guardando la sesión de placas")

    # ---------------------------------------------------------
    #  API PRINCIPAL
    # ---------------------------------------------------------
    @staticmethod
    def normalize(raw_text: str) -> str:
        return _NON_ALNUM.sub("", (raw_text or "").upper())

    @property
    def records(self) -> List[SessionPlateRecord]:
        return [replace(r) for r in self._records]

    def find(self, plate: str) -> Optional[SessionPlateRecord]:
        norm = self.normalize(plate)
        for r in self._records:
            if r.plate == norm:
                return replace(r)
        return None

    def set_active_checkpoint(self, checkpoint: "Checkpoint | str | None") -> None:
        self.active_checkpoint = Checkpoint.parse(checkpoint)

    def add_plate(self, raw_text: str, checkpoint: "Checkpoint | str | None" = None) -> bool:
        """
        Registra una placa en el checkpoint indicado (o el activo).
        Devuelve False si la placa es demasiado corta, no hay checkpoint,
        o la placa ya tiene ese checkpoint marcado en la sesión.
        """
        plate = self.normalize(raw_text)
        if len(plate) < self.min_length:
            logger.debug(f"Placa rechazada por longitud: {raw_text!r}")
            return False

        cp = Checkpoint.parse(checkpoint) if checkpoint is not None else self.active_checkpoint
        if cp is None:
            logger.debug(f"Placa {plate} rechazada: sin checkpoint activo")
            return False

        now = to_local_naive(self.clock())
        record = next((r for r in self._records if r.plate == plate), None)

        if record is not None:
            if record.has(cp):
                logger.info(f"Placa {plate} ya fue registrada en {cp.value}")
                return False
            record.mark(cp)
            record.timestamp = now
        else:
            record = SessionPlateRecord(id=_new_record_id(now), plate=plate, timestamp=now)
            record.mark(cp)
            self._records.insert(0, record)

        self._save()
        self._append_remote(record)
        return True

    def remove_plate(self, record_id: str) -> bool:
        before = len(self._records)
        self._records = [r for r in self._records if r.id != record_id]
        self._save()
        return len(self._records) != before

    def update_record(self, record_id: str, updates: Dict[str, Any]) -> bool:
        changes = {k: v for k, v in updates.items() if k in _UPDATABLE_FIELDS}
        ignored = set(updates) - set(changes)
        if ignored:
            logger.warning(f"Campos ignorados en update_record: {sorted(ignored)}")

        index = next((i for i, r in enumerate(self._records) if r.id == record_id), None)
        if index is None:
            return False

        if "plate" in changes:
            plate = self.normalize(changes["plate"])
            if len(plate) < self.min_length:
                logger.warning(f"update_record: placa inválida {changes['plate']!r}")
                return False
            if any(r.plate == plate and r.id != record_id for r in self._records):
                logger.warning(f"update_record: la placa {plate} ya está en otro registro")
                return False
            changes["plate"] = plate

        if "timestamp" in changes:
            try:
                changes["timestamp"] = parse_timestamp(changes["timestamp"])
            except (TypeError, ValueError):
                logger.warning(f"update_record: timestamp inválido {changes['timestamp']!r}")
                return False

        for flag in ("loja", "lava_jato"):
            if flag in changes:
                changes[flag] = bool(changes[flag])

        self._records[index] = replace(self._records[index], **changes)
        self._save()
        return True

    def clear(self) -> None:
        self._records = []
        try:
            self.store.remove(self.storage_key)
        except StorageError:
            logger.exception("Error limpiando la sesión de placas")

    def fill_checkpoint(self, checkpoint: "Checkpoint | str") -> int:
        """Marca el checkpoint en todos los registros (override masivo)."""
        cp = Checkpoint.parse(checkpoint)
        if cp is None:
            return 0
        for r in self._records:
            r.mark(cp)
        self._save()
        return len(self._records)

    def stats(self) -> SessionStats:
        records = self._records
        return SessionStats(
            total=len(records),
            unique=len({r.plate for r in records}),
            loja=sum(1 for r in records if r.loja),
            lava_jato=sum(1 for r in records if r.lava_jato),
            both=sum(1 for r in records if r.loja and r.lava_jato),
            neither=sum(1 for r in records if not r.loja and not r.lava_jato),
        )

    # ---------------------------------------------------------
    #  FINALIZAR (contagem física)
    # ---------------------------------------------------------
    def finalize(self, created_by: str = "Sistema", notes: Optional[str] = None) -> Optional[PhysicalCountReport]:
        """
        Guarda la contagem física de la sesión y la limpia.
        Si no hay repositorio, la sesión está vacía o el guardado falla,
        devuelve None y la sesión se conserva.
        """
        if self.reports is None:
            logger.warning("finalize sin repositorio de reportes configurado")
            return None
        if not self._records:
            return None

        now = self.clock()
        records = self._records
        report = PhysicalCountReport(
            report_date=now,
            month_year=now.strftime("%Y-%m"),
            share_token=secrets.token_urlsafe(16),
            plates_data=[r.to_dict() for r in records],
            total_plates=len(records),
            loja_count=sum(1 for r in records if r.loja and not r.lava_jato),
            lava_jato_count=sum(1 for r in records if r.lava_jato and not r.loja),
            both_count=sum(1 for r in records if r.loja and r.lava_jato),
            neither_count=sum(1 for r in records if not r.loja and not r.lava_jato),
            created_by=created_by,
            notes=notes,
        )

        try:
            saved = self.reports.save(report)
        except Exception:
            logger.exception("Error guardando la contagem física, la sesión se conserva")
            return None

        logger.info(f"📋 Contagem física guardada ({report.total_plates} placas) token={saved.share_token}")
        self.clear()
        return saved

    # ---------------------------------------------------------
    #  HELPERS
    # ---------------------------------------------------------
    def _append_remote(self, record: SessionPlateRecord) -> None:
        if self.history is None:
            return

        ts = record.timestamp
        entry = PlateLogEntry(
            plate=record.plate,
            timestamp=ts.astimezone(timezone.utc),
            loja=record.loja,
            lava_jato=record.lava_jato,
            session_date=ts.date(),
        )
        try:
            self.history.append(entry)
        except Exception:
            logger.exception(f"Error registrando la placa {record.plate} en el almacén remoto")

# platelog/domain/Models/session_record.py
from dataclasses import dataclass, asdict
from datetime import datetime, date
from enum import Enum
from typing import Optional


def to_local_naive(ts: datetime) -> datetime:
    """Hora local sin tzinfo, el formato de los timestamps de la sesión."""
    if ts.tzinfo is None:
        return ts
    return ts.astimezone().replace(tzinfo=None)


def parse_timestamp(value: "str | datetime") -> datetime:
    if isinstance(value, datetime):
        return to_local_naive(value)
    if isinstance(value, str):
        return to_local_naive(datetime.fromisoformat(value.replace("Z", "+00:00")))
    raise TypeError(f"Timestamp inválido: {value!r}")


class Checkpoint(str, Enum):
    """Estaciones físicas por las que pasa un vehículo."""
    LOJA = "loja"
    LAVA_JATO = "lavaJato"

    @staticmethod
    def parse(value: "str | Checkpoint | None") -> Optional["Checkpoint"]:
        if value is None or isinstance(value, Checkpoint):
            return value
        key = str(value).replace("_", "").replace(" ", "").lower()
        for cp in Checkpoint:
            if key == cp.value.lower():
                return cp
        raise ValueError(f"Checkpoint desconocido: {value}")


@dataclass
class SessionPlateRecord:
    """
    Registro de una placa dentro de la sesión actual.
    Como máximo un registro por texto de placa.
    """
    id: str
    plate: str
    timestamp: datetime
    loja: bool = False
    lava_jato: bool = False

    def has(self, checkpoint: Checkpoint) -> bool:
        return self.loja if checkpoint is Checkpoint.LOJA else self.lava_jato

    def mark(self, checkpoint: Checkpoint) -> None:
        if checkpoint is Checkpoint.LOJA:
            self.loja = True
        else:
            self.lava_jato = True

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "plate": self.plate,
            "timestamp": self.timestamp.isoformat(),
            "loja": self.loja,
            "lavaJato": self.lava_jato,
        }

    @staticmethod
    def from_dict(data: dict) -> "SessionPlateRecord":
        return SessionPlateRecord(
            id=str(data["id"]),
            plate=str(data["plate"]),
            timestamp=parse_timestamp(data["timestamp"]),
            loja=bool(data.get("loja", False)),
            lava_jato=bool(data.get("lavaJato", False)),
        )


@dataclass(frozen=True)
class SessionStats:
    total: int
    unique: int
    loja: int
    lava_jato: int
    both: int
    neither: int

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class PlateLogEntry:
    """Fila append-only que se escribe en el almacén remoto."""
    plate: str
    timestamp: datetime
    loja: bool
    lava_jato: bool
    session_date: date

# platelog/infrastructure/Database/plate_history_repository.py
from datetime import datetime, timedelta, timezone
from typing import Callable, List
from sqlalchemy.orm import sessionmaker

from platelog.domain.Interfaces.plate_history import IPlateHistory
from platelog.domain.Models.cached_plate import PlateSighting
from platelog.domain.Models.session_record import PlateLogEntry
from platelog.infrastructure.Database.entities.plate_entity import PlateEntity


def _as_utc(value: datetime) -> datetime:
    # SQLite devuelve datetimes naive aunque la columna sea timezone=True
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class PlateHistoryRepository(IPlateHistory):
    """Log remoto de placas usando SQLAlchemy."""

    def __init__(
        self,
        session_factory: sessionmaker,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.session_factory = session_factory
        self.clock = clock

    def recent_plates(self, days: int = 30, limit: int = 500) -> List[PlateSighting]:
        since = self.clock() - timedelta(days=days)
        with self.session_factory() as db:
            rows = (
                db.query(PlateEntity.plate_number, PlateEntity.created_at)
                .filter(PlateEntity.created_at >= since)
                .order_by(PlateEntity.created_at.desc())
                .limit(limit)
                .all()
            )
        return [PlateSighting(plate=p.upper(), seen_at=_as_utc(ts)) for p, ts in rows]

    def append(self, entry: PlateLogEntry) -> None:
        with self.session_factory() as db:
            db.add(PlateEntity(
                plate_number=entry.plate,
                created_at=_as_utc(entry.timestamp),
                loja=entry.loja,
                lava_jato=entry.lava_jato,
                session_date=entry.session_date,
            ))
            db.commit()

    def count(self) -> int:
        with self.session_factory() as db:
            return db.query(PlateEntity).count()

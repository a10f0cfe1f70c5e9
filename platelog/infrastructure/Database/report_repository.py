# platelog/infrastructure/Database/report_repository.py
import uuid
from datetime import datetime, timezone
from typing import List, Optional
from sqlalchemy.orm import sessionmaker

from platelog.domain.Interfaces.report_repository import IReportRepository
from platelog.domain.Models.report import PhysicalCountReport
from platelog.infrastructure.Database.entities.report_entity import PhysicalCountReportEntity


def _to_model(entity: PhysicalCountReportEntity) -> PhysicalCountReport:
    return PhysicalCountReport(
        id=entity.id,
        report_date=entity.report_date,
        month_year=entity.month_year,
        share_token=entity.share_token,
        plates_data=list(entity.plates_data or []),
        total_plates=entity.total_plates,
        loja_count=entity.loja_count,
        lava_jato_count=entity.lava_jato_count,
        both_count=entity.both_count,
        neither_count=entity.neither_count,
        created_by=entity.created_by,
        notes=entity.notes,
        created_at=entity.created_at,
    )


class ReportRepository(IReportRepository):
    """Contagens físicas persistidas usando SQLAlchemy."""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def save(self, report: PhysicalCountReport) -> PhysicalCountReport:
        entity = PhysicalCountReportEntity(
            id=report.id or str(uuid.uuid4()),
            report_date=report.report_date,
            month_year=report.month_year,
            share_token=report.share_token,
            plates_data=report.plates_data,
            total_plates=report.total_plates,
            loja_count=report.loja_count,
            lava_jato_count=report.lava_jato_count,
            both_count=report.both_count,
            neither_count=report.neither_count,
            created_by=report.created_by,
            notes=report.notes,
            created_at=report.created_at or datetime.now(timezone.utc),
        )
        with self.session_factory() as db:
            db.add(entity)
            db.commit()
            db.refresh(entity)
            return _to_model(entity)

    def get_by_token(self, share_token: str) -> Optional[PhysicalCountReport]:
        with self.session_factory() as db:
            entity = (
                db.query(PhysicalCountReportEntity)
                .filter(PhysicalCountReportEntity.share_token == share_token)
                .first()
            )
            return _to_model(entity) if entity else None

    def get_monthly(self, month_year: str) -> List[PhysicalCountReport]:
        with self.session_factory() as db:
            entities = (
                db.query(PhysicalCountReportEntity)
                .filter(PhysicalCountReportEntity.month_year == month_year)
                .order_by(PhysicalCountReportEntity.report_date.desc())
                .all()
            )
            return [_to_model(e) for e in entities]

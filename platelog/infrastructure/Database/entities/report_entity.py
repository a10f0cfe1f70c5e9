# platelog/infrastructure/Database/entities/report_entity.py
from sqlalchemy import Column, String, Integer, DateTime, JSON, Text
from platelog.infrastructure.Database.base import Base


class PhysicalCountReportEntity(Base):
    __tablename__ = "physical_count_reports"

    id = Column(String(36), primary_key=True)
    report_date = Column(DateTime(timezone=True), nullable=False)
    month_year = Column(String(7), nullable=False, index=True)
    share_token = Column(String(64), unique=True, nullable=False, index=True)
    plates_data = Column(JSON, nullable=False)
    total_plates = Column(Integer, nullable=False)
    loja_count = Column(Integer, nullable=False)
    lava_jato_count = Column(Integer, nullable=False)
    both_count = Column(Integer, nullable=False)
    neither_count = Column(Integer, nullable=False)
    created_by = Column(String(100), nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)

    def __repr__(self):
        return (
            f"<PhysicalCountReportEntity(id='{self.id}', month='{self.month_year}', "
            f"total={self.total_plates}, token='{self.share_token}')>"
        )

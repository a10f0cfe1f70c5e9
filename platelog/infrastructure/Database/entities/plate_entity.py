# platelog/infrastructure/Database/entities/plate_entity.py
from sqlalchemy import Column, String, Integer, Boolean, DateTime, Date
from platelog.infrastructure.Database.base import Base


class PlateEntity(Base):
    __tablename__ = "plates"

    id = Column(Integer, primary_key=True, autoincrement=True)
    plate_number = Column(String(16), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)
    loja = Column(Boolean, default=False)
    lava_jato = Column(Boolean, default=False)
    session_date = Column(Date, nullable=False, index=True)

    def __repr__(self):
        return (
            f"<PlateEntity(id={self.id}, plate='{self.plate_number}', "
            f"loja={self.loja}, lava_jato={self.lava_jato}, session_date={self.session_date})>"
        )

# platelog/infrastructure/Database/entities/kv_entity.py
from sqlalchemy import Column, String, Text, DateTime
from platelog.infrastructure.Database.base import LocalBase


class KeyValueEntity(LocalBase):
    __tablename__ = "kv_store"

    key = Column(String(100), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<KeyValueEntity(key='{self.key}', size={len(self.value or '')})>"

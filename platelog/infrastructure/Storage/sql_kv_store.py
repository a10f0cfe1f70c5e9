# platelog/infrastructure/Storage/sql_kv_store.py
import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from platelog.domain.errors import StorageError
from platelog.domain.Interfaces.key_value_store import IKeyValueStore
from platelog.infrastructure.Database.entities.kv_entity import KeyValueEntity

logger = logging.getLogger(__name__)


class SqlKeyValueStore(IKeyValueStore):
    """
    Blob store persistente usando SQLAlchemy (tabla kv_store en la BD local).
    Cada set/remove hace commit inmediato.
    """

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def get(self, key: str) -> Optional[str]:
        try:
            with self.session_factory() as db:
                entity = db.get(KeyValueEntity, key)
                return entity.value if entity else None
        except SQLAlchemyError as e:
            raise StorageError(f"No se pudo leer la clave {key}: {e}") from e

    def set(self, key: str, value: str) -> None:
        try:
            with self.session_factory() as db:
                entity = db.get(KeyValueEntity, key)
                if entity is None:
                    db.add(KeyValueEntity(key=key, value=value, updated_at=datetime.now(timezone.utc)))
                else:
                    entity.value = value
                    entity.updated_at = datetime.now(timezone.utc)
                db.commit()
        except SQLAlchemyError as e:
            raise StorageError(f"No se pudo guardar la clave {key}: {e}") from e

    def remove(self, key: str) -> None:
        try:
            with self.session_factory() as db:
                entity = db.get(KeyValueEntity, key)
                if entity is not None:
                    db.delete(entity)
                    db.commit()
        except SQLAlchemyError as e:
            raise StorageError(f"No se pudo borrar la clave {key}: {e}") from e

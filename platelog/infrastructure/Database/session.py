# platelog/infrastructure/Database/session.py
import logging
from typing import Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)


def _make_engine(url: str) -> Engine:
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        # En memoria: una sola conexión compartida o cada sesión vería una BD vacía
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(url, **kwargs)
    return create_engine(url, pool_pre_ping=True)


def create_session_factory(url: str, metadata=None, fallback_url: Optional[str] = None) -> sessionmaker:
    """
    Crea engine + sessionmaker para la BD indicada.
    Si no se puede conectar y hay fallback_url, usa ese SQLite local.
    Si se pasa metadata, crea las tablas.
    """
    try:
        engine = _make_engine(url)
        # Probar una conexión mínima
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        logger.info(f"✅ Conectado correctamente a la BD: {engine.url.render_as_string(hide_password=True)}")
    except Exception as e:
        if not fallback_url:
            raise
        logger.warning(f"⚠️ No se pudo conectar a la BD configurada. Usando fallback SQLite. Error: {e}")
        engine = _make_engine(fallback_url)
        logger.info("💾 Base local SQLite inicializada como fallback")

    if metadata is not None:
        metadata.create_all(bind=engine)

    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)

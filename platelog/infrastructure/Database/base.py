# platelog/infrastructure/Database/base.py
from sqlalchemy.orm import declarative_base

# Tablas del almacén relacional remoto (plates, physical_count_reports)
Base = declarative_base()

# Tablas del almacenamiento local del cliente (kv_store)
LocalBase = declarative_base()

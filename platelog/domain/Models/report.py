# platelog/domain/Models/report.py
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional


@dataclass
class PhysicalCountReport:
    """
    Contagem física de una sesión finalizada (loja / lava jato).
    """
    report_date: datetime
    month_year: str            # yyyy-MM
    share_token: str
    plates_data: List[dict]    # snapshot serializado de la sesión
    total_plates: int
    loja_count: int            # solo loja
    lava_jato_count: int       # solo lava jato
    both_count: int
    neither_count: int
    created_by: str = "Sistema"
    notes: Optional[str] = None
    id: Optional[str] = None
    created_at: Optional[datetime] = field(default=None)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "report_date": self.report_date.isoformat(),
            "month_year": self.month_year,
            "share_token": self.share_token,
            "plates_data": self.plates_data,
            "total_plates": self.total_plates,
            "loja_count": self.loja_count,
            "lava_jato_count": self.lava_jato_count,
            "both_count": self.both_count,
            "neither_count": self.neither_count,
            "created_by": self.created_by,
            "notes": self.notes,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

from abc import ABC, abstractmethod
from typing import List, Optional
from platelog.domain.Models.report import PhysicalCountReport


class IReportRepository(ABC):

    @abstractmethod
    def save(self, report: PhysicalCountReport) -> PhysicalCountReport:
        pass

    @abstractmethod
    def get_by_token(self, share_token: str) -> Optional[PhysicalCountReport]:
        pass

    @abstractmethod
    def get_monthly(self, month_year: str) -> List[PhysicalCountReport]:
        pass

"""Fixtures compartidos de la suite."""
import threading
from datetime import datetime, timedelta, timezone
from typing import List, Optional

import pytest

from platelog.domain.Interfaces.plate_history import IPlateHistory
from platelog.domain.Interfaces.plate_recognizer import IPlateRecognizer
from platelog.domain.Interfaces.report_repository import IReportRepository
from platelog.domain.Models.frame import CapturedFrame
from platelog.domain.Models.plate import RecognizedPlate
from platelog.infrastructure.Database.base import Base, LocalBase
from platelog.infrastructure.Database.entities import kv_entity, plate_entity, report_entity  # noqa: F401  registra las tablas
from platelog.infrastructure.Database.session import create_session_factory
from platelog.infrastructure.Storage.memory_kv_store import MemoryKeyValueStore


class FrozenClock:
    """Reloj controlable: clock() devuelve `now`, advance() lo mueve."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class FakeRecognizer(IPlateRecognizer):
    """
    Devuelve las respuestas programadas en orden (la última se repite).
    Una respuesta puede ser una excepción. Con `gate`, bloquea hasta que se libere.
    """

    def __init__(self, *responses, gate: Optional[threading.Event] = None):
        self.responses = list(responses) or [[]]
        self.gate = gate
        self.entered = threading.Event()
        self.calls = 0

    def recognize(self, frame, region=None) -> List[RecognizedPlate]:
        self.calls += 1
        self.entered.set()
        if self.gate is not None:
            self.gate.wait(timeout=5)
        response = self.responses[min(self.calls - 1, len(self.responses) - 1)]
        if isinstance(response, Exception):
            raise response
        return list(response)


class FakeHistory(IPlateHistory):
    def __init__(self, sightings=None, fail: Optional[Exception] = None):
        self.sightings = list(sightings or [])
        self.fail = fail
        self.entries = []

    def recent_plates(self, days=30, limit=500):
        if self.fail:
            raise self.fail
        return self.sightings[:limit]

    def append(self, entry):
        if self.fail:
            raise self.fail
        self.entries.append(entry)


class FakeReports(IReportRepository):
    def __init__(self, fail: Optional[Exception] = None):
        self.fail = fail
        self.saved = []

    def save(self, report):
        if self.fail:
            raise self.fail
        report.id = f"report-{len(self.saved) + 1}"
        self.saved.append(report)
        return report

    def get_by_token(self, share_token):
        return next((r for r in self.saved if r.share_token == share_token), None)

    def get_monthly(self, month_year):
        return [r for r in self.saved if r.month_year == month_year]


def plate(text: str, confidence: float = 0.9, region: str = "br") -> RecognizedPlate:
    return RecognizedPlate(text=text, confidence=confidence, region=region)


@pytest.fixture
def utc_clock():
    return FrozenClock(datetime(2026, 10, 17, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def local_clock():
    return FrozenClock(datetime(2026, 10, 17, 9, 30))


@pytest.fixture
def store():
    return MemoryKeyValueStore()


@pytest.fixture
def frame():
    return CapturedFrame(data=b"\xff\xd8\xff\xe0fake-jpeg", timestamp=0.0, source="test")


@pytest.fixture
def remote_sessions():
    return create_session_factory("sqlite://", metadata=Base.metadata)


@pytest.fixture
def local_sessions():
    return create_session_factory("sqlite://", metadata=LocalBase.metadata)

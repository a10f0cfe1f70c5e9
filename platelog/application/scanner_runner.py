import logging
from dataclasses import dataclass

from platelog.core.config import Settings, settings as default_settings
from platelog.application.recognition_coordinator import RecognitionCoordinator
from platelog.application.scanner_service import ScannerService

from platelog.domain.Interfaces.plate_recognizer import IPlateRecognizer
from platelog.domain.Services.plate_cache import PlateCache
from platelog.domain.Services.session_ledger import SessionLedger
from platelog.infrastructure.Camera.camera_factory import create_camera_stream
from platelog.infrastructure.Database.base import Base, LocalBase
from platelog.infrastructure.Database.plate_history_repository import PlateHistoryRepository
from platelog.infrastructure.Database.report_repository import ReportRepository
from platelog.infrastructure.Database.session import create_session_factory
from platelog.infrastructure.Feedback.device_feedback import DeviceFeedback, NullFeedback
from platelog.infrastructure.Messaging.background_writer import BackgroundHistoryWriter
from platelog.infrastructure.Messaging.queue_publisher import QueueEventPublisher
from platelog.infrastructure.Recognition.dummy_plate_recognizer import DummyPlateRecognizer
from platelog.infrastructure.Recognition.plate_recognizer_client import PlateRecognizerClient
from platelog.infrastructure.Storage.sql_kv_store import SqlKeyValueStore

logger = logging.getLogger(__name__)


@dataclass
class ScannerRuntime:
    scanner: ScannerService
    history_writer: BackgroundHistoryWriter
    reports: ReportRepository

    def close(self) -> None:
        self.scanner.shutdown()
        self.history_writer.flush(timeout=5.0)
        self.history_writer.stop()


def create_recognizer(settings: Settings) -> IPlateRecognizer:
    if settings.recognition_backend == "dummy":
        logger.info("Usando reconocedor dummy")
        return DummyPlateRecognizer()

    if not settings.recognition_api_token:
        logger.warning("⚠️ RECOGNITION_API_TOKEN no configurado")

    return PlateRecognizerClient(
        api_url=settings.recognition_api_url,
        api_token=settings.recognition_api_token,
        default_region=settings.recognition_region,
        timeout=settings.recognition_timeout,
        mercosul_only=settings.recognition_mercosul_only,
    )


def build_scanner(settings: Settings = default_settings) -> ScannerRuntime:
    """
    Construye una vez por proceso todos los componentes del cliente:
    almacenamiento local, almacén remoto, caché, ledger, coordinador y cámara.
    """
    local_sessions = create_session_factory(settings.local_db_url, metadata=LocalBase.metadata)
    remote_sessions = create_session_factory(
        settings.remote_db_url,
        metadata=Base.metadata,
        fallback_url="sqlite:///./platelog_remote.db",
    )

    store = SqlKeyValueStore(local_sessions)
    history = BackgroundHistoryWriter(
        PlateHistoryRepository(remote_sessions),
        attempts=settings.history_write_attempts,
        base_delay=settings.history_write_base_delay,
    )
    reports = ReportRepository(remote_sessions)

    cache = PlateCache(
        store,
        max_size=settings.cache_max_size,
        retention_days=settings.cache_retention_days,
    )
    cache.load()

    ledger = SessionLedger(
        store,
        history=history,
        reports=reports,
        min_length=settings.plate_min_length,
    )
    ledger.load()

    feedback = (
        DeviceFeedback(settings.feedback_player_command, settings.feedback_vibrate_command)
        if settings.feedback_enabled else NullFeedback()
    )

    events = QueueEventPublisher()
    coordinator = RecognitionCoordinator(
        recognizer=create_recognizer(settings),
        cache=cache,
        publisher=events,
        feedback=feedback,
        confidence_threshold=settings.confidence_threshold,
        region=settings.recognition_region,
    )

    scanner = ScannerService(
        camera=create_camera_stream(settings),
        coordinator=coordinator,
        ledger=ledger,
        cache=cache,
        events=events,
        scan_interval=settings.scan_interval,
        facing_mode=settings.camera_facing_mode,
        width=settings.camera_width,
        height=settings.camera_height,
    )

    return ScannerRuntime(scanner=scanner, history_writer=history, reports=reports)


def sync_cache(runtime: ScannerRuntime, settings: Settings = default_settings) -> int:
    """Reconciliación aditiva de la caché con el almacén remoto."""
    return runtime.scanner.cache.sync_with(
        runtime.history_writer,
        days=settings.cache_sync_days,
        limit=settings.cache_sync_limit,
    )

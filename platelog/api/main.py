from datetime import datetime
from typing import Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from platelog.core.config import settings
from platelog.application.scanner_service import ScannerService
from platelog.domain.Interfaces.report_repository import IReportRepository
from platelog.domain.Models.session_record import Checkpoint


class PlateIn(BaseModel):
    plate: str
    checkpoint: Optional[str] = None


class RecordUpdate(BaseModel):
    plate: Optional[str] = None
    timestamp: Optional[datetime] = None
    loja: Optional[bool] = None
    lava_jato: Optional[bool] = None


class CheckpointIn(BaseModel):
    checkpoint: Optional[str] = None


class TorchIn(BaseModel):
    enabled: bool


class FinalizeIn(BaseModel):
    created_by: str = "Sistema"
    notes: Optional[str] = None


def _checkpoint(value: Optional[str]) -> Optional[Checkpoint]:
    try:
        return Checkpoint.parse(value)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))


def create_app(scanner: ScannerService, reports: Optional[IReportRepository] = None) -> FastAPI:
    app = FastAPI(title=settings.app_name)

    @app.get("/health")
    def health_check():
        return {
            "status": "ok",
            "env": settings.app_env,
            "camera_active": scanner.camera.is_active,
            "camera_error": scanner.camera_error.reason if scanner.camera_error else None,
            "scanning": scanner.is_scanning,
        }

    # -----------------------------
    # Sesión
    # -----------------------------
    @app.get("/session")
    def get_session():
        cp = scanner.active_checkpoint
        return {
            "active_checkpoint": cp.value if cp else None,
            "records": [r.to_dict() for r in scanner.records()],
            "stats": scanner.stats().to_dict(),
        }

    @app.get("/session/stats")
    def get_stats():
        return scanner.stats().to_dict()

    @app.put("/session/checkpoint")
    def set_checkpoint(body: CheckpointIn):
        cp = scanner.set_checkpoint(_checkpoint(body.checkpoint))
        return {"active_checkpoint": cp.value if cp else None}

    @app.post("/session/plates")
    def add_plate(body: PlateIn):
        accepted = scanner.add_manual_plate(body.plate, _checkpoint(body.checkpoint))
        return {"accepted": accepted, "stats": scanner.stats().to_dict()}

    @app.patch("/session/plates/{record_id}")
    def update_plate(record_id: str, body: RecordUpdate):
        updates = body.model_dump(exclude_none=True)
        if not scanner.update_record(record_id, updates):
            if not any(r.id == record_id for r in scanner.records()):
                raise HTTPException(status_code=404, detail="Registro no encontrado")
            raise HTTPException(status_code=409, detail="Actualización rechazada")
        return {"updated": True}

    @app.delete("/session/plates/{record_id}")
    def remove_plate(record_id: str):
        if not scanner.remove_plate(record_id):
            raise HTTPException(status_code=404, detail="Registro no encontrado")
        return {"removed": True}

    @app.post("/session/fill/{checkpoint}")
    def fill_checkpoint(checkpoint: str):
        count = scanner.fill_checkpoint(_checkpoint(checkpoint))
        return {"updated": count}

    @app.delete("/session")
    def clear_session():
        scanner.clear_session()
        return {"cleared": True}

    @app.post("/session/finalize")
    def finalize(body: FinalizeIn):
        report = scanner.finalize(created_by=body.created_by, notes=body.notes)
        if report is None:
            raise HTTPException(status_code=409, detail="No se pudo finalizar la sesión")
        return report.to_dict()

    # -----------------------------
    # Escáner
    # -----------------------------
    @app.post("/scan")
    def scan():
        if not scanner.camera.is_active and not scanner.start_camera():
            raise HTTPException(status_code=503, detail=scanner.camera_error.reason)
        plates = scanner.scan_once()
        error = scanner.coordinator.last_error
        return {
            "plates": [p.to_dict() for p in plates],
            "last_detected_plate": scanner.coordinator.last_detected_plate,
            "error": str(error) if error else None,
        }

    @app.put("/camera/torch")
    def torch(body: TorchIn):
        return {"applied": scanner.set_torch(body.enabled)}

    @app.get("/cache/stats")
    def cache_stats():
        return scanner.cache.stats()

    # -----------------------------
    # Reportes
    # -----------------------------
    if reports is not None:
        @app.get("/reports/{share_token}")
        def get_report(share_token: str):
            report = reports.get_by_token(share_token)
            if report is None:
                raise HTTPException(status_code=404, detail="Reporte no encontrado")
            return report.to_dict()

        @app.get("/reports/month/{month_year}")
        def get_monthly(month_year: str):
            return [r.to_dict() for r in reports.get_monthly(month_year)]

    return app

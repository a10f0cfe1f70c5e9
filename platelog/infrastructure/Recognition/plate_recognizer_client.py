# platelog/infrastructure/Recognition/plate_recognizer_client.py
import logging
import time
from typing import Any, Dict, List, Optional

import requests

from platelog.domain.errors import ServiceError, TransportError
from platelog.domain.Interfaces.plate_recognizer import IPlateRecognizer
from platelog.domain.Models.frame import CapturedFrame
from platelog.domain.Models.plate import RecognizedPlate
from platelog.infrastructure.Normalizer.plate_normalizer import clean_plate_text, is_mercosul_plate

logger = logging.getLogger(__name__)


class PlateRecognizerClient(IPlateRecognizer):
    """
    Cliente HTTP del servicio de reconocimiento (Plate Recognizer o el
    proxy del backend, que responde {plates: [...]} / {error: ...}).

    - Transporte caído / timeout -> TransportError
    - HTTP != 2xx, JSON inválido, payload de error o con
      campos mal formados -> ServiceError
    - sin reintentos: el coordinador decide
    """

    def __init__(
        self,
        api_url: str,
        api_token: Optional[str] = None,
        default_region: str = "br",
        timeout: float = 15.0,
        mercosul_only: bool = True,
        session: Optional[requests.Session] = None,
    ):
        self.api_url = api_url
        self.api_token = api_token
        self.default_region = default_region
        self.timeout = timeout
        self.mercosul_only = mercosul_only
        self.session = session or requests.Session()

    def recognize(self, frame: CapturedFrame, region: Optional[str] = None) -> List[RecognizedPlate]:
        if not self.api_url:
            raise TransportError("URL del servicio de reconocimiento vacía")

        headers = {}
        if self.api_token:
            headers["Authorization"] = f"Token {self.api_token}"

        form = {
            "upload": frame.to_base64(),
            "regions": region or self.default_region,
        }

        t0 = time.perf_counter()
        try:
            response = self.session.post(
                self.api_url,
                data=form,
                headers=headers,
                timeout=max(1.0, self.timeout),
            )
        except requests.RequestException as exc:
            raise TransportError(f"HTTP error: {exc}") from exc

        if not response.ok:
            details = response.text
            logger.error("Plate Recognizer API error: %s %s", response.status_code, details[:300])
            raise ServiceError("Failed to recognize plate", status=response.status_code, details=details)

        try:
            data = response.json()
        except ValueError as exc:
            raise ServiceError(f"Invalid JSON response: {exc}", status=response.status_code) from exc

        try:
            plates = self._parse(data)
        except (ValueError, TypeError, AttributeError) as exc:
            raise ServiceError(f"Respuesta inválida: {exc}", status=response.status_code, details=str(data)[:300]) from exc
        logger.debug(
            "Reconocimiento en %.0fms: %d candidatos (%s)",
            (time.perf_counter() - t0) * 1000, len(plates), [p.text for p in plates],
        )
        return plates

    # ---------------------------------------------------------
    #  PARSEO
    # ---------------------------------------------------------
    def _parse(self, data: Any) -> List[RecognizedPlate]:
        if not isinstance(data, dict):
            raise ServiceError("Respuesta inesperada del servicio de reconocimiento")

        if data.get("error"):
            details = data.get("details")
            raise ServiceError(str(data["error"]), details=str(details) if details else None)

        if "results" in data:
            raw = [self._from_platerecognizer(r) for r in data.get("results") or []]
        else:
            raw = [self._from_proxy(p) for p in data.get("plates") or []]

        plates = [p for p in raw if p.text]
        if self.mercosul_only:
            accepted = [p for p in plates if is_mercosul_plate(p.text)]
            if len(accepted) != len(plates):
                logger.debug("Filtradas %d placas a %d Mercosul", len(plates), len(accepted))
            plates = accepted
        return plates

    @staticmethod
    def _from_platerecognizer(result: Dict[str, Any]) -> RecognizedPlate:
        region = result.get("region") or {}
        return RecognizedPlate(
            text=clean_plate_text(result.get("plate") or ""),
            confidence=float(result.get("score") or 0.0),
            region=region.get("code", "unknown") if isinstance(region, dict) else str(region),
        )

    @staticmethod
    def _from_proxy(plate: Dict[str, Any]) -> RecognizedPlate:
        return RecognizedPlate(
            text=clean_plate_text(plate.get("plate") or ""),
            confidence=float(plate.get("confidence") or 0.0),
            region=str(plate.get("region") or "unknown"),
        )

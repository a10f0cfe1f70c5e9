import logging
from prometheus_client import Gauge, Counter, start_http_server

logger = logging.getLogger(__name__)

# Llamadas al servicio de reconocimiento por resultado
# (ok, empty, below_threshold, transport_error, service_error, busy)
recognition_requests_total = Counter(
    "recognition_requests_total",
    "Llamadas de reconocimiento por resultado",
    ["outcome"]
)

# Latencia del servicio remoto
recognition_latency = Gauge(
    "recognition_latency_seconds",
    "Tiempo de la última llamada al servicio de reconocimiento"
)

# Placas confirmadas (callback disparado)
plates_detected_total = Counter(
    "plates_detected_total",
    "Total de placas confirmadas"
)

# Detecciones suprimidas por ser la misma placa que la anterior
duplicate_detections_total = Counter(
    "duplicate_detections_total",
    "Detecciones repetidas suprimidas"
)

# Aciertos de caché
cache_hits_total = Counter(
    "plate_cache_hits_total",
    "Placas reconocidas que ya estaban en la caché"
)

cache_size = Gauge(
    "plate_cache_size",
    "Entradas en la caché local de placas"
)

session_plates = Gauge(
    "session_plates",
    "Placas registradas en la sesión actual"
)

# Placas agregadas / rechazadas por el ledger
ledger_plates_total = Counter(
    "ledger_plates_total",
    "Resultados de add_plate en el ledger",
    ["result"]
)


def start_metrics_server(port: int = 9100):
    """Arranca servidor de métricas Prometheus."""
    start_http_server(port)
    logger.info(f"📊 Prometheus metrics disponible en :{port}")

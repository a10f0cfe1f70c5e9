import warnings
warnings.filterwarnings("ignore")

import logging
import threading

import uvicorn

from platelog.core.config import settings
from platelog.api.main import create_app
from platelog.application.scanner_runner import build_scanner, sync_cache
from platelog.monitoring.metrics import start_metrics_server, cache_size, session_plates

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)


def main():
    start_metrics_server(port=settings.prometheus_port)

    runtime = build_scanner(settings)
    runtime.history_writer.start()

    # Caché: reconciliación aditiva con el almacén remoto
    try:
        sync_cache(runtime, settings)
    except Exception:
        logger.exception("⚠️ No se pudo sincronizar la caché")

    scanner = runtime.scanner
    cache_size.set(len(scanner.cache))
    session_plates.set(len(scanner.records()))

    app = create_app(scanner, reports=runtime.reports)
    server = uvicorn.Server(uvicorn.Config(app, host=settings.app_host, port=settings.app_port, log_level="info"))
    threading.Thread(target=server.run, name="api", daemon=True).start()

    logger.info("🚀 Platelog iniciado.")

    try:
        while True:
            threading.Event().wait(5)
    except KeyboardInterrupt:
        logger.info("🧠 Deteniendo…")
    finally:
        server.should_exit = True
        runtime.close()


if __name__ == "__main__":
    main()

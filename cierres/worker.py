# cierres/worker.py

import signal
import time

from sqlalchemy.exc import SQLAlchemyError

from cierres import create_app
from cierres.extensions import db
from cierres.services.ia_queue import process_next
from cierres.utils.logging import get_logger

logger = get_logger("worker")

STOP = False


def _handle_stop(signum, frame):
    global STOP
    STOP = True
    logger.info(f"Señal recibida ({signum}). Cerrando worker con gracia...")


def run_once(clients) -> bool:
    """
    Una vuelta del loop. True si procesó un cierre.
    """
    result = process_next(clients)
    if result is None:
        return False

    status = result.get("status", "UNKNOWN")
    if status == "FAILED":
        logger.error(f"Cierre {result['cierre_id']} falló: {result.get('error')}")
    else:
        logger.info(f"Cierre {result['cierre_id']} terminó. veredicto={result.get('veredicto')!r}")
    return True


def main():
    # Señales típicas en Render al detener/redeploy
    signal.signal(signal.SIGTERM, _handle_stop)
    signal.signal(signal.SIGINT, _handle_stop)

    app = create_app()
    clients = app.extensions["cierres"]
    poll_seconds = int(app.config.get("WORKER_POLL_SECONDS", 30))

    logger.info(f"Worker iniciado. poll={poll_seconds}s. Esperando cierres IA_PENDIENTE...")

    with app.app_context():
        while not STOP:
            try:
                t0 = time.time()
                if run_once(clients):
                    logger.info(f"Vuelta completa en {time.time() - t0:.1f}s")
                    continue
                time.sleep(poll_seconds)

            except SQLAlchemyError as e:
                logger.exception(f"Error de BD en worker: {e}")
                db.session.rollback()
                # evitar loop rápido con la BD caída
                time.sleep(max(poll_seconds, 3))

            finally:
                # procesos largos: limpiar sesión en cada vuelta
                db.session.remove()

    logger.info("Worker detenido.")


if __name__ == "__main__":
    main()

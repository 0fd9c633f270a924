"""Entry point for the stat batching proxy."""

import logging
import signal
import threading

from werkzeug.serving import make_server

from stat_batcher.batcher import Batcher
from stat_batcher.config import load_config
from stat_batcher.server import create_app


def main():
    config = load_config()
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logger = logging.getLogger(__name__)

    if not config.ezkey:
        logger.warning("EZKEY not set; stats without an ezkey parameter will not be flushed")

    batcher = Batcher.from_config(config)
    shutdown_event = threading.Event()
    http_server = make_server(config.host, config.port, create_app(batcher), threaded=True)

    def handle_signal(signum, frame):
        logger.info("Received signal %d, shutting down...", signum)
        shutdown_event.set()

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    batcher.start()
    server_thread = threading.Thread(target=http_server.serve_forever, daemon=True)
    server_thread.start()
    logger.info("Starting stat batching proxy on %s:%d", config.host, config.port)

    try:
        while not shutdown_event.wait(timeout=1.0):
            pass
    except KeyboardInterrupt:
        logger.info("Interrupted")
    finally:
        http_server.shutdown()
        batcher.close()


if __name__ == "__main__":
    main()

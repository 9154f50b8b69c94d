"""Entry point for the JustLog → DataDog shipper."""

import logging
import signal
import sys
import threading

from justlog_datadog.config import load_config
from justlog_datadog.destination import JustLogDataDogDestination
from justlog_datadog.file_reader import read_batch, read_stream, wrap_binary


def main(argv=None) -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )
    logger = logging.getLogger(__name__)

    try:
        config = load_config(argv)
        if not config.client_token and not config.dry_run:
            logger.error("A client token is required (DD_CLIENT_TOKEN or --client-token)")
            return 2
        destination = JustLogDataDogDestination(config)
    except ValueError as e:
        logger.error("Invalid configuration: %s", e)
        return 2

    try:
        if config.log_file:
            lines = read_batch(config.log_file)
        else:
            lines = read_stream(wrap_binary(sys.stdin.buffer))
    except OSError as e:
        logger.error("Could not read log lines: %s", e)
        return 2

    shutdown_event = threading.Event()

    def signal_handler(signum, frame):
        logger.info("Received signal %d, shutting down...", signum)
        shutdown_event.set()

    previous = {
        signum: signal.signal(signum, signal_handler)
        for signum in (signal.SIGINT, signal.SIGTERM)
    }
    try:
        logger.info("Shipping %d line(s) to %s", len(lines), config.endpoint)
        destination.log_all(lines, shutdown_event)
    finally:
        for signum, handler in previous.items():
            signal.signal(signum, handler)

    logger.info(
        "Shipper finished: sent=%d, failed=%d, dropped=%d",
        destination.sent, destination.failed, destination.dropped,
    )
    return 0 if destination.failed == 0 else 1


if __name__ == "__main__":
    sys.exit(main())
